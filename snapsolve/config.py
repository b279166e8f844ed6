"""Configuration model and loaders for SnapSolve.

Responsibilities:
- Define runtime configuration as a typed dataclass.
- Provide deterministic precedence resolution for runtime dispatch settings.
- Provide loader entry points for YAML-, environment-, and `.env`-based configuration.

Key types:
- `SnapsolveConfig`: normalized runtime settings for dispatch calls.
- `DispatchRuntimeConfig`: resolved provider/model/mode values for one invocation.
- `RuntimeConfigSources`: optional value sources for precedence resolution.
- `ConfigLoader`: static construction helpers for `SnapsolveConfig`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import dotenv_values

from .dispatcher import DEFAULT_TIMEOUT_SECONDS
from .llm.prompts import DEFAULT_PROMPT_MODE
from .parsing import normalize_optional_string, parse_positive_float, parse_positive_int
from .provider_factory import DEFAULT_PROVIDER_ID, SUPPORTED_PROVIDER_IDS
from .session import DEFAULT_MAX_IMAGES

_DEFAULT_LANGUAGE = "Python"

_ENV_KEYS = {
    "provider": "SNAPSOLVE_PROVIDER",
    "model": "SNAPSOLVE_MODEL",
    "language": "SNAPSOLVE_LANGUAGE",
    "prompt_mode": "SNAPSOLVE_PROMPT_MODE",
    "timeout_seconds": "SNAPSOLVE_TIMEOUT_SECONDS",
    "max_images": "SNAPSOLVE_MAX_IMAGES",
}


def load_environment(
    dotenv_path: Path | None = None,
    base_env: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Merge `.env` values under the process environment; process values win.

    Args:
        dotenv_path: Optional `.env` file. Missing files contribute nothing.
        base_env: Environment mapping, defaulting to `os.environ`.
    """

    merged: dict[str, str] = {}
    if dotenv_path is not None and dotenv_path.is_file():
        for key, value in dotenv_values(dotenv_path).items():
            if value is not None:
                merged[key] = value
    merged.update(os.environ if base_env is None else base_env)
    return merged


@dataclass(frozen=True, slots=True)
class RuntimeConfigSources:
    """Source mappings used for deterministic runtime value precedence.

    Attributes:
        cli: Values explicitly provided by CLI arguments.
        env: Values loaded from environment variables.
    """

    cli: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class DispatchRuntimeConfig:
    """Resolved dispatch settings for one invocation."""

    provider: str
    model: str | None
    language: str
    prompt_mode: str
    timeout_seconds: float
    max_images: int


@dataclass(slots=True)
class SnapsolveConfig:
    """Runtime configuration for dispatch calls.

    Attributes:
        provider: Provider identifier.
        model: Optional model override; `None` selects the provider default.
        language: Target language label injected into prompts.
        prompt_mode: Prompt mode selector (`code` or `mcq`).
        timeout_seconds: Call-wide deadline in seconds.
        max_images: Capture stack capacity.
        extra: Additional metadata for future extensions.
    """

    provider: str = DEFAULT_PROVIDER_ID
    model: str | None = None
    language: str = _DEFAULT_LANGUAGE
    prompt_mode: str = DEFAULT_PROMPT_MODE.value
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_images: int = DEFAULT_MAX_IMAGES
    extra: dict[str, str] = field(default_factory=dict)

    def validate(self) -> None:
        """Validate configuration values before dispatching."""

        self._validate_provider_id(self.provider)
        if normalize_optional_string(self.language) is None:
            raise ValueError("`language` must be a non-empty string.")
        parse_positive_float(self.timeout_seconds, "timeout_seconds")
        parse_positive_int(self.max_images, "max_images")

    def resolved_runtime(
        self, sources: RuntimeConfigSources | None = None
    ) -> DispatchRuntimeConfig:
        """Resolve dispatch settings with deterministic source precedence.

        Precedence for each key is `cli` > `env` > config field value.
        """

        resolved_sources = sources if sources is not None else RuntimeConfigSources()

        provider = self._resolve_value("provider", self.provider, resolved_sources)
        model = self._resolve_value("model", self.model, resolved_sources)
        language = self._resolve_value("language", self.language, resolved_sources)
        prompt_mode = self._resolve_value("prompt_mode", self.prompt_mode, resolved_sources)
        timeout_text = self._resolve_value(
            "timeout_seconds", self.timeout_seconds, resolved_sources
        )
        max_images_text = self._resolve_value("max_images", self.max_images, resolved_sources)

        resolved = DispatchRuntimeConfig(
            provider=(provider or DEFAULT_PROVIDER_ID).lower(),
            model=model,
            language=language or _DEFAULT_LANGUAGE,
            prompt_mode=prompt_mode or DEFAULT_PROMPT_MODE.value,
            timeout_seconds=parse_positive_float(timeout_text, "timeout_seconds"),
            max_images=parse_positive_int(max_images_text, "max_images"),
        )
        self._validate_provider_id(resolved.provider)
        return resolved

    @staticmethod
    def _resolve_value(
        key: str, default_value: object, sources: RuntimeConfigSources
    ) -> str | None:
        """Resolve one runtime value from sources in deterministic precedence order."""

        cli_value = normalize_optional_string(sources.cli.get(key))
        if cli_value is not None:
            return cli_value
        env_value = normalize_optional_string(sources.env.get(_ENV_KEYS[key]))
        if env_value is not None:
            return env_value
        return normalize_optional_string(default_value)

    @staticmethod
    def _validate_provider_id(provider_id: str) -> None:
        """Validate provider identifiers against supported providers."""

        if provider_id not in SUPPORTED_PROVIDER_IDS:
            supported = ", ".join(sorted(SUPPORTED_PROVIDER_IDS))
            raise ValueError(
                f"Unsupported `provider` value `{provider_id}`; supported: {supported}."
            )


class ConfigLoader:
    """Factory methods for creating `SnapsolveConfig` from external sources."""

    _SUPPORTED_YAML_KEYS = frozenset(
        {"provider", "model", "language", "prompt_mode", "timeout_seconds", "max_images", "extra"}
    )

    @staticmethod
    def from_yaml(path: Path) -> SnapsolveConfig:
        """Create a validated config from a YAML file."""

        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")
        return ConfigLoader._build_config_from_mapping(payload, source_label=f"YAML `{path}`")

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> SnapsolveConfig:
        """Create a validated config from environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env
        payload = {
            key: env_map[env_key]
            for key, env_key in _ENV_KEYS.items()
            if normalize_optional_string(env_map.get(env_key)) is not None
        }
        return ConfigLoader._build_config_from_mapping(payload, source_label="Environment")

    @staticmethod
    def _build_config_from_mapping(
        payload: Mapping[str, Any], source_label: str
    ) -> SnapsolveConfig:
        """Build a validated config from a normalized mapping payload."""

        unknown = sorted(set(payload).difference(ConfigLoader._SUPPORTED_YAML_KEYS))
        if unknown:
            key_list = ", ".join(str(key) for key in unknown)
            raise ValueError(f"{source_label} includes unsupported key(s): {key_list}.")

        provider = normalize_optional_string(payload.get("provider"))
        language = normalize_optional_string(payload.get("language"))
        prompt_mode = normalize_optional_string(payload.get("prompt_mode"))
        try:
            timeout_seconds = (
                parse_positive_float(payload["timeout_seconds"], "timeout_seconds")
                if "timeout_seconds" in payload
                else DEFAULT_TIMEOUT_SECONDS
            )
            max_images = (
                parse_positive_int(payload["max_images"], "max_images")
                if "max_images" in payload
                else DEFAULT_MAX_IMAGES
            )
        except ValueError as exc:
            raise ValueError(f"{source_label}: {exc}") from exc

        config = SnapsolveConfig(
            provider=provider.lower() if provider else DEFAULT_PROVIDER_ID,
            model=normalize_optional_string(payload.get("model")),
            language=language or _DEFAULT_LANGUAGE,
            prompt_mode=prompt_mode or DEFAULT_PROMPT_MODE.value,
            timeout_seconds=timeout_seconds,
            max_images=max_images,
            extra=ConfigLoader._optional_string_map(payload, "extra", source_label),
        )
        config.validate()
        return config

    @staticmethod
    def _optional_string_map(
        payload: Mapping[str, Any], key: str, source_label: str
    ) -> dict[str, str]:
        """Read an optional mapping with non-empty string keys and values."""

        raw = payload.get(key)
        if raw is None:
            return {}
        if not isinstance(raw, Mapping):
            raise ValueError(f"{source_label} field `{key}` must be a mapping/object.")

        normalized: dict[str, str] = {}
        for raw_key, raw_value in raw.items():
            key_value = normalize_optional_string(raw_key)
            value_value = normalize_optional_string(raw_value)
            if key_value is None:
                raise ValueError(f"{source_label} field `{key}` contains a blank key.")
            if value_value is None:
                raise ValueError(
                    f"{source_label} field `{key}` contains blank value for `{key_value}`."
                )
            normalized[key_value] = value_value
        return normalized
