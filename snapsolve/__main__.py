"""Module entrypoint for running SnapSolve as ``python -m snapsolve``."""

from __future__ import annotations

from snapsolve.cli import main


if __name__ == "__main__":
    main()
