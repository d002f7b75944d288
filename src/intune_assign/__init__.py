"""Assign Intune Win32 apps to groups and report their assignments."""

from __future__ import annotations

__version__ = "0.1.0"


def main() -> None:
    from intune_assign.cli import main as cli_main

    raise SystemExit(cli_main())


__all__ = ["__version__", "main"]
