"""
Module entrypoint: `python -m holoservice`
"""

from __future__ import annotations


def main() -> None:
    from .cli import main as cli_main
    raise SystemExit(cli_main())


if __name__ == "__main__":
    main()
