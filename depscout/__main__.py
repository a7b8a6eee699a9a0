"""
Executable module for depscout.

Running:
    python -m depscout

is equivalent to:
    depscout

This module simply forwards execution to the CLI entrypoint defined in
`depscout.cli`.
"""

from __future__ import annotations

import sys


def _print_startup_error(exc: ImportError) -> None:
    """Report a CLI import failure on stderr, with the package version if known."""
    try:
        from depscout.__version__ import __version__
    except ImportError:
        __version__ = "<unknown>"

    sys.stderr.write(f"depscout version: {__version__}\n\n")
    sys.stderr.write(f"ImportError: {exc}\n")


def main() -> int:
    """
    Main entrypoint when executing `python -m depscout`.

    Returns:
        Exit code returned by the CLI, or ``1`` when it cannot be imported.
    """
    try:
        # Import lazily so dependencies are only loaded during CLI use
        from depscout.cli import main as cli_main
    except ImportError as exc:
        _print_startup_error(exc)
        return 1

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
