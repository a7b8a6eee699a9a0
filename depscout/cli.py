"""
Command-line interface for depscout.

This module provides the main CLI entry point and handles global options,
configuration loading, and command registration.
"""

from __future__ import annotations

import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click

from depscout.config import load_config
from depscout.__version__ import __version__
from depscout.context import DepScoutContext
from depscout.constants import CONFIG_ENV_VAR
from depscout.exceptions import ConfigError, DepScoutError
from depscout.utils.logger import get_logger, level_for_verbosity, setup_logging
from depscout.utils.console import print_error, print_warning, reconfigure_console

logger = get_logger("cli")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file.",
    envvar=CONFIG_ENV_VAR,
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (can be repeated: -v, -vv).",
)
@click.option(
    "--color/--no-color",
    default=True,
    help="Enable or disable colored output.",
    envvar="DEPSCOUT_COLOR",
)
@click.version_option(
    version=__version__,
    prog_name="depscout",
    message="%(prog)s %(version)s",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: int,
    color: bool,
) -> None:
    """depscout: find upgrade candidates for NuGet dependencies.

    \b
    Available commands:
      depscout find PACKAGE CONSTRAINT   List eligible versions per feed

    \b
    Examples:
      depscout find Newtonsoft.Json "[12.0.1, )"
      depscout find Serilog 2.10.0 --ignore ">= 3.0.0"
      depscout -v find Foo "1.0.0-beta" --format json

    Use ``depscout COMMAND --help`` for command-specific options.
    """
    # Respect NO_COLOR for downstream libraries
    if color:
        os.environ.pop("NO_COLOR", None)
    else:
        os.environ["NO_COLOR"] = "1"
    reconfigure_console()

    _configure_logging(verbose)

    try:
        loaded_config = load_config(config)
    except ConfigError as exc:
        print_error(str(exc))
        raise SystemExit(1) from exc

    depscout_ctx = DepScoutContext()
    depscout_ctx.config_path = config or loaded_config.source_path
    depscout_ctx.color = color
    depscout_ctx.verbose = verbose
    depscout_ctx.config = loaded_config
    ctx.obj = depscout_ctx

    logger.debug("depscout v%s", __version__)
    logger.debug("Config path: %s", depscout_ctx.config_path)
    if loaded_config.source_path:
        logger.debug("Loaded configuration: %s", loaded_config.to_log_dict())
    logger.debug("Verbosity: %s | Color: %s", verbose, color)


def _configure_logging(verbose: int) -> None:
    """Configure logging level based on verbosity flags."""
    level = level_for_verbosity(verbose)
    setup_logging(level=level, verbose=verbose >= 2)
    logger.debug("Logging initialized at %s level", logging.getLevelName(level))


# Register CLI subcommands
try:
    from depscout.commands.find import find

    cli.add_command(find)

except ImportError as exc:
    sys.stderr.write(f"FATAL: Failed to import CLI commands: {exc}\n")
    sys.exit(1)


def main() -> int:
    """Main entry point for the depscout CLI.

    Returns:
        Exit code:
            0   Success
            1   Unhandled or application error
            2   Usage error (Click)
            130 Interrupted by user (Ctrl+C)
    """
    try:
        cli(standalone_mode=False)
        return 0

    except click.ClickException as exc:
        exc.show()
        return exc.exit_code

    except click.exceptions.Abort:
        print_warning("\nOperation cancelled by user")
        return 130

    except DepScoutError as exc:
        print_error(str(exc))
        logger.debug(
            "DepScoutError details: %s",
            exc.details or "<none>",
            exc_info=True,
        )
        return 1

    except KeyboardInterrupt:
        print_warning("\nOperation cancelled by user")
        return 130

    except Exception as exc:
        print_error(f"Unexpected error: {exc}")
        logger.exception("Unhandled exception in CLI")
        return 1


if __name__ == "__main__":
    sys.exit(main())
