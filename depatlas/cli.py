"""
The ``depatlas`` command.

The group sets up output and loads the user configuration that every
analysis run starts from; the analysis itself lives in
:mod:`depatlas.commands.analyze`.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

import click
from rich.markup import escape

from depatlas.__version__ import __version__
from depatlas.config import load_config
from depatlas.context import DepAtlasContext
from depatlas.exceptions import ConfigError, DepAtlasError
from depatlas.utils.console import print_error, print_warning, reconfigure_console
from depatlas.utils.logger import get_logger, setup_logging

logger = get_logger("cli")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Analyzer configuration file (TOML).",
    envvar="DEPATLAS_CONFIG",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Show analyzer progress (-v) or debug details (-vv).",
)
@click.option(
    "--color/--no-color",
    default=True,
    help="Color the console report and log output.",
    envvar="DEPATLAS_COLOR",
)
@click.version_option(
    version=__version__,
    prog_name="depatlas",
    message="%(prog)s %(version)s",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: int,
    color: bool,
) -> None:
    """Analyze the dependencies of source trees across package managers.

    Definition files of all enabled package managers (NPM, PIP, Cargo) are
    found below PATH and resolved into one result of projects and packages.

    \b
    Examples:
      depatlas analyze .
      depatlas analyze -m NPM --format json web/
      depatlas -v analyze .

    See ``depatlas analyze --help`` for the analysis options.
    """
    # NO_COLOR is read by the console and by the log formatter.
    if color:
        os.environ.pop("NO_COLOR", None)
    else:
        os.environ["NO_COLOR"] = "1"
    reconfigure_console()

    _configure_logging(verbose)

    try:
        loaded_config = load_config(config)
    except ConfigError as exc:
        print_error(escape(str(exc)))
        raise SystemExit(1) from exc

    depatlas_ctx = DepAtlasContext()
    depatlas_ctx.config_path = config or loaded_config.source_path
    depatlas_ctx.color = color
    depatlas_ctx.verbose = verbose
    depatlas_ctx.config = loaded_config
    ctx.obj = depatlas_ctx

    logger.debug("depatlas %s, configuration from %s", __version__, depatlas_ctx.config_path or "defaults")
    if loaded_config.source_path:
        logger.debug("Analyzer configuration: %s", loaded_config.to_log_dict())


def _configure_logging(verbose: int) -> None:
    """Map the -v count to a log level for the depatlas loggers."""
    if verbose <= 0:
        level = logging.WARNING
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    setup_logging(level=level, verbose=verbose >= 2)
    logger.debug("Logging at %s.", logging.getLevelName(level))


# Subcommands
from depatlas.commands.analyze import analyze  # noqa: E402

cli.add_command(analyze)


def main() -> int:
    """Run the ``depatlas`` command and return its exit code.

    Returns:
        0 when the analysis finished, 1 when it failed, 2 for usage errors
        reported by Click and 130 when interrupted.
    """
    try:
        cli(standalone_mode=False)
        return 0

    except click.ClickException as exc:
        exc.show()
        return exc.exit_code

    except DepAtlasError as exc:
        print_error(escape(str(exc)))
        logger.debug(
            "Analysis error details: %s",
            exc.details or "<none>",
            exc_info=True,
        )
        return 1

    except (KeyboardInterrupt, click.exceptions.Abort):
        print_warning("\nAnalysis interrupted.")
        return 130

    except Exception as exc:
        print_error(escape(f"Unexpected error: {exc}"))
        logger.exception("Unexpected failure while running depatlas")
        return 1


if __name__ == "__main__":
    sys.exit(main())
