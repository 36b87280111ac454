"""
EdgeGrid CLI entry point.

Main command group for the ``edgegrid`` command. Global options select
where credentials are loaded from; subcommands load them lazily through ``load_cli_config`` so
that ``--help`` never touches the filesystem.
"""

import logging
from typing import Optional

import click

from edgegrid import __version__
from edgegrid.config import DEFAULT_CONFIG_FILE, DEFAULT_SECTION


# ============================================================================
# Logging Setup
# ============================================================================


def setup_logging(level: str = "WARNING") -> logging.Logger:
    """
    Setup logging for the CLI.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured logger
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return logging.getLogger("edgegrid")


@click.group()
@click.version_option(version=__version__, prog_name="edgegrid")
@click.option(
    "--edgerc",
    type=click.Path(dir_okay=False),
    default=None,
    help=f"Credentials file (default: {DEFAULT_CONFIG_FILE}).",
)
@click.option(
    "--section",
    default=DEFAULT_SECTION,
    show_default=True,
    help="Section of the credentials file to use.",
)
@click.option(
    "--env/--no-env",
    default=False,
    help="Read AKAMAI_* environment variables before the credentials file.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging level.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    edgerc: Optional[str],
    section: str,
    env: bool,
    log_level: str,
) -> None:
    """
    EdgeGrid - sign and send Akamai OPEN API requests.

    Credentials are read from an .edgerc file, or from AKAMAI_*
    environment variables when --env is given.

    Use 'edgegrid COMMAND --help' for more information on a command.
    """
    setup_logging(log_level)

    ctx.ensure_object(dict)
    ctx.obj["edgerc"] = edgerc
    ctx.obj["section"] = section
    ctx.obj["env"] = env


# Import and register subcommands
from edgegrid.cli.sign import sign  # noqa: E402
from edgegrid.cli.request import request  # noqa: E402
from edgegrid.cli.config import config  # noqa: E402

cli.add_command(sign)
cli.add_command(request)
cli.add_command(config)


def main() -> None:
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
