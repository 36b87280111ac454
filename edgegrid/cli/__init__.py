"""
EdgeGrid CLI package.

Click commands for signing and sending EdgeGrid requests.
"""

import click

from edgegrid.config import DEFAULT_SECTION, ConfigError, EdgeGridConfig, load_config


def load_cli_config(ctx: click.Context) -> EdgeGridConfig:
    """
    Load the credential set selected by the global options.

    Exits with status 1 and a readable message if loading fails.
    """
    obj = ctx.ensure_object(dict)
    if "config" not in obj:
        try:
            config = load_config(
                file=obj.get("edgerc"),
                section=obj.get("section", DEFAULT_SECTION),
                env=obj.get("env", False),
            )
            config.validate()
        except ConfigError as e:
            click.echo(click.style("Error: ", fg="red", bold=True) + str(e), err=True)
            ctx.exit(1)
        obj["config"] = config
    return obj["config"]
