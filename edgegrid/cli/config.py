"""
Config CLI commands.

Displays the credential set the other commands would use.
"""

import click

from edgegrid.cli import load_cli_config


def mask(value: str) -> str:
    """Mask a secret, keeping the first and last four characters."""
    return value[:4] + "****" + value[-4:] if len(value) > 8 else "****"


# ============================================================================
# Config Command Group
# ============================================================================


@click.group()
@click.pass_context
def config(ctx: click.Context) -> None:
    """
    Inspect EdgeGrid credentials.
    """
    ctx.ensure_object(dict)


@config.command("show")
@click.pass_context
def show(ctx: click.Context) -> None:
    """
    Show the active credentials (secrets masked).

    Example:

        edgegrid --section ccu config show
    """
    edgegrid_config = load_cli_config(ctx)

    click.echo("EdgeGrid credentials:")
    click.echo(f"  host: {edgegrid_config.host}")
    click.echo(f"  client_token: {mask(edgegrid_config.client_token)}")
    click.echo(f"  client_secret: {mask(edgegrid_config.client_secret)}")
    click.echo(f"  access_token: {mask(edgegrid_config.access_token)}")
    if edgegrid_config.account_key:
        click.echo(f"  account_key: {edgegrid_config.account_key}")
    headers = ", ".join(edgegrid_config.headers_to_sign) or "(none)"
    click.echo(f"  headers_to_sign: {headers}")
    click.echo(f"  max_body: {edgegrid_config.max_body}")
