"""
Sign CLI command.

Prints the Authorization header for a request without sending it.
"""

from typing import Optional

import click
import httpx

from edgegrid.cli import load_cli_config
from edgegrid.signer import SigningError, sign_request


def parse_header(value: str) -> tuple[str, str]:
    """
    Parse a ``Name: value`` header option.

    Raises:
        click.BadParameter: If the value has no colon or an empty name
    """
    name, sep, header_value = value.partition(":")
    if not sep or not name.strip():
        raise click.BadParameter(f"expected NAME:VALUE, got {value!r}")
    return name.strip(), header_value


@click.command()
@click.argument("method")
@click.argument("url")
@click.option("--data", "-d", default=None, help="Request body.")
@click.option(
    "--header",
    "-H",
    "headers",
    multiple=True,
    help="Request header as NAME:VALUE (repeatable).",
)
@click.pass_context
def sign(
    ctx: click.Context,
    method: str,
    url: str,
    data: Optional[str],
    headers: tuple,
) -> None:
    """
    Print the EdgeGrid Authorization header for a request.

    URL may be absolute or a path relative to the configured host.
    Nothing is sent over the network.

    Example:

        edgegrid sign POST /papi/v1/properties -d '{"name": "x"}'
    """
    config = load_cli_config(ctx)

    try:
        parsed_headers = [parse_header(h) for h in headers]
    except click.BadParameter as e:
        click.echo(click.style("Error: ", fg="red", bold=True) + str(e), err=True)
        ctx.exit(2)

    if not url.startswith(("http://", "https://")):
        url = config.base_url + "/" + url.lstrip("/")

    request = httpx.Request(
        method.upper(),
        url,
        content=data.encode("utf-8") if data is not None else None,
        headers=parsed_headers,
    )

    try:
        sign_request(config, request)
    except SigningError as e:
        click.echo(click.style("Error: ", fg="red", bold=True) + str(e), err=True)
        ctx.exit(1)

    click.echo(request.headers["Authorization"])
