"""
Request CLI command.

Sends a signed request to the configured host and prints the JSON
response.
"""

import json
from typing import Optional

import click

from edgegrid.cli import load_cli_config
from edgegrid.session import ApiError, Session, SessionError


def parse_params(values: tuple) -> dict[str, str]:
    """Parse repeated ``key=value`` options into a dict."""
    params: dict[str, str] = {}
    for value in values:
        key, sep, param_value = value.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {value!r}")
        params[key] = param_value
    return params


@click.command()
@click.argument("method")
@click.argument("path")
@click.option("--data", "-d", default=None, help="JSON request body.")
@click.option(
    "--param",
    "-p",
    "params",
    multiple=True,
    help="Query parameter as key=value (repeatable).",
)
@click.option("--trace", is_flag=True, help="Log requests and responses.")
@click.pass_context
def request(
    ctx: click.Context,
    method: str,
    path: str,
    data: Optional[str],
    params: tuple,
    trace: bool,
) -> None:
    """
    Send a signed request and print the JSON response.

    Example:

        edgegrid request GET /papi/v1/contracts
    """
    config = load_cli_config(ctx)

    try:
        payload = json.loads(data) if data is not None else None
        query = parse_params(params)
    except (ValueError, click.BadParameter) as e:
        click.echo(click.style("Error: ", fg="red", bold=True) + f"Invalid input: {e}", err=True)
        ctx.exit(2)

    try:
        with Session(config, trace=trace) as session:
            result = session.exec(method, path, params=query, json=payload)
    except ApiError as e:
        click.echo(click.style("Error: ", fg="red", bold=True) + str(e), err=True)
        if e.problem:
            click.echo(json.dumps(e.problem, indent=2), err=True)
        ctx.exit(1)
    except SessionError as e:
        click.echo(click.style("Error: ", fg="red", bold=True) + str(e), err=True)
        ctx.exit(1)

    if result is None:
        click.echo(click.style("No content", fg="cyan"))
        return
    click.echo(json.dumps(result, indent=2))
