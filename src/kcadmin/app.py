"""Typer application and CLI entry point for kcadmin.

Two small operator tools:

- ``kcadmin token`` obtains an access token with a config file and prints
  it, which is a quick way to check client credentials.
- ``kcadmin config init`` writes a config file for later use.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. :class:`~kcadmin.exceptions.KcAdminError` instances
are printed to stderr and the process exits with their ``exit_code``
(see :mod:`kcadmin.exit_codes`).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from kcadmin import __version__
from kcadmin.exceptions import KcAdminError
from kcadmin.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INVALID_USAGE

app = typer.Typer(
    name="kcadmin",
    help="Keycloak admin API client tools.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)
config_app = typer.Typer(no_args_is_help=True)
app.add_typer(config_app, name="config", help="Configuration management.")

console = Console()
err_console = Console(stderr=True)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"kcadmin {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug logging."
    ),
) -> None:
    """Root callback executed before every sub-command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("token")
def token_command(
    config_path: Path = typer.Option(
        ..., "--config", "-c", help="Path to a YAML or JSON config file."
    ),
    show_refresh: bool = typer.Option(
        False, "--show-refresh", help="Also print the refresh token."
    ),
) -> None:
    """Obtain an access token and print it.

    Example::

        kcadmin token --config sso.yaml
    """
    from kcadmin.auth.manager import TokenManager
    from kcadmin.config import load_config

    try:
        config = load_config(config_path)
        with TokenManager(config) as manager:
            token = manager.get_token()
    except KcAdminError as exc:
        err_console.print(f"[red]Error:[/red] {exc.message}", highlight=False)
        raise typer.Exit(code=exc.exit_code)

    console.print(token.access_token, highlight=False, soft_wrap=True)
    if show_refresh and token.refresh_token:
        console.print(token.refresh_token, highlight=False, soft_wrap=True)


def _parse_headers(values: list[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for item in values:
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            raise typer.BadParameter(f"Expected NAME=VALUE, got '{item}'", param_hint="--header")
        headers[name.strip()] = value.strip()
    return headers


@config_app.command("init")
def config_init(
    path: Path = typer.Argument(help="Where to write the config (.yaml, .yml or .json)."),
    client_id: str = typer.Option(..., "--client-id", help="OAuth2 client identifier."),
    client_secret: str = typer.Option(
        ..., "--client-secret", prompt=True, hide_input=True, help="OAuth2 client secret."
    ),
    realm: str = typer.Option(..., "--realm", help="Realm name."),
    base_url: str = typer.Option(..., "--base-url", help="Base address of the SSO server."),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Extra token request header as NAME=VALUE."
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file."),
) -> None:
    """Write a config file.

    Example::

        kcadmin config init sso.yaml --client-id admin-cli --realm master \\
            --base-url https://sso.example.com -H X-Tenant=acme
    """
    from pydantic import ValidationError

    from kcadmin.config import save_config
    from kcadmin.models import SSOConfig

    if path.exists() and not force:
        err_console.print(f"[red]Error:[/red] {path} already exists (use --force)", highlight=False)
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)

    try:
        config = SSOConfig(
            client_id=client_id,
            client_secret=client_secret,
            realm=realm,
            base_url=base_url,
            headers=_parse_headers(header or []),
        )
    except ValidationError as exc:
        err_console.print(f"[red]Error:[/red] invalid config:\n{exc}", highlight=False)
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    written = save_config(config, path)
    console.print(f"Wrote {written}", highlight=False)


def main() -> None:
    """CLI entry point invoked by the ``kcadmin`` console script."""
    app()
