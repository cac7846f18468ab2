"""appctl command line.

Usage:
    appctl create app.yaml     # Create an app and apply its toggles
    appctl update app.yaml     # Change plan and apply toggles
    appctl read my-app         # Show live state in declarative form
    appctl import my-app       # Adopt an existing app by name
    appctl show my-app         # Read-only lookup (data source)
    appctl delete my-app       # Delete an app

Connection settings come from defaults, then LIARA_* environment
variables, then the global options below.
"""

from __future__ import annotations

from pathlib import Path

import click

from . import __version__
from .client import PaasClient
from .config import Config, ConfigurationError
from .data_source import AppDataSource
from .main import setup_logging
from .models import AppSpec
from .reconciler import AppReconciler, ReconcileResult
from .spec_loader import SpecLoadError, dump_state, load_app_spec

# Exit codes
EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG_ERROR = 2
EXIT_PARTIAL = 3


def _build_client(ctx: click.Context) -> PaasClient:
    """Resolve configuration and open a client, exiting on bad config."""
    options = ctx.obj
    try:
        config = Config.resolve(
            api_endpoint=options["api_endpoint"],
            websocket_endpoint=options["websocket_endpoint"],
            access_token=options["access_token"],
            timeout_seconds=options["timeout"],
        )
    except ConfigurationError as e:
        click.echo(str(e), err=True)
        ctx.exit(EXIT_CONFIG_ERROR)
    return PaasClient.from_config(config)


def _load_spec(ctx: click.Context, spec_file: Path) -> AppSpec:
    try:
        return load_app_spec(spec_file)
    except SpecLoadError as e:
        click.echo(str(e), err=True)
        ctx.exit(EXIT_CONFIG_ERROR)


def _report(ctx: click.Context, result: ReconcileResult) -> None:
    """Print state and diagnostics, then exit with the matching code."""
    reveal = ctx.obj["reveal_sensitive"]
    if result.spec is not None:
        click.echo(dump_state(result.spec, reveal_sensitive=reveal), nl=False)

    for diagnostic in result.diagnostics:
        click.echo(f"{diagnostic.severity.value}: {diagnostic}", err=True)

    if result.aborted:
        ctx.exit(EXIT_FAILED)
    if result.partial:
        ctx.exit(EXIT_PARTIAL)
    ctx.exit(EXIT_OK)


@click.group()
@click.version_option(version=__version__, prog_name="appctl")
@click.option("--api-endpoint", default=None, help="API base URL (overrides LIARA_API_ENDPOINT)")
@click.option(
    "--websocket-endpoint",
    default=None,
    help="Websocket base URL (overrides LIARA_WEBSOCKET_ENDPOINT)",
)
@click.option("--access-token", default=None, help="Bearer token (overrides LIARA_ACCESS_TOKEN)")
@click.option("--timeout", type=int, default=None, help="HTTP timeout in seconds")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
)
@click.option("--reveal-sensitive", is_flag=True, help="Print env values instead of masking them")
@click.pass_context
def cli(
    ctx: click.Context,
    api_endpoint: str | None,
    websocket_endpoint: str | None,
    access_token: str | None,
    timeout: int | None,
    log_level: str,
    reveal_sensitive: bool,
) -> None:
    """Reconcile PaaS apps against declarative specs."""
    setup_logging(log_level)
    ctx.obj = {
        "api_endpoint": api_endpoint,
        "websocket_endpoint": websocket_endpoint,
        "access_token": access_token,
        "timeout": timeout,
        "reveal_sensitive": reveal_sensitive,
    }


@cli.command()
@click.argument("spec_file", type=click.Path(path_type=Path))
@click.pass_context
def create(ctx: click.Context, spec_file: Path) -> None:
    """Create the app described by SPEC_FILE."""
    spec = _load_spec(ctx, spec_file)
    with _build_client(ctx) as client:
        result = AppReconciler(client).create(spec)
    _report(ctx, result)


@cli.command()
@click.argument("spec_file", type=click.Path(path_type=Path))
@click.pass_context
def update(ctx: click.Context, spec_file: Path) -> None:
    """Update the app described by SPEC_FILE."""
    spec = _load_spec(ctx, spec_file)
    with _build_client(ctx) as client:
        result = AppReconciler(client).update(spec)
    _report(ctx, result)


@cli.command()
@click.argument("name")
@click.pass_context
def read(ctx: click.Context, name: str) -> None:
    """Print the live state of app NAME."""
    with _build_client(ctx) as client:
        result = AppReconciler(client).read(name)
    _report(ctx, result)


@cli.command("import")
@click.argument("name")
@click.pass_context
def import_app(ctx: click.Context, name: str) -> None:
    """Adopt existing app NAME and print its state."""
    with _build_client(ctx) as client:
        result = AppReconciler(client).import_app(name)
    _report(ctx, result)


@cli.command()
@click.argument("name")
@click.pass_context
def show(ctx: click.Context, name: str) -> None:
    """Look up app NAME without managing it."""
    with _build_client(ctx) as client:
        result = AppDataSource(client).read(name)
    _report(ctx, result)


@cli.command()
@click.argument("name")
@click.confirmation_option(prompt="Delete this app?")
@click.pass_context
def delete(ctx: click.Context, name: str) -> None:
    """Delete app NAME."""
    with _build_client(ctx) as client:
        result = AppReconciler(client).delete(name)
    _report(ctx, result)


if __name__ == "__main__":
    cli()
