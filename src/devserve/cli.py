"""CLI interface for devserve.

Command-line tool for running the development server and inspecting how
request URLs map onto the filesystem.
"""

import logging
import sys
from pathlib import Path

import click

from devserve.config import Config
from devserve.constants import FS_PREFIX
from devserve.core.alias import AliasTable
from devserve.core.guard import AccessGuard, StrictMode
from devserve.core.paths import build_request_context, fs_path_from_url, normalize_path
from devserve.core.types import Eligibility
from devserve.core.urls import UrlClassifier

config_option = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: auto-discover devserve.toml)",
)
root_option = click.option(
    "--root",
    "-r",
    type=click.Path(exists=True, path_type=Path, file_okay=False),
    default=None,
    help="Serving root directory (overrides config)",
)


@click.group()
def cli() -> None:
    """Devserve - static file serving with filesystem access control."""


def _load_config(
    config_path: Path | None,
    *,
    host: str | None = None,
    port: int | None = None,
    root: Path | None = None,
    strict: StrictMode | None = None,
) -> Config:
    """Load configuration or exit with error."""
    try:
        config = Config.load(config_path)
    except (FileNotFoundError, ValueError) as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)
    return config.with_overrides(host=host, port=port, root=root, strict=strict)


@cli.command()
@config_option
@root_option
@click.option(
    "--host",
    default=None,
    help="Host to bind to (overrides config)",
)
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    help="Port to bind to (overrides config)",
)
@click.option(
    "--strict/--no-strict",
    default=None,
    help="Enforce or only warn about the filesystem allow list (overrides config)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output (log alias rewrites and fall-through decisions)",
)
def serve(
    config_path: Path | None,
    root: Path | None,
    host: str | None,
    port: int | None,
    strict: bool | None,
    verbose: bool,
) -> None:
    """Start the development server."""
    from devserve.server import run_server

    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO)

    strict_mode = None
    if strict is not None:
        strict_mode = StrictMode.ENFORCE if strict else StrictMode.WARN
    config = _load_config(config_path, host=host, port=port, root=root, strict=strict_mode)

    click.echo(f"Starting server on {config.server.host}:{config.server.port}")
    click.echo(f"Serving root: {config.root}")
    if config.serve.public_dir is not None:
        click.echo(f"Public directory: {config.serve.public_dir}")
    click.echo(f"Filesystem strict mode: {config.fs.strict.value}")
    for directory in config.serving_policy().allow:
        click.echo(f"  allow: {directory}")

    run_server(config)


@cli.command()
@click.argument("url")
@config_option
@root_option
def check(url: str, config_path: Path | None, root: Path | None) -> None:
    """Show how URL resolves and whether serving it is restricted."""
    config = _load_config(config_path, root=root)
    guard = AccessGuard(config.serving_policy())

    if url.startswith(FS_PREFIX):
        file_path = fs_path_from_url(url)
    else:
        classifier = UrlClassifier()
        if classifier.classify(url) is Eligibility.SKIP:
            click.echo(f"{url}: skipped (import or internal request)")
            return
        context = build_request_context(
            url, normalize_path(str(config.root)), AliasTable(config.resolve.alias)
        )
        if context.resolved_alias_url is not None:
            click.echo(f"Alias: {context.decoded_url} -> {context.resolved_alias_url}")
        file_path = context.file_path

    click.echo(f"File: {file_path}")
    if guard.is_restricted(file_path):
        click.echo(click.style("Restricted: yes (requests fall through to 404)", fg="red"))
    else:
        click.echo(click.style("Restricted: no", fg="green"))
