"""
Command line interface for git-helper.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from .errors import ConfigurationError, GitHelperError
from .host import create_settings
from .logger import configure_logging, get_logger, redirect_logging_to_file
from .plugin import EXTENSION_NAME, GitHelperPlugin
from .repositories import RepositoryReference
from .settings import AppSettings, load_settings, settings
from .version import get_version

app = typer.Typer(name="git-helper", help="Include git repositories as included builds.")
configure_logging(enable_console=False)
log = get_logger(__name__)
console = Console()

_CONFIG_FIELDS = ("checkout_dir", "default_branch", "remote_name", "offline", "log_level", "repositories")


def _apply_config(config: Optional[Path]) -> None:
    if config is None:
        return
    if not config.is_file():
        typer.echo(f"[ERROR] Config file not found: {config}")
        raise typer.Exit(code=2)
    try:
        loaded: AppSettings = load_settings(config)
    except ConfigurationError as exc:
        typer.echo(f"[ERROR] {exc}")
        raise typer.Exit(code=2)
    for name in _CONFIG_FIELDS:
        setattr(settings, name, getattr(loaded, name))


def _declared_references(root: Path) -> List[RepositoryReference]:
    host = create_settings(root)
    host.apply_plugin(GitHelperPlugin.plugin_id)
    return host.extension(EXTENSION_NAME).references()


@app.command()
def sync(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="TOML file declaring the repositories to include."
    ),
    root: Path = typer.Option(
        Path("."), "--root", "-r", help="Settings directory the checkouts are relative to."
    ),
    offline: bool = typer.Option(False, "--offline", help="Do not access the network."),
    log_file: bool = typer.Option(
        False, "--log", help="Redirect detailed logs to git-helper.log in the root directory."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log to the console."),
) -> None:
    """Check out declared repositories and register them as included builds."""
    _apply_config(config)
    if verbose:
        configure_logging(level=getattr(logging, settings.log_level, logging.INFO))
    if log_file:
        log_path = (root / "git-helper.log").resolve()
        redirect_logging_to_file(log_path)
        typer.echo(f"Logging detailed output to {log_path}")

    host = create_settings(root, offline=offline or settings.offline)
    try:
        plugin = host.apply_plugin(GitHelperPlugin.plugin_id)
        host.evaluate()
    except GitHelperError as exc:
        log.error("sync_failed", error=str(exc))
        typer.echo(f"[ERROR] {exc}")
        raise typer.Exit(code=1)

    results = plugin.results if isinstance(plugin, GitHelperPlugin) else []
    if not results:
        typer.echo("No repositories declared.")
        return

    table = Table(title="Included builds")
    table.add_column("Repository")
    table.add_column("Ref")
    table.add_column("Commit")
    table.add_column("Action")
    table.add_column("Path")
    for result in results:
        table.add_row(
            result.reference.name,
            result.reference.ref,
            result.commit[:12],
            result.action,
            str(result.reference.included_path),
        )
    console.print(table)
    typer.echo(f"Included {len(results)} build(s)")


@app.command("list")
def list_repos(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="TOML file declaring the repositories to include."
    ),
    root: Path = typer.Option(
        Path("."), "--root", "-r", help="Settings directory the checkouts are relative to."
    ),
) -> None:
    """List declared repositories and their checkout state."""
    _apply_config(config)
    try:
        references = _declared_references(root)
    except GitHelperError as exc:
        typer.echo(f"[ERROR] {exc}")
        raise typer.Exit(code=1)
    for reference in references:
        state = "checked out" if reference.local_path.exists() else "missing"
        typer.echo(f"- {reference.name} {reference.url} ({reference.ref}) [{state}] -> {reference.local_path}")


@app.command()
def version() -> None:
    """Show the installed version."""
    typer.echo(f"git-helper {get_version()}")


if __name__ == "__main__":  # pragma: no cover
    app()
