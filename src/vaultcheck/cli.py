"""Typer-based CLI for vaultcheck."""

import logging
from datetime import date, datetime
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .check import Checker, CheckReport, VaultCheckError, check_vault, load_check_config
from .config import resolve_config_file, resolve_vault_root
from .store import FilesystemVault

app = typer.Typer(
    name="vaultcheck",
    help="vaultcheck - find broken links, anchors and orphaned assets in a markdown vault",
    add_completion=False,
)

console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False, markup=False)],
        force=True,
    )


def _parse_today(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        console.print(f"[red]Error: --today must be YYYY-MM-DD, got {value}[/red]")
        raise typer.Exit(code=1)


def _load(vault_path: Optional[str], config_path: Optional[str], report: Optional[str], workers: Optional[int]):
    try:
        vault_root = resolve_vault_root(vault_path)
    except FileNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    config = load_check_config(resolve_config_file(vault_root, config_path))
    updates = {}
    if report:
        updates["report_path"] = report
    if workers:
        updates["workers"] = workers
    if updates:
        config = config.model_copy(update=updates)
    return vault_root, config


def _print_summary(report: CheckReport) -> None:
    table = Table(title=f"Checked {report.scanned} document(s)")
    table.add_column("Category", style="cyan")
    table.add_column("Count", justify="right")
    table.add_row("Missing references", str(len(report.missing_references)))
    table.add_row("Missing anchors", str(len(report.missing_anchors)))
    table.add_row("Missing map images", str(len(report.missing_assets)))
    table.add_row("Unreferenced assets", str(len(report.unreferenced)))
    console.print(table)

    if report.failed:
        console.print(f"[yellow]Skipped {len(report.failed)} unreadable document(s):[/yellow]")
        for path in report.failed:
            console.print(f"  [dim]{path}[/dim]")


VAULT_OPTION = typer.Option(
    None,
    "--vault",
    "-v",
    help="Path to vault directory (default: VAULTCHECK_VAULT env, repo config, or cwd)",
)
CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to config.toml (default: <vault>/.vaultcheck/config.toml)",
)
TODAY_OPTION = typer.Option(
    None,
    "--today",
    help="Reference date for periodic-note suppression (YYYY-MM-DD)",
)
WORKERS_OPTION = typer.Option(None, "--workers", "-w", help="Parallel document readers")
VERBOSE_OPTION = typer.Option(False, "--verbose", help="Log progress and every lost link")


@app.command()
def check(
    vault_path: Optional[str] = VAULT_OPTION,
    config_path: Optional[str] = CONFIG_OPTION,
    report: Optional[str] = typer.Option(
        None,
        "--report",
        "-r",
        help="Vault-relative report document (default: assets/no-sync/missing.md)",
    ),
    today: Optional[str] = TODAY_OPTION,
    workers: Optional[int] = WORKERS_OPTION,
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Print the updated report document instead of writing it",
    ),
    verbose: bool = VERBOSE_OPTION,
):
    """Scan the vault and rewrite the section between the report markers.

    Running twice over an unchanged vault leaves the report untouched.
    """
    _setup_logging(verbose)
    vault_root, config = _load(vault_path, config_path, report, workers)

    try:
        run = check_vault(vault_root, config, today=_parse_today(today), dry_run=dry_run)
    except VaultCheckError as e:
        console.print(f"[red]Error: {e}[/red]")
        console.print("[dim]Create the report document with the begin/end markers first[/dim]")
        raise typer.Exit(code=1)

    if dry_run:
        console.print(run.text, markup=False, highlight=False)
    _print_summary(run.report)

    if run.written:
        console.print(f"[green]+[/green] Updated {run.report_file}")
    elif not dry_run:
        console.print(f"[dim]Report already up to date: {run.report_file}[/dim]")


@app.command()
def show(
    vault_path: Optional[str] = VAULT_OPTION,
    config_path: Optional[str] = CONFIG_OPTION,
    today: Optional[str] = TODAY_OPTION,
    workers: Optional[int] = WORKERS_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Scan the vault and print findings without touching any file."""
    _setup_logging(verbose)
    vault_root, config = _load(vault_path, config_path, None, workers)
    report = Checker(FilesystemVault(vault_root), config, today=_parse_today(today)).run()

    if report.missing_references:
        table = Table(title="Missing reference")
        table.add_column("Source", style="cyan")
        table.add_column("Target", style="red")
        for f in report.missing_references:
            table.add_row(f.source, f.target)
        console.print(table)

    if report.missing_anchors:
        table = Table(title="Missing heading or block reference")
        table.add_column("Source", style="cyan")
        table.add_column("Anchor", style="red")
        table.add_column("Target")
        for f in report.missing_anchors:
            table.add_row(f.source, f.anchor, f.detail or f.target)
        console.print(table)

    if report.missing_assets:
        table = Table(title="Missing map image reference")
        table.add_column("Map Source", style="cyan")
        table.add_column("Missing", style="red")
        for f in report.missing_assets:
            table.add_row(f.source, f.asset)
        console.print(table)

    if report.unreferenced:
        console.print("[bold]Unreferenced assets[/bold]")
        for asset in report.unreferenced:
            console.print(f"  - {asset.path}")

    _print_summary(report)


@app.command()
def version():
    """Show vaultcheck version."""
    from . import __version__
    console.print(f"vaultcheck v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
