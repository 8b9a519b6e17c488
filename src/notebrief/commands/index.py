"""Vault indexing command for notebrief."""
import asyncio
import typer
from pathlib import Path
from ..config import load_config
from ..errors import RetrievalError
from ..models import IndexingProgress, IndexingStage, IndexStatus, NotebriefConfig, ServiceState
from ..retrieval.service import ContextRetrievalService
from ..vault.loader import VaultScan, load_vault


def load_config_or_exit(vault: Path) -> NotebriefConfig:
    """Load the vault config, exiting with a message if it is invalid."""
    try:
        return load_config(vault)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def index_vault(
    vault: Path,
    config: NotebriefConfig,
    verbose: bool = False,
) -> tuple[ContextRetrievalService, VaultScan, IndexStatus]:
    """Scan a vault and build a ready-to-query service.

    Args:
        vault: Vault directory.
        config: Loaded vault configuration.
        verbose: Echo indexing stages and notices to stderr.

    Returns:
        (service, scan, status)
    """
    if not vault.is_dir():
        typer.echo(f"Error: Not a directory: {vault}", err=True)
        raise typer.Exit(1)

    scan = load_vault(vault, config.exclude_patterns)
    service = ContextRetrievalService(config=config.retrieval)

    if verbose:
        def on_progress(event: IndexingProgress) -> None:
            if event.stage is not IndexingStage.PARSING:
                typer.echo(f"[{event.stage.value}] {event.current}/{event.total}", err=True)

        def on_notice(error: RetrievalError) -> None:
            typer.echo(f"[notice] {error}", err=True)

        service.subscribe(on_progress)
        service.subscribe_notices(on_notice)

    status = asyncio.run(service.reindex(scan.documents))
    return service, scan, status


def index(
    vault: Path = typer.Argument(Path("."), help="Vault directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show indexing stages"),
    plain: bool = typer.Option(False, "--plain", "-p", help="Plain text output"),
) -> None:
    """Index a vault and report what was found.

    The index lives in memory only; this command is a dry run that shows
    how many notes are searchable and which ones failed.

    Example:
        notebrief index ~/notes
        notebrief index ~/notes --verbose
    """
    from rich.console import Console
    from rich.table import Table
    from rich import box

    config = load_config_or_exit(vault)
    service, scan, status = index_vault(vault, config, verbose=verbose)
    console = Console(force_terminal=not plain, no_color=plain)

    table = Table(box=box.ROUNDED, show_header=True, header_style="bold")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right")
    table.add_row("Notes found", str(len(scan.documents) + len(scan.errors)))
    table.add_row("Indexed", str(status.document_count))
    table.add_row("Failed to index", str(status.failed_count))
    table.add_row("Unreadable", str(len(scan.errors)))
    console.print(f"[dim]Vault: {vault.resolve()}[/dim]")
    console.print(table)

    problems = [(e["path"], e["error"]) for e in scan.errors]
    problems.extend((f.document_id or "?", f.reason) for f in service.index.failures)
    if problems:
        console.print()
        console.print(f"[bold]Problems[/bold] ({len(problems)}):")
        for path, reason in problems[:10]:
            console.print(f"  [dim]-[/dim] {path}: {reason}")
        if len(problems) > 10:
            console.print(f"  [dim]... and {len(problems) - 10} more[/dim]")

    failed = service.state is ServiceState.ERROR
    service.dispose()

    if failed:
        typer.echo("Error: Index build failed.", err=True)
        raise typer.Exit(1)
