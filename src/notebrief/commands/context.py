"""Meeting context retrieval commands for notebrief."""
import asyncio
import json
import typer
from pathlib import Path
from typing import Any, Optional
from pydantic import ValidationError
from ..models import QueryContext, RetrievalConfig
from ..storage import read_json, write_json
from .index import index_vault, load_config_or_exit

OVERRIDE_OPTIONS = {"max_results": "--limit", "min_relevance_score": "--min-score"}


def _load_weights_file(path: Path) -> dict[str, Any]:
    """Read relevance weights from a JSON file.

    Validation happens in the service, which falls back to defaults and
    reports the substitution.
    """
    if not path.exists():
        typer.echo(f"Error: Weights file not found: {path}", err=True)
        raise typer.Exit(1)

    try:
        return read_json(path)
    except json.JSONDecodeError as e:
        typer.echo(f"Error: Weights file is not valid JSON: {e}", err=True)
        raise typer.Exit(1)


def _override_retrieval(base: RetrievalConfig, updates: dict[str, Any]) -> RetrievalConfig:
    """Apply command-line overrides, exiting if they break a config bound."""
    try:
        return RetrievalConfig.model_validate({**base.model_dump(), **updates})
    except ValidationError as e:
        for error in e.errors():
            option = OVERRIDE_OPTIONS.get(str(error["loc"][0]), str(error["loc"][0]))
            typer.echo(f"Error: Invalid {option}: {error['msg']}", err=True)
        raise typer.Exit(1)


def context(
    vault: Path = typer.Argument(Path("."), help="Vault directory"),
    title: str = typer.Option("", "--title", "-T", help="Meeting title"),
    attendees: Optional[list[str]] = typer.Option(None, "--attendee", "-a", help="Attendee, e.g. 'Sarah Chen <sarah@acme.com>' (repeatable)"),
    topics: Optional[list[str]] = typer.Option(None, "--topic", "-t", help="Meeting topic (repeatable)"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum notes returned (default: from config)"),
    min_score: Optional[float] = typer.Option(None, "--min-score", help="Minimum relevance score (default: from config)"),
    weights_file: Optional[Path] = typer.Option(None, "--weights-file", "-w", help="JSON file of relevance weights"),
    snippets: bool = typer.Option(True, "--snippets/--no-snippets", help="Include excerpts"),
    as_json: bool = typer.Option(False, "--json", help="Output JSON"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output to file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show indexing stages and notices"),
) -> None:
    """Find notes relevant to an upcoming meeting.

    Indexes the vault in memory, then ranks notes by title and content
    similarity, tag overlap with topics, attendee mentions and recency.

    Example:
        notebrief context ~/notes --title "Planning Sync" -a "Sarah Chen"
        notebrief q ~/notes -T "Q4 roadmap" -t planning -t budget --json
    """
    if not title.strip() and not attendees and not topics:
        typer.echo("Error: Give at least one of --title, --attendee or --topic.", err=True)
        raise typer.Exit(1)

    config = load_config_or_exit(vault)

    updates: dict[str, Any] = {"include_snippets": snippets}
    if limit is not None:
        updates["max_results"] = limit
    if min_score is not None:
        updates["min_relevance_score"] = min_score
    retrieval_config = _override_retrieval(config.retrieval, updates)

    weights: Any = config.relevance_weights
    if weights_file:
        weights = _load_weights_file(weights_file)

    query = QueryContext(title=title, attendees=tuple(attendees or ()), topics=tuple(topics or ()))

    service, _, status = index_vault(vault, config, verbose=verbose)
    try:
        result = asyncio.run(service.retrieve(query, weights, retrieval_config))
    finally:
        service.dispose()

    if output:
        if as_json:
            write_json(output, result.to_dict())
        else:
            output.write_text(result.to_markdown(include_snippets=snippets), encoding="utf-8")
        typer.echo(f"Context for {len(result.matches)} notes written to {output}")
        return

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        typer.echo(result.to_markdown(include_snippets=snippets))
        typer.echo(f"({status.document_count} files indexed)")
