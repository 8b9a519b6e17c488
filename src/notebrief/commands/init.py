"""Initialize notebrief in a vault."""

import typer
from pathlib import Path
from ..config import CONFIG_FILE, NOTEBRIEF_DIR, get_notebrief_path
from ..logging import LOGS_DIR
from ..storage import write_json

GITIGNORE_ENTRIES = [f"{NOTEBRIEF_DIR}/", f"{LOGS_DIR}/"]


def _ensure_gitignore(vault: Path) -> list[str]:
    """Append notebrief's local folders to .gitignore when the vault is a git repo.

    Returns the entries that were added.
    """
    if not (vault / ".git").exists():
        return []

    gitignore = vault / ".gitignore"
    lines = gitignore.read_text().splitlines() if gitignore.exists() else []
    missing = [entry for entry in GITIGNORE_ENTRIES if entry not in lines]
    if not missing:
        return []

    block = ["# notebrief local data"] if not lines else []
    if lines and lines[-1].strip():
        block.append("")
    block.extend(missing)
    with gitignore.open("a") as f:
        f.write("\n".join(block) + "\n")
    return missing


def init(
    path: Path = typer.Argument(
        Path("."),
        help="Vault to initialize notebrief in"
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration"
    ),
) -> None:
    """Set up a notes vault for notebrief.

    Writes .notebrief/config.json with default retrieval settings. Notes are
    indexed in memory on each run, so the config is all that is stored.

    Example:
        notebrief init ~/notes
        notebrief init ~/notes --force      # Back to defaults
    """
    if not path.is_dir():
        typer.echo(f"Error: Not a directory: {path}", err=True)
        raise typer.Exit(1)

    notebrief_path = get_notebrief_path(path)
    if notebrief_path.exists() and not force:
        typer.echo(f"notebrief already initialized at {notebrief_path}")
        typer.echo("Use --force to reinitialize")
        raise typer.Exit(1)

    from ..models import NotebriefConfig

    notebrief_path.mkdir(parents=True, exist_ok=True)
    write_json(notebrief_path / CONFIG_FILE, NotebriefConfig())
    typer.echo(f"Initialized notebrief at {notebrief_path}")

    added = _ensure_gitignore(path)
    if added:
        typer.echo(f"  Added {', '.join(added)} to .gitignore")

    typer.echo()
    typer.echo("Next: 'notebrief index' to check the vault, then 'notebrief context --title \"...\"'.")
