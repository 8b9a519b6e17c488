"""Configuration management commands for notebrief."""
import typer
from pathlib import Path
from typing import Any
from pydantic import ValidationError
from ..config import CONFIG_FILE, get_notebrief_path, load_config
from ..storage import write_json, read_json
from ..models import NotebriefConfig

app = typer.Typer()


def parse_value(value: str) -> Any:
    """Parse a command-line value into bool, int, float or str."""
    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False
    for cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            pass
    return value


def set_dotted(data: dict, key: str, value: Any) -> None:
    """Set ``a.b.c`` style keys, creating intermediate sections."""
    *parents, leaf = key.split(".")
    section = data
    for part in parents:
        child = section.get(part)
        if not isinstance(child, dict):
            child = {}
            section[part] = child
        section = child
    section[leaf] = value


def flatten(data: dict, prefix: str = "") -> dict[str, Any]:
    """Inverse of set_dotted: nested sections become ``a.b`` keys."""
    flat: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict):
            flat.update(flatten(value, f"{prefix}{key}."))
        else:
            flat[f"{prefix}{key}"] = value
    return flat


def _require_initialized(base: Path) -> Path:
    notebrief_path = get_notebrief_path(base)
    if not notebrief_path.exists():
        typer.echo("Error: notebrief not initialized. Run 'notebrief init' first.", err=True)
        raise typer.Exit(1)
    return notebrief_path


@app.command("show")
def config_show(
    base: Path = typer.Option(Path("."), "--base", "-b", help="Vault path"),
    plain: bool = typer.Option(False, "--plain", "-p", help="Plain text output"),
) -> None:
    """Print every setting, flagging values changed from the defaults.

    Example:
        notebrief config show --base ~/notes
    """
    from rich.console import Console
    from rich.table import Table
    from rich import box

    notebrief_path = _require_initialized(base)
    console = Console(force_terminal=not plain, no_color=plain)

    try:
        config = load_config(base)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    current = flatten(config.model_dump(mode="json"))
    defaults = flatten(NotebriefConfig().model_dump(mode="json"))

    table = Table(title=str(notebrief_path / CONFIG_FILE), box=box.SIMPLE_HEAD, header_style="bold")
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value")
    table.add_column("", justify="right")

    for key, value in current.items():
        if isinstance(value, list):
            value = ", ".join(value) or "(none)"
        marker = "" if current[key] == defaults.get(key) else "[green]custom[/green]"
        table.add_row(key, str(value), marker)

    console.print(table)


@app.command("reset")
def config_reset(
    base: Path = typer.Option(Path("."), "--base", "-b", help="Vault path"),
) -> None:
    """Overwrite config.json with the default settings."""
    notebrief_path = _require_initialized(base)
    write_json(notebrief_path / CONFIG_FILE, NotebriefConfig())
    typer.echo(f"Reset {notebrief_path / CONFIG_FILE} to defaults.")


@app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Config key to set, e.g. retrieval.max_results"),
    value: str = typer.Argument(..., help="Value to set"),
    base: Path = typer.Option(Path("."), "--base", "-b", help="Vault path"),
) -> None:
    """Change one setting and validate the whole config before saving it.

    Nested settings use dotted keys; exclude_patterns takes a comma list.

    Examples:
        notebrief config set retrieval.max_results 5
        notebrief config set relevance_weights.recency 0.3
        notebrief config set exclude_patterns ".*,_templates,archive"
    """
    notebrief_path = _require_initialized(base)
    config_file = notebrief_path / CONFIG_FILE
    config = read_json(config_file) if config_file.exists() else NotebriefConfig().model_dump(mode="json")

    if key == "exclude_patterns":
        parsed_value: Any = [p.strip() for p in value.split(",") if p.strip()]
    else:
        parsed_value = parse_value(value)

    set_dotted(config, key, parsed_value)

    try:
        validated = NotebriefConfig.model_validate(config)
    except ValidationError as e:
        typer.echo(f"Error: Invalid value for '{key}':", err=True)
        for error in e.errors():
            location = ".".join(str(part) for part in error["loc"])
            typer.echo(f"  {location}: {error['msg']}", err=True)
        raise typer.Exit(1)

    write_json(config_file, validated)
    typer.echo(f"Set {key} = {parsed_value}")
