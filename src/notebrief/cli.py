"""notebrief CLI - Meeting context from your notes."""

import logging

import typer

from .commands import config_cmd
from .commands import context as context_cmd
from .commands import index as index_cmd
from .commands import init as init_cmd

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="notebrief",
    help="Find the notes that matter for an upcoming meeting",
    no_args_is_help=True,
)


@app.callback()
def main(ctx: typer.Context) -> None:
    """notebrief - Meeting context from your notes."""
    from .logging import log_from_cli, setup_logging
    setup_logging()

    try:
        log_from_cli()
    except OSError as e:
        # The command itself still runs
        logger.debug("Could not write command log: %s", e)


app.command(name="init")(init_cmd.init)
app.command(name="index")(index_cmd.index)
app.command(name="context")(context_cmd.context)
app.command(name="q", help="Short alias for context.")(context_cmd.context)
app.add_typer(config_cmd.app, name="config", help="Show or change vault settings.")


if __name__ == "__main__":
    app()
