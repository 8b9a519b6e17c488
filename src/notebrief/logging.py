"""Logging for notebrief.

Library modules log through ``logging.getLogger(__name__)``. The CLI adds a
stderr handler once via ``setup_logging`` and appends every invocation to the
vault's command log.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

# Kept outside .notebrief/ so the log survives `init --force` and config resets
LOGS_DIR = ".notebrief-logs"
COMMAND_LOG_FILE = "commands.log"
MAX_LOG_SIZE_MB = 10

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
FIELD_SEPARATOR = " | "

# Commands whose first argument is a subcommand (e.g. "config set")
GROUP_COMMANDS = {"config"}


def setup_logging(level: Optional[str] = None) -> None:
    """Attach a stderr handler to the notebrief logger.

    Args:
        level: Level name. Defaults to NOTEBRIEF_LOG_LEVEL or WARNING.
    """
    from .config import get_log_level

    logger = logging.getLogger("notebrief")
    if logger.handlers:
        return

    level_name = (level or get_log_level()).upper()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level_name, logging.WARNING))


class CommandLog:
    """Append-only record of CLI invocations for one vault.

    Each line is ``timestamp | command | args``. The file is rotated to a
    single ``.1`` backup once it passes MAX_LOG_SIZE_MB.
    """

    def __init__(self, base_path: Optional[Path] = None):
        self.base_path = base_path or Path.cwd()
        self.directory = self.base_path / LOGS_DIR
        self.file = self.directory / COMMAND_LOG_FILE

    @property
    def enabled(self) -> bool:
        """Only initialized vaults are logged, and only if config allows it."""
        from .config import get_notebrief_path, load_config

        if not get_notebrief_path(self.base_path).exists():
            return False
        try:
            return load_config(self.base_path).command_logging
        except ValueError:
            # A broken config should not silence the log that helps debug it
            return True

    def record(self, command: str, args: list[str]) -> None:
        if not self.enabled:
            return

        self.directory.mkdir(parents=True, exist_ok=True)
        self._rotate()

        quoted = " ".join(f'"{arg}"' if " " in arg else arg for arg in args)
        line = FIELD_SEPARATOR.join([datetime.now().isoformat(), command, quoted])
        with self.file.open("a", encoding="utf-8") as f:
            f.write(line + "\n")

    def _rotate(self) -> None:
        if not self.file.exists():
            return
        if self.file.stat().st_size <= MAX_LOG_SIZE_MB * 1024 * 1024:
            return
        self.file.replace(self.file.with_name(f"{COMMAND_LOG_FILE}.1"))

    def entries(self) -> list[dict[str, str]]:
        """Parsed log lines with keys timestamp, command and args."""
        if not self.file.exists():
            return []

        entries = []
        for line in self.file.read_text(encoding="utf-8").splitlines():
            timestamp, _, rest = line.partition(FIELD_SEPARATOR)
            command, _, args = rest.partition(FIELD_SEPARATOR)
            if command:
                entries.append({"timestamp": timestamp, "command": command, "args": args})
        return entries


def split_command(argv: list[str]) -> tuple[str, list[str]]:
    """Split CLI arguments into the command name and its arguments."""
    if not argv or argv[0].startswith("-"):
        return "unknown", list(argv)

    words = 1
    if argv[0] in GROUP_COMMANDS and len(argv) > 1 and not argv[1].startswith("-"):
        words = 2
    return " ".join(argv[:words]), list(argv[words:])


def log_from_cli() -> None:
    """Record the current invocation in the enclosing vault's command log."""
    from .config import find_notebrief_root

    if len(sys.argv) < 2:
        return
    command, args = split_command(sys.argv[1:])
    CommandLog(find_notebrief_root()).record(command, args)
