"""Configuration and environment loading for notebrief."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import ValidationError

NOTEBRIEF_DIR = ".notebrief"
CONFIG_FILE = "config.json"

LOG_LEVEL_ENV = "NOTEBRIEF_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"

# Note files picked up by the vault loader
NOTE_EXTENSIONS = {".md", ".markdown"}

# Scoring and extraction bounds
CONTENT_SAMPLE_CHARS = 10_000   # Content prefix used for scoring and snippets
MATCH_THRESHOLD = 0.005         # Sub-score needed to report a field as matched
MIN_ATTENDEE_NAME_LENGTH = 3

# Recency steps: (max age in days, bonus fraction)
RECENCY_STEPS = [
    (7, 1.0),
    (30, 0.7),
    (90, 0.4),
]

# Frontmatter keys consulted (in order) for a note's effective date
FRONTMATTER_DATE_FIELDS = ["date", "created", "updated", "modified", "timestamp"]


def load_env() -> bool:
    """Load a .env file from the source checkout or the working directory.

    Returns:
        Whether a .env file was found.
    """
    checkout = Path(__file__).resolve().parents[2]
    for env_file in (checkout / ".env", Path.cwd() / ".env"):
        if env_file.exists():
            load_dotenv(env_file)
            return True
    return False


def get_notebrief_path(base_path: Optional[Path] = None) -> Path:
    """The .notebrief/ directory of a vault (cwd if base_path is None)."""
    return (base_path or Path.cwd()) / NOTEBRIEF_DIR


def get_log_level() -> str:
    """Log level for the CLI, from the environment."""
    load_env()
    return os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).upper()


def load_config(base_path: Optional[Path] = None):
    """Load the vault's config.json, falling back to defaults.

    A missing file yields defaults. A file that fails validation raises
    ValueError naming the problem so the CLI can report it.

    Args:
        base_path: Vault root containing .notebrief/. Defaults to cwd.

    Returns:
        NotebriefConfig instance.
    """
    from .models import NotebriefConfig
    from .storage import read_json

    config_file = get_notebrief_path(base_path) / CONFIG_FILE
    if not config_file.exists():
        return NotebriefConfig()

    try:
        return NotebriefConfig.model_validate(read_json(config_file))
    except ValidationError as e:
        raise ValueError(f"Invalid config at {config_file}: {e}") from e


def find_notebrief_root(start_path: Optional[Path] = None) -> Optional[Path]:
    """Nearest directory at or above start_path holding a .notebrief/ folder.

    Commands run from inside a vault's subfolders still find its config and
    command log this way. Returns None outside any initialized vault.
    """
    current = (start_path or Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if (candidate / NOTEBRIEF_DIR).exists():
            return candidate
    return None
