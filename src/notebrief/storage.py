"""JSON file helpers shared by config and CLI output."""

import json
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel


class NotebriefEncoder(json.JSONEncoder):
    """Encodes datetimes as ISO strings and tag sets as sorted lists."""

    def default(self, obj: object) -> object:
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, (set, frozenset)):
            return sorted(obj)
        return super().default(obj)


def read_json(path: Path) -> dict:
    """Parse a UTF-8 JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def write_json(path: Path, data: dict | BaseModel) -> None:
    """Write a dict or pydantic model as indented JSON, creating parent folders."""
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, cls=NotebriefEncoder)
