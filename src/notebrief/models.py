"""Pydantic models for notebrief records."""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


def _stringify(value: Any) -> str:
    """Flatten a frontmatter value into display text."""
    if value is None:
        return ""
    if isinstance(value, (list, tuple, set, frozenset)):
        return ", ".join(_stringify(v) for v in value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


# === Documents ===

class Document(BaseModel):
    """One indexed note. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    path: str = ""
    title: str
    content: str = ""
    tags: frozenset[str] = Field(default_factory=frozenset)
    frontmatter: dict[str, str] = Field(default_factory=dict)
    links: frozenset[str] = Field(default_factory=frozenset)
    last_modified: datetime = Field(
        validation_alias=AliasChoices("last_modified", "lastModified", "modified")
    )

    @model_validator(mode="before")
    @classmethod
    def _default_id_from_path(cls, data: Any) -> Any:
        # Notes are identified by path so ids survive a re-index
        if isinstance(data, dict):
            data = dict(data)
            if not data.get("id") and data.get("path"):
                data["id"] = data["path"]
            if not data.get("path") and data.get("id"):
                data["path"] = data["id"]
        return data

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be empty")
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value: Any) -> Any:
        if value is None:
            return frozenset()
        if isinstance(value, str):
            value = value.replace(",", " ").split()
        tags = set()
        for tag in value:
            tag = str(tag).strip().lstrip("#").lower()
            if tag:
                tags.add(tag)
        return frozenset(tags)

    @field_validator("links", mode="before")
    @classmethod
    def _normalize_links(cls, value: Any) -> Any:
        if value is None:
            return frozenset()
        if isinstance(value, str):
            value = [value]
        return frozenset(str(link) for link in value if str(link).strip())

    @field_validator("frontmatter", mode="before")
    @classmethod
    def _flatten_frontmatter(cls, value: Any) -> Any:
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError("frontmatter must be a mapping")
        return {str(k): _stringify(v) for k, v in value.items()}

    @field_validator("last_modified")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


# === Queries ===

class QueryContext(BaseModel):
    """Meeting-derived search input."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    attendees: tuple[str, ...] = ()
    topics: tuple[str, ...] = ()


class RelevanceWeights(BaseModel):
    """Multipliers for each scoring factor. Every weight lies in [0, 1]."""

    model_config = ConfigDict(frozen=True, extra="forbid", allow_inf_nan=False)

    title: float = Field(0.4, ge=0.0, le=1.0)
    content: float = Field(0.3, ge=0.0, le=1.0)
    tags: float = Field(0.2, ge=0.0, le=1.0)
    attendees: float = Field(0.1, ge=0.0, le=1.0)
    search_bonus: float = Field(
        0.2, ge=0.0, le=1.0,
        validation_alias=AliasChoices("search_bonus", "searchBonus", "flexSearchBonus"),
    )
    recency: float = Field(
        0.15, ge=0.0, le=1.0,
        validation_alias=AliasChoices("recency", "recencyBonus"),
    )


DEFAULT_RELEVANCE_WEIGHTS = RelevanceWeights()


class ContextMatch(BaseModel):
    """A scored association between a query and one document."""

    model_config = ConfigDict(frozen=True)

    document: Document
    relevance_score: float = Field(ge=0.0, le=1.0)
    matched_fields: frozenset[str] = Field(default_factory=frozenset)
    snippets: tuple[str, ...] = ()


# === Index status ===

class IndexStatus(BaseModel):
    """Snapshot of the current index generation."""

    model_config = ConfigDict(frozen=True)

    is_indexed: bool = False
    document_count: int = 0
    failed_count: int = 0


class IndexingStage(str, Enum):
    """Stage reported while an index build runs."""

    SCANNING = "scanning"
    PARSING = "parsing"
    COMPLETE = "complete"
    ERROR = "error"


class IndexingProgress(BaseModel):
    """Progress payload pushed to status listeners."""

    stage: IndexingStage
    current: int = 0
    total: int = 0
    current_document: Optional[str] = None
    error: Optional[str] = None


class ServiceState(str, Enum):
    """Lifecycle state of the retrieval service."""

    IDLE = "idle"
    INDEXING = "indexing"
    INDEXED = "indexed"
    ERROR = "error"


# === Config ===

class RetrievalConfig(BaseModel):
    """Tunables for a retrieval call."""

    enabled: bool = True
    max_results: int = Field(10, ge=1)
    min_relevance_score: float = Field(0.15, ge=0.0, le=1.0)
    include_snippets: bool = True
    snippet_length: int = Field(200, ge=20)
    max_snippets: int = Field(3, ge=0)
    content_sample_chars: int = Field(10_000, ge=1)
    min_candidates: int = Field(5, ge=0)  # Below this, attendee matches are added as fallback


class NotebriefConfig(BaseModel):
    """Configuration stored in .notebrief/config.json."""

    version: str = "0.1.0"
    command_logging: bool = True  # Log command invocations to .notebrief-logs/
    exclude_patterns: list[str] = Field(default_factory=lambda: [
        ".*",              # Dot-prefixed folders (.obsidian, .git, .trash, etc.)
        "node_modules",
        "_templates",
        ".notebrief",
    ])
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    relevance_weights: RelevanceWeights = Field(default_factory=RelevanceWeights)
