"""Retrieval result envelope and its display formats."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from ..models import ContextMatch, QueryContext


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def describe_query(query: QueryContext) -> str:
    """One-line summary of a meeting query."""
    parts = [query.title or "(untitled meeting)"]
    if query.attendees:
        parts.append(f"with {', '.join(query.attendees)}")
    if query.topics:
        parts.append(f"on {', '.join(query.topics)}")
    return " ".join(parts)


@dataclass
class ContextResult:
    """Ranked matches for one meeting plus retrieval metadata."""
    query: QueryContext
    matches: list[ContextMatch] = field(default_factory=list)
    total_matches: int = 0  # Matches above the threshold, before capping
    search_time_ms: float = 0.0
    retrieved_at: datetime = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready form for --json and --output."""
        return {
            "query": self.query.model_dump(mode="json"),
            "matches": [
                {
                    "path": m.document.path,
                    "title": m.document.title,
                    "relevance_score": round(m.relevance_score, 4),
                    "matched_fields": sorted(m.matched_fields),
                    "snippets": list(m.snippets),
                    "last_modified": m.document.last_modified.isoformat(),
                }
                for m in self.matches
            ],
            "total_matches": self.total_matches,
            "search_time_ms": round(self.search_time_ms, 2),
            "retrieved_at": self.retrieved_at.isoformat(),
        }

    def to_markdown(self, include_snippets: bool = True) -> str:
        """Convert to markdown for display/consumption.

        Args:
            include_snippets: Whether to list each match's excerpts.

        Returns:
            Markdown-formatted string
        """
        lines = [
            f"# Context for: {describe_query(self.query)}",
            "",
        ]

        if not self.matches:
            lines.append("No relevant notes found.")
            return "\n".join(lines)

        shown = len(self.matches)
        lines.append(
            f"*{shown} of {self.total_matches} relevant notes ({self.search_time_ms:.0f}ms)*"
        )
        lines.append("")

        for match in self.matches:
            doc = match.document
            lines.append(f"## {doc.title}")
            lines.append(f"**Path:** {doc.path}")
            lines.append(f"**Score:** {match.relevance_score:.2f}")
            if match.matched_fields:
                lines.append(f"**Matched:** {', '.join(sorted(match.matched_fields))}")
            if doc.tags:
                lines.append(f"**Tags:** {', '.join(sorted(doc.tags))}")

            if include_snippets and match.snippets:
                lines.append("")
                for snippet in match.snippets:
                    lines.append(f"> {snippet}")

            lines.append("")

        return "\n".join(lines)
