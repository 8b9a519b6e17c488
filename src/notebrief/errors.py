"""Error variants raised and reported by the retrieval engine.

Each error carries a ``kind`` tag and structured fields set where the error
originates, so callers never have to classify failures from message text.
"""
from typing import Any, Optional


class RetrievalError(Exception):
    """Base class for all notebrief retrieval errors."""

    kind: str = "retrieval"

    def to_dict(self) -> dict[str, Any]:
        """Structured form for logs and notices."""
        return {"kind": self.kind, "message": str(self)}


class DocumentParseError(RetrievalError):
    """A single document could not be validated or tokenized.

    Recoverable: the document is excluded and counted as failed.
    """

    kind = "document_parse"

    def __init__(self, document_id: Optional[str], reason: str):
        self.document_id = document_id
        self.reason = reason
        super().__init__(f"Failed to index {document_id or '<unknown>'}: {reason}")

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(document_id=self.document_id, reason=self.reason)
        return data


class ConcurrentIndexError(RetrievalError):
    """An index request arrived while another build was in flight."""

    kind = "concurrent_index"

    QUEUED = "queued"
    DROPPED = "dropped"

    def __init__(self, policy: str):
        self.policy = policy
        if policy == self.QUEUED:
            message = "Index build in progress; request queued to run next"
        else:
            message = "Index build in progress and one already queued; request dropped"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["policy"] = self.policy
        return data


class IndexUnavailableError(RetrievalError):
    """A query was made with no usable index generation."""

    kind = "index_unavailable"

    def __init__(self, state: str):
        self.state = state
        super().__init__(f"No index available (service state: {state})")

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["state"] = self.state
        return data


class InvalidWeightsError(RetrievalError):
    """Relevance weights failed validation; defaults were used instead."""

    kind = "invalid_weights"

    def __init__(self, errors: list[dict[str, Any]]):
        self.errors = errors
        fields = ", ".join(
            ".".join(str(part) for part in error.get("loc", ())) or "<root>"
            for error in errors
        )
        super().__init__(f"Invalid relevance weights ({fields}); using defaults")

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["errors"] = self.errors
        return data


class IndexBuildError(RetrievalError):
    """The index build failed as a whole (not a per-document failure)."""

    kind = "index_build"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Index build failed: {reason}")

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["reason"] = self.reason
        return data
