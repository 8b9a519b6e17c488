"""In-memory multi-field document index with forward (prefix) tokenization."""
import asyncio
import logging
import re
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import ValidationError

from ..errors import ConcurrentIndexError, DocumentParseError, IndexBuildError
from ..models import Document, IndexingStage, IndexStatus
from .status import StatusChannel

logger = logging.getLogger(__name__)

INDEXED_FIELDS = ("title", "content", "tags", "frontmatter")

WORD_PATTERN = re.compile(r"\w+")


def split_words(text: str) -> list[str]:
    """Lowercase words of ``text``; punctuation-only text falls back to whitespace split."""
    lowered = text.lower()
    return WORD_PATTERN.findall(lowered) or lowered.split()


def forward_tokens(text: str) -> set[str]:
    """Every prefix of every word in ``text``, so partial words match."""
    tokens: set[str] = set()
    for word in set(split_words(text)):
        for end in range(1, len(word) + 1):
            tokens.add(word[:end])
    return tokens


def field_text(document: Document, field_name: str) -> str:
    """Searchable text of one indexed field."""
    if field_name == "title":
        return document.title
    if field_name == "content":
        return document.content
    if field_name == "tags":
        return " ".join(sorted(document.tags))
    if field_name == "frontmatter":
        return " ".join(f"{k} {v}" for k, v in document.frontmatter.items())
    raise ValueError(f"Unknown field: {field_name}")


def query_words(terms: str | Iterable[str]) -> list[str]:
    """Normalize search terms into lookup words.

    Single-character words are dropped unless nothing else remains, so a
    stray "a" in a meeting title does not match every note.
    """
    if isinstance(terms, str):
        terms = [terms]

    seen: dict[str, None] = {}
    for term in terms:
        if not isinstance(term, str):
            continue
        for word in split_words(term):
            seen.setdefault(word)

    words = list(seen)
    longer = [w for w in words if len(w) > 1]
    return longer or words


@dataclass
class _Generation:
    """One complete build of the index."""

    documents: dict[str, Document] = field(default_factory=dict)
    postings: dict[str, dict[str, set[str]]] = field(
        default_factory=lambda: {name: {} for name in INDEXED_FIELDS}
    )
    failures: list[DocumentParseError] = field(default_factory=list)

    def add(self, document: Document) -> None:
        # Tokenize every field before touching postings so a failure leaves no trace
        field_tokens = {name: forward_tokens(field_text(document, name)) for name in INDEXED_FIELDS}
        for name, tokens in field_tokens.items():
            postings = self.postings[name]
            for token in tokens:
                postings.setdefault(token, set()).add(document.id)
        self.documents[document.id] = document

    def dispose(self) -> None:
        self.documents.clear()
        for postings in self.postings.values():
            postings.clear()
        self.failures.clear()


def _raw_id(raw: Any) -> Optional[str]:
    if isinstance(raw, Document):
        return raw.id
    if isinstance(raw, Mapping):
        value = raw.get("id") or raw.get("path")
        return str(value) if value else None
    return None


def _read_batch(documents: Iterable[Any]) -> list[Any]:
    try:
        return list(documents)
    except Exception as e:
        raise IndexBuildError(f"could not read documents: {e}") from e


def _describe_validation(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in e['loc']) or 'document'}: {e['msg']}"
        for e in error.errors()
    )


class DocumentIndex:
    """Searchable structure over title, content, tags and frontmatter.

    Only ``index_documents`` mutates the index. It builds a new generation
    off to the side and swaps it in when complete; readers always see one
    whole generation.

    Overlapping builds use a single pending slot: a request arriving during a
    build is queued to run right after it; a further request while one is
    already queued is dropped as redundant. All callers wait for the builds
    to finish and get the final status.
    """

    def __init__(self, channel: Optional[StatusChannel] = None):
        self.channel = channel or StatusChannel()
        self._generation: Optional[_Generation] = None
        self._in_flight = False
        self._pending: Optional[list[Any]] = None
        self._idle: Optional[asyncio.Event] = None

    @property
    def is_indexing(self) -> bool:
        return self._in_flight

    async def index_documents(self, documents: Iterable[Any]) -> IndexStatus:
        """Replace the whole index with ``documents``.

        Raises:
            IndexBuildError: The build failed as a whole. The previous
                generation stays in place.
        """
        if self._in_flight:
            return await self._join(documents)

        self._in_flight = True
        self._idle = asyncio.Event()
        batch: Optional[Iterable[Any]] = documents
        try:
            while batch is not None:
                await self._build(batch)
                batch, self._pending = self._pending, None
        finally:
            # A failed build discards any queued request as well
            self._pending = None
            self._in_flight = False
            self._idle.set()

        return self.get_status()

    async def _join(self, documents: Iterable[Any]) -> IndexStatus:
        """Wait out the running build, queueing ``documents`` if the slot is free.

        Unreadable input is not queued; it fails this caller once the running
        build has finished, leaving that build's generation in place.
        """
        failure: Optional[IndexBuildError] = None
        if self._pending is None:
            try:
                self._pending = _read_batch(documents)
            except IndexBuildError as e:
                failure = e
            else:
                self._report_overlap(ConcurrentIndexError.QUEUED)
        else:
            self._report_overlap(ConcurrentIndexError.DROPPED)

        await self._idle.wait()
        if failure is not None:
            self.channel.progress(IndexingStage.ERROR, error=str(failure.__cause__))
            raise failure
        return self.get_status()

    async def _build(self, documents: Iterable[Any]) -> None:
        try:
            batch = _read_batch(documents)
        except IndexBuildError as e:
            self.channel.progress(IndexingStage.ERROR, error=str(e.__cause__))
            raise

        total = len(batch)
        started = time.perf_counter()
        self.channel.progress(IndexingStage.SCANNING, total=total)

        generation = _Generation()
        try:
            for position, raw in enumerate(batch, 1):
                self.channel.progress(
                    IndexingStage.PARSING,
                    current=position,
                    total=total,
                    current_document=_raw_id(raw),
                )
                try:
                    self._ingest(raw, generation)
                except DocumentParseError as e:
                    logger.warning("%s", e)
                    generation.failures.append(e)
                # Let queries and other tasks run between documents
                await asyncio.sleep(0)
        except Exception as e:
            logger.exception("Index build failed after %d documents", len(generation.documents))
            self.channel.progress(IndexingStage.ERROR, total=total, error=str(e))
            raise IndexBuildError(str(e)) from e

        previous, self._generation = self._generation, generation
        if previous is not None:
            previous.dispose()

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "Indexed %d documents (%d failed) in %.1fms",
            len(generation.documents), len(generation.failures), elapsed_ms,
        )
        self.channel.progress(IndexingStage.COMPLETE, current=total, total=total)

    def _ingest(self, raw: Any, generation: _Generation) -> None:
        document = self._parse(raw, generation)
        try:
            generation.add(document)
        except (ValueError, TypeError) as e:
            raise DocumentParseError(document.id, f"tokenization failed: {e}") from e

    def _parse(self, raw: Any, generation: _Generation) -> Document:
        doc_id = _raw_id(raw)
        try:
            if isinstance(raw, Document):
                document = raw
            elif isinstance(raw, Mapping):
                document = Document.model_validate(dict(raw))
            else:
                raise DocumentParseError(doc_id, f"unsupported document type {type(raw).__name__}")
        except ValidationError as e:
            raise DocumentParseError(doc_id, _describe_validation(e)) from e

        if document.id in generation.documents:
            raise DocumentParseError(document.id, "duplicate id in batch")
        return document

    def _report_overlap(self, policy: str) -> None:
        notice = ConcurrentIndexError(policy)
        logger.info("%s", notice)
        self.channel.notice(notice)

    def search(self, terms: str | Iterable[str], fields: Optional[Iterable[str]] = None) -> set[str]:
        """Ids of documents with a token match for any of ``terms``.

        Never raises; with no generation or no usable terms the result is empty.
        """
        generation = self._generation
        if generation is None or not generation.documents:
            return set()

        try:
            words = query_words(terms)
        except TypeError:
            return set()

        field_names = [f for f in (fields or INDEXED_FIELDS) if f in generation.postings]
        matches: set[str] = set()
        for name in field_names:
            postings = generation.postings[name]
            for word in words:
                matches |= postings.get(word, set())
        return matches

    def get(self, doc_id: str) -> Optional[Document]:
        generation = self._generation
        return generation.documents.get(doc_id) if generation else None

    def documents(self) -> list[Document]:
        generation = self._generation
        return list(generation.documents.values()) if generation else []

    @property
    def failures(self) -> list[DocumentParseError]:
        """Per-document failures of the current generation."""
        generation = self._generation
        return list(generation.failures) if generation else []

    def get_status(self) -> IndexStatus:
        generation = self._generation
        if generation is None:
            return IndexStatus()
        return IndexStatus(
            is_indexed=True,
            document_count=len(generation.documents),
            failed_count=len(generation.failures),
        )

    def dispose(self) -> None:
        """Drop the current generation and any queued request."""
        if self._generation is not None:
            self._generation.dispose()
        self._generation = None
        self._pending = None
