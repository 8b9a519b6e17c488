"""Context retrieval service: index lifecycle plus ranked meeting context."""
import logging
import time
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from typing import Any, Optional

from pydantic import ValidationError

from ..errors import IndexBuildError, IndexUnavailableError, InvalidWeightsError, RetrievalError
from ..models import (
    DEFAULT_RELEVANCE_WEIGHTS,
    ContextMatch,
    Document,
    IndexingProgress,
    IndexStatus,
    QueryContext,
    RelevanceWeights,
    RetrievalConfig,
    ServiceState,
)
from .context import ContextResult
from .index import DocumentIndex
from .scoring import RelevanceScorer, rank_key
from .snippets import extract_snippets, query_terms
from .status import StatusChannel

logger = logging.getLogger(__name__)

WeightsInput = Optional[RelevanceWeights | Mapping[str, Any]]


class ContextRetrievalService:
    """Finds notes relevant to a meeting.

    Lifecycle: construct, ``reindex``, query any number of times (re-indexing
    as notes change), then ``dispose``. States move idle -> indexing ->
    indexed, or indexing -> error when a build fails as a whole; a later
    ``reindex`` always starts over.

    Retrieval is best-effort: it never raises and returns no matches when
    there is nothing usable to search.
    """

    def __init__(
        self,
        index: Optional[DocumentIndex] = None,
        scorer: Optional[RelevanceScorer] = None,
        config: Optional[RetrievalConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config or RetrievalConfig()
        self.index = index or DocumentIndex()
        self.scorer = scorer or RelevanceScorer(
            sample_chars=self.config.content_sample_chars,
            clock=clock,
        )
        self._state = ServiceState.IDLE

    async def __aenter__(self) -> "ContextRetrievalService":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.dispose()

    @property
    def state(self) -> ServiceState:
        return self._state

    @property
    def channel(self) -> StatusChannel:
        return self.index.channel

    def subscribe(self, listener: Callable[[IndexingProgress], None]) -> Callable[[], None]:
        """Receive indexing progress (scanning, parsing, complete, error)."""
        return self.channel.subscribe(listener)

    def subscribe_notices(self, listener: Callable[[RetrievalError], None]) -> Callable[[], None]:
        """Receive recoverable error notices (overlapping index requests, bad weights, failed builds)."""
        return self.channel.subscribe_notices(listener)

    # === Indexing ===

    async def reindex(self, documents: Iterable[Any]) -> IndexStatus:
        """Rebuild the index from raw documents.

        A whole-build failure moves the service to the error state and is
        reported on the notice channel instead of being raised.
        """
        self._state = ServiceState.INDEXING
        try:
            status = await self.index.index_documents(documents)
        except IndexBuildError as e:
            logger.error("%s", e)
            self._state = ServiceState.ERROR
            self.channel.notice(e)
            return self.index.get_status()

        # An overlapping caller may resume after another caller's build failed
        if self._state is ServiceState.INDEXING:
            self._state = ServiceState.INDEXED
        return status

    def get_index_status(self) -> IndexStatus:
        return self.index.get_status()

    def dispose(self) -> None:
        """Release the index and all listeners."""
        self.index.dispose()
        self.channel.clear()
        self._state = ServiceState.IDLE

    # === Retrieval ===

    async def find_relevant_context(
        self,
        query: QueryContext | Mapping[str, Any],
        weights: WeightsInput = None,
    ) -> list[ContextMatch]:
        """Ranked matches for a meeting, best first. Empty when nothing applies."""
        result = await self.retrieve(query, weights)
        return result.matches

    async def retrieve(
        self,
        query: QueryContext | Mapping[str, Any],
        weights: WeightsInput = None,
        config: Optional[RetrievalConfig] = None,
    ) -> ContextResult:
        """Like ``find_relevant_context`` but with totals and timing."""
        started = time.perf_counter()
        config = config or self.config

        try:
            query = self._coerce_query(query)
        except ValidationError as e:
            logger.warning("Ignoring malformed query: %s", e)
            return ContextResult(query=QueryContext())

        try:
            matches, total = self._rank(query, self.resolve_weights(weights), config)
        except IndexUnavailableError as e:
            logger.debug("%s", e)
            matches, total = [], 0
        except Exception:
            logger.exception("Context retrieval failed for %r", query.title)
            matches, total = [], 0

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.debug("Found %d matches (%d shown) in %.1fms", total, len(matches), elapsed_ms)
        return ContextResult(
            query=query,
            matches=matches,
            total_matches=total,
            search_time_ms=elapsed_ms,
        )

    def resolve_weights(self, weights: WeightsInput) -> RelevanceWeights:
        """Validate caller weights, substituting defaults when invalid."""
        if weights is None:
            return DEFAULT_RELEVANCE_WEIGHTS
        if isinstance(weights, RelevanceWeights):
            return weights

        try:
            return RelevanceWeights.model_validate(weights)
        except ValidationError as e:
            notice = InvalidWeightsError(
                e.errors(include_url=False, include_context=False, include_input=False)
            )
            logger.warning("%s", notice)
            self.channel.notice(notice)
            return DEFAULT_RELEVANCE_WEIGHTS

    @staticmethod
    def _coerce_query(query: QueryContext | Mapping[str, Any]) -> QueryContext:
        if isinstance(query, QueryContext):
            return query
        return QueryContext.model_validate(query)

    def _rank(
        self,
        query: QueryContext,
        weights: RelevanceWeights,
        config: RetrievalConfig,
    ) -> tuple[list[ContextMatch], int]:
        if not config.enabled:
            return [], 0
        if self._state in (ServiceState.IDLE, ServiceState.ERROR) or not self.index.get_status().is_indexed:
            raise IndexUnavailableError(self._state.value)

        candidate_ids = self.index.search([query.title, *query.topics])
        pool: dict[str, Document] = {}
        for doc_id in candidate_ids:
            document = self.index.get(doc_id)
            if document is not None:
                pool[doc_id] = document

        # Tokenization gaps: fall back to notes that mention an attendee
        if len(pool) < config.min_candidates and query.attendees:
            for document in self.index.documents():
                if document.id not in pool and self.scorer.matches_attendee(document, query.attendees):
                    pool[document.id] = document

        now = self.scorer.clock()
        scored = []
        for document in pool.values():
            breakdown = self.scorer.score(document, query, weights, candidate_ids, now=now)
            if breakdown.score >= config.min_relevance_score:
                scored.append((breakdown, document))

        scored.sort(key=lambda item: rank_key(item[0].score, item[1]))
        top = scored[:config.max_results]

        terms = query_terms(query) if config.include_snippets else []
        matches = [
            ContextMatch(
                document=document,
                relevance_score=breakdown.score,
                matched_fields=breakdown.matched_fields,
                snippets=tuple(extract_snippets(
                    document,
                    terms,
                    max_snippets=config.max_snippets,
                    max_length=config.snippet_length,
                    sample_chars=config.content_sample_chars,
                )) if config.include_snippets else (),
            )
            for breakdown, document in top
        ]
        return matches, len(scored)
