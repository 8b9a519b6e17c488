"""Context retrieval system for notebrief."""
from .context import ContextResult, describe_query
from .index import DocumentIndex, forward_tokens, query_words
from .scoring import (
    RelevanceScorer,
    ScoreBreakdown,
    effective_date,
    parse_attendee,
    rank_key,
    recency_bonus,
    sample_content,
)
from .service import ContextRetrievalService
from .similarity import EMPTY_SIMILARITY, jaccard_similarity, tokenize
from .snippets import clean_snippet, extract_snippets, query_terms
from .status import StatusChannel

__all__ = [
    "ContextResult",
    "describe_query",
    "DocumentIndex",
    "forward_tokens",
    "query_words",
    "RelevanceScorer",
    "ScoreBreakdown",
    "effective_date",
    "parse_attendee",
    "rank_key",
    "recency_bonus",
    "sample_content",
    "ContextRetrievalService",
    "EMPTY_SIMILARITY",
    "jaccard_similarity",
    "tokenize",
    "clean_snippet",
    "extract_snippets",
    "query_terms",
    "StatusChannel",
]
