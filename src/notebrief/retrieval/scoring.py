"""Relevance scoring of a note against a meeting query."""
import re
from collections.abc import Callable, Collection, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from ..config import (
    CONTENT_SAMPLE_CHARS,
    FRONTMATTER_DATE_FIELDS,
    MATCH_THRESHOLD,
    MIN_ATTENDEE_NAME_LENGTH,
    RECENCY_STEPS,
)
from ..models import DEFAULT_RELEVANCE_WEIGHTS, Document, QueryContext, RelevanceWeights
from .similarity import jaccard_similarity, tokenize

# Longer attendee strings are cut before parsing
MAX_ATTENDEE_LENGTH = 200

SCORED_FIELDS = ("title", "content", "tags", "attendees")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def sample_content(content: str, limit: int = CONTENT_SAMPLE_CHARS) -> str:
    """Fixed prefix of the content used for scoring and snippets."""
    return content[:limit]


def parse_attendee(attendee: str) -> Optional[str]:
    """Normalized name to look for in notes, or None if unusable.

    Accepts "First Last", "First Last <first@example.com>" and bare
    addresses. The display name wins over the address when both exist.
    """
    text = attendee.strip()[:MAX_ATTENDEE_LENGTH]
    angle = text.find("<")
    if angle != -1:
        name = text[:angle].strip().strip("\"'")
        address = text[angle + 1:].rstrip(">").strip()
        candidate = name or address
    else:
        candidate = text.strip("\"'")

    candidate = " ".join(candidate.split()).lower()
    if len(candidate) < MIN_ATTENDEE_NAME_LENGTH:
        return None
    return candidate


def _normalize(text: str) -> str:
    return " ".join(text.lower().split())


def _mentions(name: str, text: str) -> bool:
    # Whole words only, so "ann" does not hit "planning"
    return re.search(rf"(?<!\w){re.escape(name)}(?!\w)", text) is not None


def _parse_date(value: str) -> datetime:
    text = value.strip()
    # fromisoformat only accepts a "Z" suffix from Python 3.11
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def effective_date(document: Document) -> datetime:
    """First parseable frontmatter date, else the modification time."""
    for key in FRONTMATTER_DATE_FIELDS:
        value = document.frontmatter.get(key)
        if not value:
            continue
        try:
            parsed = _parse_date(value)
        except ValueError:
            continue
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    return document.last_modified


def recency_bonus(when: datetime, now: datetime) -> float:
    """Step decay by age: full within a week, nothing after three months.

    Non-increasing in age and bounded in [0, 1]; future dates count as new.
    """
    age_days = max(0.0, (now - when).total_seconds() / 86400)
    for max_days, bonus in RECENCY_STEPS:
        if age_days <= max_days:
            return bonus
    return 0.0


def rank_key(score: float, document: Document) -> tuple[float, float, str]:
    """Sort key: higher score, then more recently modified, then id."""
    return (-score, -document.last_modified.timestamp(), document.id)


@dataclass(frozen=True)
class ScoreBreakdown:
    """Per-factor sub-scores and the combined, clamped score."""

    score: float
    title: float
    content: float
    tags: float
    attendees: float
    recency: float
    search_hit: bool
    matched_fields: frozenset[str]


class RelevanceScorer:
    """Combines text similarity, tag overlap, attendee and recency signals."""

    def __init__(
        self,
        sample_chars: int = CONTENT_SAMPLE_CHARS,
        match_threshold: float = MATCH_THRESHOLD,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.sample_chars = sample_chars
        self.match_threshold = match_threshold
        self.clock = clock or _utc_now

    def score(
        self,
        document: Document,
        query: QueryContext,
        weights: RelevanceWeights = DEFAULT_RELEVANCE_WEIGHTS,
        candidate_ids: Collection[str] = frozenset(),
        now: Optional[datetime] = None,
    ) -> ScoreBreakdown:
        sample = sample_content(document.content, self.sample_chars)
        query_text = " ".join([query.title, *query.topics])

        title_sim = jaccard_similarity(document.title, query.title)
        content_sim = jaccard_similarity(sample, query_text)
        tag_overlap = self.tag_overlap(document.tags, query.topics)
        attendee_hit = 1.0 if self.matches_attendee(document, query.attendees, sample) else 0.0
        recency = recency_bonus(effective_date(document), now or self.clock())
        search_hit = document.id in candidate_ids

        total = (
            weights.title * title_sim
            + weights.content * content_sim
            + weights.tags * tag_overlap
            + weights.attendees * attendee_hit
            + weights.recency * recency
            + weights.search_bonus * (1.0 if search_hit else 0.0)
        )

        sub_scores = dict(zip(SCORED_FIELDS, (title_sim, content_sim, tag_overlap, attendee_hit)))
        matched = frozenset(name for name, value in sub_scores.items() if value > self.match_threshold)

        return ScoreBreakdown(
            score=min(1.0, max(0.0, total)),
            title=title_sim,
            content=content_sim,
            tags=tag_overlap,
            attendees=attendee_hit,
            recency=recency,
            search_hit=search_hit,
            matched_fields=matched,
        )

    @staticmethod
    def tag_overlap(tags: Collection[str], topics: Iterable[str]) -> float:
        """Share of the note's tags named among the topic words."""
        topic_tokens = tokenize(" ".join(topics))
        return len(set(tags) & topic_tokens) / max(1, len(tags))

    def matches_attendee(
        self,
        document: Document,
        attendees: Iterable[str],
        sample: Optional[str] = None,
    ) -> bool:
        """True if any attendee name appears in the content sample or frontmatter."""
        names = [name for name in (parse_attendee(a) for a in attendees) if name]
        if not names:
            return False

        if sample is None:
            sample = sample_content(document.content, self.sample_chars)
        haystacks = (
            _normalize(sample),
            _normalize(" ".join(document.frontmatter.values())),
        )
        return any(_mentions(name, haystack) for name in names for haystack in haystacks)
