"""Short display excerpts from a note around query terms."""
import re
from collections.abc import Iterable

from ..config import CONTENT_SAMPLE_CHARS
from ..models import Document, QueryContext
from .scoring import parse_attendee, sample_content

MAX_SNIPPETS = 3
SNIPPET_LENGTH = 200
MIN_TERM_LENGTH = 3
ELLIPSIS = "..."

CODE_BLOCK_PATTERN = re.compile(r"```[\s\S]*?```")
INLINE_CODE_PATTERN = re.compile(r"`[^`]*`")
BOLD_PATTERN = re.compile(r"\*\*([^*]+)\*\*")
LINE_PREFIX_PATTERN = re.compile(r"^\s*[#*>-]+\s*", re.MULTILINE)
LINK_PATTERN = re.compile(r"\[([^\]]+)\]\([^)]+\)")
WHITESPACE_PATTERN = re.compile(r"\s+")


def clean_snippet(text: str) -> str:
    """Strip markdown formatting and normalize whitespace."""
    text = CODE_BLOCK_PATTERN.sub("", text)
    text = INLINE_CODE_PATTERN.sub("", text)
    text = BOLD_PATTERN.sub(r"\1", text)  # Before bullets so ** is not read as one
    text = LINE_PREFIX_PATTERN.sub("", text)
    text = LINK_PATTERN.sub(r"\1", text)
    return WHITESPACE_PATTERN.sub(" ", text).strip()


def query_terms(query: QueryContext) -> list[str]:
    """Terms from a query worth locating in a note: title and topic words, attendee names."""
    terms: list[str] = []
    for text in (query.title, *query.topics):
        terms.extend(text.split())
    for attendee in query.attendees:
        name = parse_attendee(attendee)
        if name:
            terms.append(name)
    return terms


def _frame(text: str, cut_start: bool, cut_end: bool, max_length: int) -> str:
    """Mark cut edges with an ellipsis, keeping the result within max_length."""
    prefix = ELLIPSIS if cut_start else ""
    suffix = ELLIPSIS if cut_end else ""
    if len(prefix) + len(text) + len(suffix) > max_length:
        suffix = ELLIPSIS
        text = text[:max_length - len(prefix) - len(suffix)].rstrip()
    return f"{prefix}{text}{suffix}"


def extract_snippets(
    document: Document,
    terms: Iterable[str],
    max_snippets: int = MAX_SNIPPETS,
    max_length: int = SNIPPET_LENGTH,
    sample_chars: int = CONTENT_SAMPLE_CHARS,
) -> list[str]:
    """Up to ``max_snippets`` excerpts centered on first term occurrences.

    Only the content sample is searched, so cost does not grow with note
    size. If no term occurs, the leading excerpt is returned instead.

    Args:
        document: Note to excerpt.
        terms: Query terms in priority order; matched case-insensitively.
        max_snippets: Maximum excerpts returned.
        max_length: Maximum characters per excerpt.
        sample_chars: Size of the content prefix searched.

    Returns:
        Cleaned excerpts, in term order.
    """
    if max_snippets <= 0:
        return []

    sample = sample_content(document.content, sample_chars)
    if not sample.strip():
        return []
    lowered = sample.lower()

    windows: list[tuple[int, int]] = []
    seen: set[str] = set()
    for term in terms:
        term = term.strip().lower()
        if len(term) < MIN_TERM_LENGTH or term in seen:
            continue
        seen.add(term)

        position = lowered.find(term)
        if position == -1:
            continue

        center = position + len(term) // 2
        start = max(0, center - max_length // 2)
        end = min(len(sample), start + max_length)
        start = max(0, end - max_length)

        if any(start < w_end and w_start < end for w_start, w_end in windows):
            continue
        windows.append((start, end))
        if len(windows) >= max_snippets:
            break

    if not windows:
        windows = [(0, min(len(sample), max_length))]

    snippets = []
    for start, end in windows:
        text = clean_snippet(sample[start:end])
        if text:
            snippets.append(_frame(text, start > 0, end < len(document.content), max_length))
    return snippets
