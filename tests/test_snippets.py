"""Tests for snippet extraction."""
import time

from conftest import make_document
from notebrief.models import Document, QueryContext
from notebrief.retrieval.snippets import clean_snippet, extract_snippets, query_terms


def doc(content: str) -> Document:
    return Document.model_validate(make_document("Note", content))


class TestCleanSnippet:
    """Tests for clean_snippet."""

    def test_strips_markdown(self) -> None:
        text = "## Heading\n- **Bold** item with `code`\n> quote and [a link](http://x.io)"
        assert clean_snippet(text) == "Heading Bold item with quote and a link"

    def test_removes_code_blocks(self) -> None:
        assert clean_snippet("before\n```python\nprint(1)\n```\nafter") == "before after"

    def test_collapses_whitespace(self) -> None:
        assert clean_snippet("  a\n\n\tb  ") == "a b"


class TestQueryTerms:
    """Tests for query_terms."""

    def test_collects_title_topics_and_attendee_names(self) -> None:
        query = QueryContext(
            title="Planning Sync",
            attendees=("Sarah Chen <sarah@acme.com>", "Al"),
            topics=("roadmap",),
        )
        assert query_terms(query) == ["Planning", "Sync", "roadmap", "sarah chen"]


class TestExtractSnippets:
    """Tests for extract_snippets."""

    def test_centered_on_term(self) -> None:
        content = ("filler " * 60) + "the roadmap is due friday " + ("filler " * 60)
        [snippet] = extract_snippets(doc(content), ["roadmap"], max_length=60)

        assert "roadmap" in snippet
        assert len(snippet) <= 60

    def test_respects_max_snippets(self) -> None:
        content = " ".join(f"alpha{i} " + "pad " * 80 for i in range(5))
        snippets = extract_snippets(doc(content), [f"alpha{i}" for i in range(5)], max_snippets=2, max_length=40)

        assert len(snippets) == 2
        assert "alpha0" in snippets[0]
        assert "alpha1" in snippets[1]

    def test_overlapping_windows_are_skipped(self) -> None:
        snippets = extract_snippets(doc("budget and roadmap side by side"), ["budget", "roadmap"], max_length=100)
        assert len(snippets) == 1

    def test_case_insensitive(self) -> None:
        [snippet] = extract_snippets(doc("Discussed the ROADMAP today"), ["roadmap"])
        assert "ROADMAP" in snippet

    def test_leading_excerpt_when_no_term_matches(self) -> None:
        content = "Weekly notes. " + "more text " * 50
        [snippet] = extract_snippets(doc(content), ["xylophone"], max_length=40)

        assert snippet.startswith("Weekly notes.")
        assert snippet.endswith("...")
        assert len(snippet) <= 40

    def test_short_terms_are_ignored(self) -> None:
        [snippet] = extract_snippets(doc("an ox " + "filler " * 50 + " ox end"), ["ox"], max_length=30)
        assert snippet.startswith("an ox")

    def test_empty_content(self) -> None:
        assert extract_snippets(doc(""), ["roadmap"]) == []
        assert extract_snippets(doc("   \n"), ["roadmap"]) == []

    def test_zero_snippets_requested(self) -> None:
        assert extract_snippets(doc("roadmap"), ["roadmap"], max_snippets=0) == []

    def test_terms_beyond_sample_are_not_found(self) -> None:
        content = "Intro line. " + "x" * 500 + " roadmap"
        [snippet] = extract_snippets(doc(content), ["roadmap"], max_length=40, sample_chars=100)

        assert "roadmap" not in snippet
        assert snippet.startswith("Intro line.")

    def test_large_document_is_bounded(self) -> None:
        """Cost depends on the sample, not on the note size."""
        at_cap = doc("word " * 2_000)
        huge = doc("word " * 2_000_000)

        started = time.perf_counter()
        extract_snippets(at_cap, ["missing"])
        at_cap_time = time.perf_counter() - started

        started = time.perf_counter()
        snippets = extract_snippets(huge, ["missing"])
        huge_time = time.perf_counter() - started

        assert len(snippets) == 1
        assert huge_time < max(at_cap_time * 50, 0.05)
