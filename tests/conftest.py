"""Shared fixtures for notebrief tests."""
import logging
from datetime import datetime, timedelta, timezone

import pytest

from notebrief.models import Document

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


def make_document(title: str, content: str = "", **fields) -> dict:
    """Raw document mapping as the vault loader produces it."""
    record = {
        "path": fields.pop("path", f"{title.lower().replace(' ', '-')}.md"),
        "title": title,
        "content": content,
        "tags": fields.pop("tags", []),
        "frontmatter": fields.pop("frontmatter", {}),
        "links": fields.pop("links", []),
        "last_modified": fields.pop("last_modified", NOW - timedelta(days=1)),
    }
    record.update(fields)
    return record


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def planning_doc() -> Document:
    """The Q4 planning note from the meeting scenario."""
    return Document.model_validate(make_document(
        "Q4 Planning Meeting",
        "Agenda review. Sarah Chen discussed roadmap priorities for the quarter.",
        tags=["planning"],
    ))


@pytest.fixture
def sample_documents() -> list[dict]:
    """A small vault's worth of raw documents."""
    return [
        make_document(
            "Q4 Planning Meeting",
            "Sarah Chen discussed roadmap priorities and the hiring plan.",
            tags=["planning", "roadmap"],
        ),
        make_document(
            "Budget Review",
            "Finance walked through the budget. Marcus Lee asked about travel costs.",
            tags=["finance", "budget"],
            last_modified=NOW - timedelta(days=20),
        ),
        make_document(
            "Onboarding Checklist",
            "Laptop, accounts, and a buddy for the first week.",
            tags=["people"],
            last_modified=NOW - timedelta(days=200),
        ),
        make_document(
            "1:1 Sarah",
            "Weekly one on one. Career goals and the roadmap handoff.",
            frontmatter={"attendees": ["Sarah Chen"]},
        ),
    ]


@pytest.fixture(autouse=True)
def reset_notebrief_logger():
    """Drop handlers the CLI attaches so each test starts clean."""
    yield
    logger = logging.getLogger("notebrief")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
