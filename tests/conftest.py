"""Shared fixtures for application tracker tests."""

import json
import time
from pathlib import Path
from typing import Optional, Union

import pytest

from applytrack.cache import ExtractionCache
from applytrack.exceptions import OracleError
from applytrack.extractor import Extractor
from applytrack.models import Application, Message
from applytrack.oracle import Oracle
from applytrack.storage import SQLiteApplicationRepository

GOOGLE_ANSWER = {
    "isJobEmail": True,
    "company": "Google",
    "jobTitle": "Software Engineer",
    "status": "Applied",
    "location": "Mountain View, CA",
}


class FakeOracle(Oracle):
    """Oracle double that records prompts and replays a canned answer."""

    def __init__(
        self,
        answer: Union[str, dict, None] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.answer = json.dumps(answer) if isinstance(answer, dict) else answer
        self.error = error
        self.delay = delay
        self.prompts: list[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    def invoke(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.answer is None:
            raise OracleError("no answer configured")
        return self.answer


@pytest.fixture
def google_oracle() -> FakeOracle:
    """Oracle answering with the Google application."""
    return FakeOracle(GOOGLE_ANSWER)


@pytest.fixture
def extractor_factory():
    """Build extractors and shut their worker pools down afterwards."""
    created = []

    def factory(oracle: Optional[Oracle], **kwargs) -> Extractor:
        kwargs.setdefault("cache", ExtractionCache(max_size=10))
        extractor = Extractor(oracle, **kwargs)
        created.append(extractor)
        return extractor

    yield factory

    for extractor in created:
        extractor.close()


@pytest.fixture
def google_message() -> Message:
    """An application confirmation from Google."""
    return Message(
        id="msg_001",
        sender="Google Careers <no-reply@google.com>",
        subject="Application Received - Software Engineer",
        body="Thank you for applying to the Software Engineer position at Google.",
        date="Mon, 15 Jan 2024 10:30:00 +0000",
    )


@pytest.fixture
def newsletter_message() -> Message:
    """A newsletter with no job keywords."""
    return Message(
        id="msg_002",
        sender="news@example.com",
        subject="Weekly Newsletter",
        body="Here are this week's top stories.",
        date="2024-01-15",
    )


@pytest.fixture
def repository(tmp_path: Path) -> SQLiteApplicationRepository:
    """An initialized SQLite repository in a temporary directory."""
    repo = SQLiteApplicationRepository(tmp_path / "data" / "applications.sqlite")
    repo.init_db()
    return repo


def make_application(**overrides) -> Application:
    """Build a valid application, overriding any field."""
    fields = {
        "id": "app-1",
        "user_id": "u1",
        "company": "Acme",
        "role": "SWE",
        "location": "Remote",
        "date_applied": "2024-01-15",
        "last_update": "2024-01-15",
        "created_at": "2024-01-15T10:00:00+00:00",
        "status": "Applied",
        "source": "Email",
        "remote_policy": "Remote",
        "notes": 'Extracted from email: "Thanks" (oracle)',
        "email_id": "msg-1",
        "confidence_score": 90,
    }
    fields.update(overrides)
    return Application(**fields)
