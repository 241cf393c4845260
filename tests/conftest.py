import json
import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

os.environ.setdefault("ENABLE_FILE_LOGS", "0")

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storage.migrate import migrate
from config import LlmRoute
from config.settings import settings
from storage.profiles import upsert_profile


DRAFT_REPLY: Dict[str, Any] = {
    "summary": "Dana delivered the Phoenix migration on schedule and raised team throughput.",
    "strengths": [
        "Completed the Phoenix project ahead of the deadline",
        "Increased throughput by 20% through pipeline tuning",
        "Kept stakeholders informed with weekly written updates",
    ],
    "improvements": [
        "Delegate code reviews: assign one reviewer rotation per sprint",
        "Document design decisions: write a short ADR for each major change",
        "Raise risks earlier: flag blockers in stand-up the day they appear",
    ],
    "competencies": [
        {"name": "Delivery", "rating": "Exceeds Expectations", "evidence": "Phoenix shipped early"},
        {"name": "Technical Skills", "rating": "Meets Expectations", "evidence": "Pipeline tuning"},
        {"name": "Communication", "rating": "Meets Expectations", "evidence": "Weekly updates"},
        {"name": "Collaboration", "rating": "Meets Expectations", "evidence": "Paired with QA"},
    ],
    "learning_recommendations": [
        {"recommendation": "Architecture decision records workshop", "priority": "medium", "type": "course", "url": None},
        {"recommendation": "Shadow a staff engineer's design review", "priority": "high", "type": "mentoring", "url": None},
    ],
    "growth_path": {
        "short_term": "Own the review rotation",
        "mid_term": "Lead a cross-team initiative",
        "long_term": "Grow into a tech lead role",
        "milestones": ["Rotation running", "Initiative kickoff"],
    },
}


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None) -> None:
        self.status_code = status_code
        self._payload = payload

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    @property
    def text(self) -> str:
        return json.dumps(self._payload, default=str)


class FakeLlmClient:
    """Scripted chat-completions endpoint; each reply is (status, content)."""

    def __init__(self, replies: List[Any]) -> None:
        self.replies = list(replies)
        self.calls: List[Dict[str, Any]] = []

    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> FakeResponse:
        self.calls.append({"url": url, "json": json, "headers": headers})
        if not self.replies:
            raise ConnectionError("no scripted reply left")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        status, content = reply
        if status >= 400:
            return FakeResponse(status, {"error": "scripted"})
        return FakeResponse(status, {"choices": [{"message": {"content": content}}]})


class FakeSttClient:
    """Scripted upload/submit/poll provider keyed by URL suffix."""

    def __init__(self, *, text: str = "Spoken feedback text.", fail_upload: bool = False, polls: Optional[List[Dict[str, Any]]] = None) -> None:
        self.text = text
        self.fail_upload = fail_upload
        self.polls = list(polls) if polls is not None else [{"status": "processing"}, {"status": "completed", "text": text}]
        self.uploads = 0
        self.gets = 0

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        if url.endswith("/v2/upload"):
            self.uploads += 1
            if self.fail_upload:
                return FakeResponse(500, {"error": "boom"})
            return FakeResponse(200, {"upload_url": f"https://cdn.example/{self.uploads}"})
        return FakeResponse(200, {"id": f"job-{self.uploads}"})

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.gets += 1
        if not self.polls:
            return FakeResponse(200, {"status": "processing"})
        return FakeResponse(200, self.polls.pop(0))


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    migrate(db_path)
    try:
        yield
    finally:
        td.cleanup()


@pytest.fixture
def people():
    manager = upsert_profile(user_id="mgr-1", full_name="Morgan Lee", email="morgan@example.com", role="Engineering Manager")
    employee = upsert_profile(
        user_id="emp-1",
        full_name="Dana Cruz",
        email="dana@example.com",
        role="Backend Engineer",
        last_review_summary="Strong delivery,\n  needs more delegation.",
    )
    outsider = upsert_profile(user_id="mgr-2", full_name="Alex Kim", email="alex@example.com", role="Engineering Manager")
    return {"manager": manager, "employee": employee, "outsider": outsider}


@pytest.fixture
def llm_route() -> LlmRoute:
    return LlmRoute(name="test", base_url="http://llm.local", model="test-model", timeout_s=1.0)


@pytest.fixture
def draft_json() -> str:
    return json.dumps(DRAFT_REPLY)


class FakeEmailClient:
    def __init__(self, status_code: int = 200, error: Optional[Exception] = None) -> None:
        self.status_code = status_code
        self.error = error
        self.sent: List[Dict[str, Any]] = []

    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> FakeResponse:
        if self.error is not None:
            raise self.error
        self.sent.append({"url": url, "json": json, "headers": headers})
        return FakeResponse(self.status_code, {"id": "email-1"})


@pytest.fixture
def make_llm():
    return FakeLlmClient


@pytest.fixture
def make_stt():
    return FakeSttClient


@pytest.fixture
def make_email():
    return FakeEmailClient
