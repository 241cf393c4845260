"""Persistence helpers for feedback entries."""
from __future__ import annotations

import json
import sqlite3
import uuid
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from domain.errors import InvalidTransitionError, NotFoundError

from .sqlite import connection, utcnow


class FeedbackRecord(BaseModel):
    id: str
    session_id: str
    ai_draft: str
    final_feedback: str
    competency_tags: List[str] = Field(default_factory=list)
    tone_analysis: Dict[str, Any] = Field(default_factory=dict)
    selected_tone: str
    is_published: bool = False
    published_at: Optional[str] = None
    created_at: str
    updated_at: str


def _record(row: sqlite3.Row) -> FeedbackRecord:
    data = dict(row)
    data["competency_tags"] = json.loads(data["competency_tags"] or "[]")
    data["tone_analysis"] = json.loads(data["tone_analysis"] or "{}")
    data["is_published"] = bool(data["is_published"])
    return FeedbackRecord(**data)


def insert_feedback(
    *,
    session_id: str,
    markdown: str,
    competency_tags: List[str],
    tone_analysis: Dict[str, Any],
    selected_tone: str,
    conn: Optional[sqlite3.Connection] = None,
) -> FeedbackRecord:
    """Create the single feedback entry for a session; the draft seeds the final text."""

    now = utcnow().isoformat()
    record = FeedbackRecord(
        id=str(uuid.uuid4()),
        session_id=session_id,
        ai_draft=markdown,
        final_feedback=markdown,
        competency_tags=list(competency_tags),
        tone_analysis=tone_analysis,
        selected_tone=selected_tone,
        created_at=now,
        updated_at=now,
    )
    with connection(conn) as db:
        db.execute(
            """INSERT INTO feedback_entries
               (id, session_id, ai_draft, final_feedback, competency_tags, tone_analysis,
                selected_tone, is_published, published_at, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, 0, NULL, ?, ?)""",
            (
                record.id,
                record.session_id,
                record.ai_draft,
                record.final_feedback,
                json.dumps(record.competency_tags),
                json.dumps(record.tone_analysis, default=str),
                record.selected_tone,
                record.created_at,
                record.updated_at,
            ),
        )
    return record


def get_feedback(feedback_id: str, conn: Optional[sqlite3.Connection] = None) -> Optional[FeedbackRecord]:
    with connection(conn) as db:
        row = db.execute("SELECT * FROM feedback_entries WHERE id = ?", (feedback_id,)).fetchone()
    return _record(row) if row is not None else None


def get_feedback_for_session(session_id: str, conn: Optional[sqlite3.Connection] = None) -> Optional[FeedbackRecord]:
    with connection(conn) as db:
        row = db.execute("SELECT * FROM feedback_entries WHERE session_id = ?", (session_id,)).fetchone()
    return _record(row) if row is not None else None


def _set_selected_tone(tone_analysis: Dict[str, Any], tone: str) -> str:
    updated = dict(tone_analysis)
    updated["selectedTone"] = tone
    return json.dumps(updated, default=str)


def update_final(
    feedback_id: str,
    *,
    text: str,
    tone: str,
    is_published: bool,
    published_at: Optional[str],
    expect_published: bool,
    conn: Optional[sqlite3.Connection] = None,
) -> None:
    """Overwrite final text/tone and publish flags, guarded on the current publish flag."""

    with connection(conn) as db:
        row = db.execute("SELECT tone_analysis FROM feedback_entries WHERE id = ?", (feedback_id,)).fetchone()
        if row is None:
            raise NotFoundError(f"Feedback {feedback_id} not found")
        tone_analysis = json.loads(row["tone_analysis"] or "{}")
        cur = db.execute(
            """UPDATE feedback_entries
               SET final_feedback = ?, selected_tone = ?, tone_analysis = ?,
                   is_published = ?, published_at = ?, updated_at = ?
               WHERE id = ? AND is_published = ?""",
            (
                text,
                tone,
                _set_selected_tone(tone_analysis, tone),
                int(is_published),
                published_at,
                utcnow().isoformat(),
                feedback_id,
                int(expect_published),
            ),
        )
        if cur.rowcount != 1:
            state = "published" if expect_published else "a draft"
            raise InvalidTransitionError(f"Feedback {feedback_id} is not {state}")


__all__ = [
    "FeedbackRecord",
    "get_feedback",
    "get_feedback_for_session",
    "insert_feedback",
    "update_final",
]
