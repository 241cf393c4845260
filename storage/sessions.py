"""Persistence helpers for voice feedback sessions."""
from __future__ import annotations

import sqlite3
import uuid
from typing import Optional, Sequence

from pydantic import BaseModel

from domain.errors import InvalidTransitionError
from domain.types import RecordingMode, SessionStatus

from .sqlite import connection, utcnow


class SessionRecord(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    manager_id: str
    employee_id: str
    status: SessionStatus
    recording_mode: RecordingMode = "full"
    transcript: Optional[str] = None
    audio_ref: Optional[str] = None
    created_at: str
    updated_at: str


def insert_session(
    *,
    title: str,
    manager_id: str,
    employee_id: str,
    description: Optional[str] = None,
    recording_mode: RecordingMode = "full",
    conn: Optional[sqlite3.Connection] = None,
) -> SessionRecord:
    """Insert a new session in ``pending`` status."""

    now = utcnow().isoformat()
    record = SessionRecord(
        id=str(uuid.uuid4()),
        title=title,
        description=description,
        manager_id=manager_id,
        employee_id=employee_id,
        status="pending",
        recording_mode=recording_mode,
        created_at=now,
        updated_at=now,
    )
    with connection(conn) as db:
        db.execute(
            """INSERT INTO sessions
               (id, title, description, manager_id, employee_id, status, recording_mode, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                record.id,
                record.title,
                record.description,
                record.manager_id,
                record.employee_id,
                record.status,
                record.recording_mode,
                record.created_at,
                record.updated_at,
            ),
        )
    return record


def get_session(session_id: str, conn: Optional[sqlite3.Connection] = None) -> Optional[SessionRecord]:
    with connection(conn) as db:
        row = db.execute("SELECT * FROM sessions WHERE id = ?", (session_id,)).fetchone()
    if row is None:
        return None
    return SessionRecord(**dict(row))


def set_status(
    session_id: str,
    *,
    expected: Sequence[str],
    target: str,
    conn: Optional[sqlite3.Connection] = None,
) -> None:
    """Compare-and-set the session status; raise when the current status is not expected."""

    placeholders = ", ".join("?" for _ in expected)
    with connection(conn) as db:
        cur = db.execute(
            f"UPDATE sessions SET status = ?, updated_at = ? WHERE id = ? AND status IN ({placeholders})",
            (target, utcnow().isoformat(), session_id, *expected),
        )
        if cur.rowcount != 1:
            raise InvalidTransitionError(f"Session {session_id} is not in {list(expected)}")


def set_transcript(
    session_id: str,
    transcript: str,
    *,
    recording_mode: RecordingMode,
    audio_ref: Optional[str] = None,
    conn: Optional[sqlite3.Connection] = None,
) -> None:
    """Write the transcript once; a second write is rejected."""

    with connection(conn) as db:
        cur = db.execute(
            """UPDATE sessions
               SET transcript = ?, recording_mode = ?, audio_ref = COALESCE(?, audio_ref), updated_at = ?
               WHERE id = ? AND transcript IS NULL""",
            (transcript, recording_mode, audio_ref, utcnow().isoformat(), session_id),
        )
        if cur.rowcount != 1:
            raise InvalidTransitionError(f"Transcript already set for session {session_id}")


__all__ = ["SessionRecord", "get_session", "insert_session", "set_status", "set_transcript"]
