"""Persistence helpers for notification delivery outcomes."""
from __future__ import annotations

import sqlite3
from typing import List, Literal, Optional

from pydantic import BaseModel

from .sqlite import connection, utcnow


class NotificationEvent(BaseModel):
    feedback_id: str
    employee_id: str
    status: Literal["sent", "skipped", "failed"]
    detail: str = ""


def insert_notification_event(conn: Optional[sqlite3.Connection] = None, **data) -> int:
    """Insert a delivery outcome row and return its primary key."""

    payload = NotificationEvent(**data)
    with connection(conn) as db:
        cur = db.execute(
            """INSERT INTO notification_events (timestamp, feedback_id, employee_id, status, detail)
               VALUES (?, ?, ?, ?, ?)""",
            (utcnow().isoformat(), payload.feedback_id, payload.employee_id, payload.status, payload.detail),
        )
        return int(cur.lastrowid)


def list_notification_events(feedback_id: str, conn: Optional[sqlite3.Connection] = None) -> List[NotificationEvent]:
    with connection(conn) as db:
        rows = db.execute(
            "SELECT feedback_id, employee_id, status, detail FROM notification_events WHERE feedback_id = ? ORDER BY id",
            (feedback_id,),
        ).fetchall()
    return [NotificationEvent(**dict(row)) for row in rows]


__all__ = ["NotificationEvent", "insert_notification_event", "list_notification_events"]
