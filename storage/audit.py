"""Persistence helpers for the feedback publication audit trail."""
from __future__ import annotations

import json
import sqlite3
import uuid
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from domain.types import AuditAction

from .sqlite import connection, utcnow


class AuditRecord(BaseModel):
    id: str
    feedback_id: str
    action: AuditAction
    previous_content: Optional[str] = None
    new_content: Optional[str] = None
    previous_tone: Optional[str] = None
    new_tone: Optional[str] = None
    performed_by: str
    can_undo_until: Optional[str] = None
    is_undone: bool = False
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: str


def _record(row: sqlite3.Row) -> AuditRecord:
    data = dict(row)
    data["is_undone"] = bool(data["is_undone"])
    data["metadata"] = json.loads(data["metadata"] or "{}")
    return AuditRecord(**data)


def insert_audit(conn: Optional[sqlite3.Connection] = None, **data: Any) -> AuditRecord:
    """Insert an audit row and return it."""

    data.setdefault("id", str(uuid.uuid4()))
    data.setdefault("created_at", utcnow().isoformat())
    record = AuditRecord(**data)
    with connection(conn) as db:
        db.execute(
            """INSERT INTO feedback_audit
               (id, feedback_id, action, previous_content, new_content, previous_tone, new_tone,
                performed_by, can_undo_until, is_undone, metadata, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                record.id,
                record.feedback_id,
                record.action,
                record.previous_content,
                record.new_content,
                record.previous_tone,
                record.new_tone,
                record.performed_by,
                record.can_undo_until,
                int(record.is_undone),
                json.dumps(record.metadata),
                record.created_at,
            ),
        )
    return record


def get_audit(audit_id: str, conn: Optional[sqlite3.Connection] = None) -> Optional[AuditRecord]:
    with connection(conn) as db:
        row = db.execute("SELECT * FROM feedback_audit WHERE id = ?", (audit_id,)).fetchone()
    return _record(row) if row is not None else None


def list_audit(feedback_id: str, conn: Optional[sqlite3.Connection] = None) -> List[AuditRecord]:
    with connection(conn) as db:
        rows = db.execute(
            "SELECT * FROM feedback_audit WHERE feedback_id = ? ORDER BY created_at, rowid",
            (feedback_id,),
        ).fetchall()
    return [_record(row) for row in rows]


def latest_active_publish(feedback_id: str, conn: Optional[sqlite3.Connection] = None) -> Optional[AuditRecord]:
    """Most recent published entry that has not been undone."""

    with connection(conn) as db:
        row = db.execute(
            """SELECT * FROM feedback_audit
               WHERE feedback_id = ? AND action = 'published' AND is_undone = 0
               ORDER BY created_at DESC, rowid DESC
               LIMIT 1""",
            (feedback_id,),
        ).fetchone()
    return _record(row) if row is not None else None


def mark_undone(audit_id: str, conn: Optional[sqlite3.Connection] = None) -> bool:
    """Flip ``is_undone`` once; returns False when another caller already did."""

    with connection(conn) as db:
        cur = db.execute(
            "UPDATE feedback_audit SET is_undone = 1 WHERE id = ? AND is_undone = 0",
            (audit_id,),
        )
        return cur.rowcount == 1


__all__ = [
    "AuditRecord",
    "get_audit",
    "insert_audit",
    "latest_active_publish",
    "list_audit",
    "mark_undone",
]
