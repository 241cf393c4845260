"""Persistence helpers for the people directory."""
from __future__ import annotations

import sqlite3
from typing import Optional

from pydantic import BaseModel

from .sqlite import connection, utcnow


class ProfileRecord(BaseModel):
    user_id: str
    full_name: str
    email: Optional[str] = None
    role: str = "Team Member"
    last_review_summary: str = ""


def upsert_profile(conn: Optional[sqlite3.Connection] = None, **data) -> ProfileRecord:
    """Insert or refresh a directory entry."""

    record = ProfileRecord(**data)
    with connection(conn) as db:
        db.execute(
            """INSERT INTO profiles (user_id, full_name, email, role, last_review_summary, created_at)
               VALUES (?, ?, ?, ?, ?, ?)
               ON CONFLICT(user_id) DO UPDATE SET
                 full_name = excluded.full_name,
                 email = excluded.email,
                 role = excluded.role,
                 last_review_summary = excluded.last_review_summary""",
            (
                record.user_id,
                record.full_name,
                record.email,
                record.role,
                record.last_review_summary,
                utcnow().isoformat(),
            ),
        )
    return record


def get_profile(user_id: str, conn: Optional[sqlite3.Connection] = None) -> Optional[ProfileRecord]:
    with connection(conn) as db:
        row = db.execute(
            "SELECT user_id, full_name, email, role, last_review_summary FROM profiles WHERE user_id = ?",
            (user_id,),
        ).fetchone()
    if row is None:
        return None
    return ProfileRecord(**dict(row))


__all__ = ["ProfileRecord", "get_profile", "upsert_profile"]
