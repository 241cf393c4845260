"""SQLite schema migrations."""
from __future__ import annotations

import os
import sqlite3
from typing import Iterable

SCHEMA: Iterable[str] = [
    """
CREATE TABLE IF NOT EXISTS profiles (
  user_id TEXT PRIMARY KEY,
  full_name TEXT NOT NULL,
  email TEXT,
  role TEXT NOT NULL DEFAULT 'Team Member',
  last_review_summary TEXT NOT NULL DEFAULT '',
  created_at TEXT NOT NULL
);
""",
    """
CREATE TABLE IF NOT EXISTS sessions (
  id TEXT PRIMARY KEY,
  title TEXT NOT NULL,
  description TEXT,
  manager_id TEXT NOT NULL,
  employee_id TEXT NOT NULL,
  status TEXT NOT NULL,
  recording_mode TEXT NOT NULL DEFAULT 'full',
  transcript TEXT,
  audio_ref TEXT,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
""",
    """
CREATE TABLE IF NOT EXISTS feedback_entries (
  id TEXT PRIMARY KEY,
  session_id TEXT NOT NULL UNIQUE,
  ai_draft TEXT NOT NULL,
  final_feedback TEXT NOT NULL,
  competency_tags TEXT NOT NULL,
  tone_analysis TEXT NOT NULL,
  selected_tone TEXT NOT NULL,
  is_published INTEGER NOT NULL DEFAULT 0,
  published_at TEXT,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  FOREIGN KEY(session_id) REFERENCES sessions(id) ON DELETE CASCADE
);
""",
    """
CREATE TABLE IF NOT EXISTS feedback_audit (
  id TEXT PRIMARY KEY,
  feedback_id TEXT NOT NULL,
  action TEXT NOT NULL,
  previous_content TEXT,
  new_content TEXT,
  previous_tone TEXT,
  new_tone TEXT,
  performed_by TEXT NOT NULL,
  can_undo_until TEXT,
  is_undone INTEGER NOT NULL DEFAULT 0,
  metadata TEXT,
  created_at TEXT NOT NULL,
  FOREIGN KEY(feedback_id) REFERENCES feedback_entries(id) ON DELETE CASCADE
);
""",
    """
CREATE TABLE IF NOT EXISTS notification_events (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  timestamp TEXT NOT NULL,
  feedback_id TEXT NOT NULL,
  employee_id TEXT NOT NULL,
  status TEXT NOT NULL,
  detail TEXT
);
""",
    "CREATE INDEX IF NOT EXISTS idx_feedback_audit_feedback ON feedback_audit(feedback_id, created_at);",
]


def migrate(db_path: str = "data/feedback.db") -> None:
    """Apply schema migrations to the SQLite database."""

    directory = os.path.dirname(db_path) or "."
    os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(db_path)
    try:
        cur = conn.cursor()
        for stmt in SCHEMA:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


if __name__ == "__main__":
    from config.settings import settings

    migrate(settings.DB_PATH)
