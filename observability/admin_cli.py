"""Lightweight CLI helpers for inspecting publication and notification tables."""
from __future__ import annotations

import argparse
import sqlite3
from typing import List, Optional

from config.settings import settings


def tail_audit(limit: int = 20) -> List[str]:
    conn = sqlite3.connect(settings.DB_PATH)
    try:
        cursor = conn.cursor()
        cursor.execute(
            """
            SELECT created_at, feedback_id, action, performed_by, can_undo_until, is_undone
            FROM feedback_audit
            ORDER BY created_at DESC, rowid DESC
            LIMIT ?
            """,
            (limit,),
        )
        lines = []
        for row in cursor.fetchall():
            ts, feedback_id, action, performed_by, undo_until, is_undone = row
            lines.append(
                f"[{ts}] {feedback_id} {action} by={performed_by} undo_until={undo_until or '-'} undone={bool(is_undone)}"
            )
        return lines
    finally:
        conn.close()


def tail_notifications(limit: int = 20) -> List[str]:
    conn = sqlite3.connect(settings.DB_PATH)
    try:
        cursor = conn.cursor()
        cursor.execute(
            """
            SELECT timestamp, feedback_id, employee_id, status, detail
            FROM notification_events
            ORDER BY id DESC
            LIMIT ?
            """,
            (limit,),
        )
        return [
            f"[{ts}] {feedback_id} -> {employee_id} status={status} detail={detail}"
            for ts, feedback_id, employee_id, status, detail in cursor.fetchall()
        ]
    finally:
        conn.close()


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--tail-audit", type=int, help="Show the latest publish/undo audit entries")
    parser.add_argument("--tail-notifications", type=int, help="Show the latest notification outcomes")
    args = parser.parse_args(argv)

    if args.tail_audit:
        for line in tail_audit(args.tail_audit):
            print(line)
    if args.tail_notifications:
        for line in tail_notifications(args.tail_notifications):
            print(line)


if __name__ == "__main__":
    main()
