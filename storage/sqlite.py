"""SQLite helpers for the persistence layer."""
from __future__ import annotations

import datetime as dt
import os
import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional

from config.settings import settings
from domain.errors import PersistenceError


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def as_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


@contextmanager
def get_conn() -> Iterator[sqlite3.Connection]:
    """Yield a SQLite connection; commit on success, roll back on any error."""

    directory = os.path.dirname(settings.DB_PATH) or "."
    os.makedirs(directory, exist_ok=True)
    try:
        conn = sqlite3.connect(settings.DB_PATH)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
    except sqlite3.Error as exc:
        raise PersistenceError(f"database unavailable: {exc}") from exc
    try:
        yield conn
        conn.commit()
    except sqlite3.Error as exc:
        conn.rollback()
        raise PersistenceError(f"database write failed: {exc}") from exc
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def connection(conn: Optional[sqlite3.Connection] = None) -> Iterator[sqlite3.Connection]:
    """Join the caller's transaction when ``conn`` is given, else open a new one."""

    if conn is not None:
        try:
            yield conn
        except sqlite3.Error as exc:
            raise PersistenceError(f"database write failed: {exc}") from exc
        return
    with get_conn() as own:
        yield own
