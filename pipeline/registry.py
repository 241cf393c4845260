"""Session registry: caller identity, manager checks and session lifecycle entry points."""
from __future__ import annotations

import sqlite3
from typing import Optional

from domain.errors import AuthenticationError, AuthorizationError, InvalidRequestError, NotFoundError
from domain.lifecycle import check_transition
from domain.types import RecordingMode
from observability import log_event
from storage.profiles import ProfileRecord, get_profile
from storage.sessions import SessionRecord, get_session as _load_session, insert_session, set_status
from storage.sqlite import get_conn

MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 2000


def authenticate(caller_id: Optional[str], conn: Optional[sqlite3.Connection] = None) -> ProfileRecord:
    """Resolve the caller against the people directory; unknown identities are rejected."""

    if not caller_id or not caller_id.strip():
        raise AuthenticationError("Missing caller identity")
    profile = get_profile(caller_id.strip(), conn=conn)
    if profile is None:
        raise AuthenticationError("Unknown caller identity")
    return profile


def load_session(session_id: str, conn: Optional[sqlite3.Connection] = None) -> SessionRecord:
    session = _load_session(session_id, conn=conn)
    if session is None:
        raise NotFoundError(f"Session {session_id} not found")
    return session


def require_manager(session: SessionRecord, caller_id: str) -> None:
    if session.manager_id != caller_id:
        raise AuthorizationError("Only the session's manager may perform this action")


def create_session(
    *,
    manager_id: str,
    title: str,
    employee_id: str,
    description: Optional[str] = None,
    recording_mode: RecordingMode = "full",
) -> SessionRecord:
    authenticate(manager_id)
    if not title or not title.strip():
        raise InvalidRequestError("Session title is required")
    if len(title.strip()) > MAX_TITLE_LENGTH:
        raise InvalidRequestError(f"Session title must be at most {MAX_TITLE_LENGTH} characters")
    if description is not None and len(description) > MAX_DESCRIPTION_LENGTH:
        raise InvalidRequestError(f"Session description must be at most {MAX_DESCRIPTION_LENGTH} characters")
    if get_profile(employee_id) is None:
        raise InvalidRequestError(f"Employee {employee_id} is not in the directory")
    session = insert_session(
        title=title.strip(),
        manager_id=manager_id,
        employee_id=employee_id,
        description=description,
        recording_mode=recording_mode,
    )
    log_event("session", session.id, action="created", status=session.status)
    return session


def start_recording(session_id: str, *, caller_id: str) -> SessionRecord:
    authenticate(caller_id)
    with get_conn() as conn:
        session = load_session(session_id, conn=conn)
        require_manager(session, caller_id)
        check_transition(session.status, "recording")
        set_status(session_id, expected=[session.status], target="recording", conn=conn)
        updated = load_session(session_id, conn=conn)
    log_event("session", session_id, action="recording_started", status=updated.status)
    return updated


def get_session(session_id: str, *, caller_id: str) -> SessionRecord:
    authenticate(caller_id)
    session = load_session(session_id)
    require_manager(session, caller_id)
    return session


__all__ = [
    "authenticate",
    "create_session",
    "get_session",
    "load_session",
    "require_manager",
    "start_recording",
]
