from __future__ import annotations  # Draft / publish / undo workflow with an audit trail

import datetime as dt
import logging
import sqlite3
from typing import List, Literal, Optional, Tuple, get_args

from pydantic import BaseModel

from config.settings import settings
from domain.errors import InvalidRequestError, NotFoundError, UndoNotAllowedError
from domain.types import Tone
from notifications import NotificationDispatcher, NotificationPayload
from observability import log_event
from pipeline.registry import authenticate, load_session, require_manager
from storage.audit import AuditRecord, get_audit, insert_audit, latest_active_publish, list_audit, mark_undone
from storage.feedback import FeedbackRecord, get_feedback, update_final
from storage.sessions import SessionRecord, set_status
from storage.sqlite import as_utc, get_conn, utcnow


logger = logging.getLogger(__name__)

PublicationState = Literal["draft", "published_undoable", "published_frozen"]


class PublishResult(BaseModel):
    feedback: FeedbackRecord
    audit: AuditRecord


class PublicationStatus(BaseModel):
    feedback_id: str
    state: PublicationState
    published_at: Optional[str] = None
    can_undo_until: Optional[str] = None
    remaining_seconds: int = 0
    audit_id: Optional[str] = None


def _now(now: Optional[dt.datetime]) -> dt.datetime:
    return as_utc(now) if now is not None else utcnow()


def _check_tone(tone: str) -> None:
    if tone not in get_args(Tone):
        raise InvalidRequestError(f"Unknown tone {tone!r}")


def _load_owned(
    feedback_id: str, caller_id: str, conn: sqlite3.Connection
) -> Tuple[FeedbackRecord, SessionRecord]:  # Feedback plus its session, after the manager check
    feedback = get_feedback(feedback_id, conn=conn)
    if feedback is None:
        raise NotFoundError(f"Feedback {feedback_id} not found")
    session = load_session(feedback.session_id, conn=conn)
    require_manager(session, caller_id)
    return feedback, session


def _reload(feedback_id: str, conn: sqlite3.Connection) -> FeedbackRecord:  # Re-read inside the open transaction
    feedback = get_feedback(feedback_id, conn=conn)
    if feedback is None:
        raise NotFoundError(f"Feedback {feedback_id} not found")
    return feedback


def save_draft(feedback_id: str, *, text: str, tone: str, caller_id: str) -> FeedbackRecord:
    """Overwrite the draft text and tone; rejected once published."""

    _check_tone(tone)
    authenticate(caller_id)
    with get_conn() as conn:
        _load_owned(feedback_id, caller_id, conn)
        update_final(
            feedback_id,
            text=text,
            tone=tone,
            is_published=False,
            published_at=None,
            expect_published=False,
            conn=conn,
        )
        saved = _reload(feedback_id, conn)
    log_event("publication", saved.session_id, action="draft_saved", feedback_id=feedback_id)
    return saved


def publish(
    feedback_id: str,
    *,
    text: Optional[str] = None,
    tone: Optional[str] = None,
    caller_id: str,
    notifier: Optional[NotificationDispatcher] = None,
    now: Optional[dt.datetime] = None,
) -> PublishResult:
    """Publish the draft and open the undo window; the notification is sent after commit.

    ``text`` and ``tone`` default to the saved draft.
    """

    if tone is not None:
        _check_tone(tone)
    manager = authenticate(caller_id)
    moment = _now(now)
    deadline = moment + dt.timedelta(minutes=settings.UNDO_WINDOW_MINUTES)
    with get_conn() as conn:
        feedback, session = _load_owned(feedback_id, caller_id, conn)
        text = feedback.final_feedback if text is None else text
        tone = feedback.selected_tone if tone is None else tone
        update_final(
            feedback_id,
            text=text,
            tone=tone,
            is_published=True,
            published_at=moment.isoformat(),
            expect_published=False,
            conn=conn,
        )
        set_status(session.id, expected=["draft"], target="published", conn=conn)
        audit = insert_audit(
            conn=conn,
            feedback_id=feedback_id,
            action="published",
            previous_content=feedback.final_feedback,
            new_content=text,
            previous_tone=feedback.selected_tone,
            new_tone=tone,
            performed_by=caller_id,
            can_undo_until=deadline.isoformat(),
            metadata={"session_id": session.id, "employee_id": session.employee_id},
            created_at=moment.isoformat(),
        )
        published = _reload(feedback_id, conn)
    log_event(
        "publication",
        session.id,
        action="published",
        feedback_id=feedback_id,
        status="published",
    )

    if notifier is not None:
        payload = NotificationPayload(
            feedback_id=feedback_id,
            employee_id=session.employee_id,
            session_title=session.title,
            manager_name=manager.full_name,
        )
        try:
            notifier.dispatch(payload)
        except RuntimeError as exc:  # executor already shut down
            logger.error("Could not schedule notification feedback=%s: %s", feedback_id, exc)
    return PublishResult(feedback=published, audit=audit)


def undo(audit_id: str, *, caller_id: str, now: Optional[dt.datetime] = None) -> AuditRecord:
    """Reverse the latest publish while its undo window is open; succeeds at most once."""

    authenticate(caller_id)
    moment = _now(now)
    with get_conn() as conn:
        entry = get_audit(audit_id, conn=conn)
        if entry is None:
            raise NotFoundError(f"Audit entry {audit_id} not found")
        _, session = _load_owned(entry.feedback_id, caller_id, conn)
        if entry.action != "published":
            raise UndoNotAllowedError("Only publish entries can be undone")
        if entry.is_undone:
            raise UndoNotAllowedError("This publish has already been undone")
        latest = latest_active_publish(entry.feedback_id, conn=conn)
        if latest is None or latest.id != entry.id:
            raise UndoNotAllowedError("Only the most recent publish can be undone")
        if entry.can_undo_until is None or moment >= as_utc(dt.datetime.fromisoformat(entry.can_undo_until)):
            raise UndoNotAllowedError("The undo window has expired")
        if not mark_undone(audit_id, conn=conn):
            raise UndoNotAllowedError("This publish has already been undone")

        update_final(
            entry.feedback_id,
            text=entry.previous_content or "",
            tone=entry.previous_tone or "neutral",
            is_published=False,
            published_at=None,
            expect_published=True,
            conn=conn,
        )
        set_status(session.id, expected=["published"], target="draft", conn=conn)
        reversal = insert_audit(
            conn=conn,
            feedback_id=entry.feedback_id,
            action="unpublished",
            previous_content=entry.new_content,
            new_content=entry.previous_content,
            previous_tone=entry.new_tone,
            new_tone=entry.previous_tone,
            performed_by=caller_id,
            metadata={"undone_audit_id": audit_id},
            created_at=moment.isoformat(),
        )
    log_event(
        "publication",
        session.id,
        action="unpublished",
        feedback_id=entry.feedback_id,
        status="draft",
    )
    return reversal


def publication_status(
    feedback_id: str, *, caller_id: str, now: Optional[dt.datetime] = None
) -> PublicationStatus:
    """Draft, published within the undo window, or published and frozen."""

    authenticate(caller_id)
    moment = _now(now)
    with get_conn() as conn:
        feedback, _ = _load_owned(feedback_id, caller_id, conn)
        latest = latest_active_publish(feedback_id, conn=conn) if feedback.is_published else None
    if not feedback.is_published or latest is None:
        return PublicationStatus(feedback_id=feedback_id, state="draft")
    deadline = as_utc(dt.datetime.fromisoformat(latest.can_undo_until)) if latest.can_undo_until else moment
    remaining = max(0, int((deadline - moment).total_seconds()))
    return PublicationStatus(
        feedback_id=feedback_id,
        state="published_undoable" if moment < deadline else "published_frozen",
        published_at=feedback.published_at,
        can_undo_until=latest.can_undo_until,
        remaining_seconds=remaining,
        audit_id=latest.id,
    )


def audit_trail(feedback_id: str, *, caller_id: str) -> List[AuditRecord]:
    authenticate(caller_id)
    with get_conn() as conn:
        _load_owned(feedback_id, caller_id, conn)
        return list_audit(feedback_id, conn=conn)


__all__ = [
    "PublicationState",
    "PublicationStatus",
    "PublishResult",
    "audit_trail",
    "publication_status",
    "publish",
    "save_draft",
    "undo",
]
