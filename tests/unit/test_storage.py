"""Tests for the SQLite migration and persistence helpers."""
from __future__ import annotations

import sqlite3

import pytest

from config.settings import settings
from domain.errors import InvalidTransitionError, PersistenceError
from storage.audit import get_audit, insert_audit, latest_active_publish, list_audit, mark_undone
from storage.feedback import get_feedback, get_feedback_for_session, insert_feedback, update_final
from storage.notifications import insert_notification_event, list_notification_events
from storage.profiles import get_profile, upsert_profile
from storage.sessions import get_session, insert_session, set_status, set_transcript
from storage.sqlite import get_conn


def _session():
    return insert_session(title="Q3 review", manager_id="mgr-1", employee_id="emp-1")


def _feedback(session_id: str):
    return insert_feedback(
        session_id=session_id,
        markdown="## Summary\nDraft",
        competency_tags=["Delivery"],
        tone_analysis={"selectedTone": "neutral", "fairnessScore": 0.9},
        selected_tone="neutral",
    )


def test_migrate_creates_tables() -> None:
    with sqlite3.connect(settings.DB_PATH) as conn:
        names = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    assert {"profiles", "sessions", "feedback_entries", "feedback_audit", "notification_events"} <= names


def test_profile_upsert_refreshes() -> None:
    upsert_profile(user_id="u1", full_name="A", email="a@example.com")
    upsert_profile(user_id="u1", full_name="A B", email="ab@example.com", role="Lead")
    profile = get_profile("u1")
    assert profile is not None
    assert (profile.full_name, profile.email, profile.role) == ("A B", "ab@example.com", "Lead")
    assert get_profile("missing") is None


def test_session_status_compare_and_set() -> None:
    session = _session()
    assert session.status == "pending"
    set_status(session.id, expected=["pending"], target="recording")
    assert get_session(session.id).status == "recording"
    with pytest.raises(InvalidTransitionError):
        set_status(session.id, expected=["pending"], target="recording")


def test_transcript_written_once() -> None:
    session = _session()
    set_transcript(session.id, "first", recording_mode="full")
    with pytest.raises(InvalidTransitionError):
        set_transcript(session.id, "second", recording_mode="full")
    assert get_session(session.id).transcript == "first"


def test_feedback_seeds_final_text_and_guards_publish_flag() -> None:
    session = _session()
    entry = _feedback(session.id)
    stored = get_feedback(entry.id)
    assert stored.ai_draft == stored.final_feedback == "## Summary\nDraft"
    assert stored.competency_tags == ["Delivery"]
    assert get_feedback_for_session(session.id).id == entry.id

    update_final(entry.id, text="Edited", tone="appreciative", is_published=False, published_at=None, expect_published=False)
    edited = get_feedback(entry.id)
    assert edited.final_feedback == "Edited"
    assert edited.tone_analysis["selectedTone"] == "appreciative"
    assert edited.ai_draft == "## Summary\nDraft"

    with pytest.raises(InvalidTransitionError):
        update_final(entry.id, text="x", tone="neutral", is_published=False, published_at=None, expect_published=True)


def test_one_feedback_entry_per_session() -> None:
    session = _session()
    _feedback(session.id)
    with pytest.raises(PersistenceError):
        _feedback(session.id)


def test_audit_latest_and_conditional_undo() -> None:
    session = _session()
    entry = _feedback(session.id)
    first = insert_audit(feedback_id=entry.id, action="published", performed_by="mgr-1", created_at="2025-01-01T10:00:00+00:00")
    second = insert_audit(feedback_id=entry.id, action="published", performed_by="mgr-1", created_at="2025-01-01T11:00:00+00:00")
    assert latest_active_publish(entry.id).id == second.id
    assert mark_undone(second.id) is True
    assert mark_undone(second.id) is False
    assert get_audit(second.id).is_undone
    assert latest_active_publish(entry.id).id == first.id
    assert [a.id for a in list_audit(entry.id)] == [first.id, second.id]


def test_transaction_rolls_back_on_failure() -> None:
    session = _session()
    with pytest.raises(InvalidTransitionError):
        with get_conn() as conn:
            set_status(session.id, expected=["pending"], target="recording", conn=conn)
            set_transcript(session.id, "text", recording_mode="full", conn=conn)
            set_status(session.id, expected=["pending"], target="recording", conn=conn)
    reloaded = get_session(session.id)
    assert reloaded.status == "pending"
    assert reloaded.transcript is None


def test_notification_events_round_trip() -> None:
    insert_notification_event(feedback_id="f1", employee_id="e1", status="skipped", detail="no key")
    events = list_notification_events("f1")
    assert [(e.status, e.detail) for e in events] == [("skipped", "no key")]
    with pytest.raises(Exception):
        insert_notification_event(feedback_id="f1", employee_id="e1", status="queued")
