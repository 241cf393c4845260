from __future__ import annotations

from observability import admin_cli
from storage.audit import insert_audit
from storage.feedback import insert_feedback
from storage.notifications import insert_notification_event
from storage.sessions import insert_session


def test_tail_audit_and_notifications(capsys) -> None:
    session = insert_session(title="Review", manager_id="mgr-1", employee_id="emp-1")
    entry = insert_feedback(session_id=session.id, markdown="md", competency_tags=[], tone_analysis={}, selected_tone="neutral")
    insert_audit(feedback_id=entry.id, action="published", performed_by="mgr-1", can_undo_until="2025-01-01T10:10:00+00:00")
    insert_notification_event(feedback_id=entry.id, employee_id="emp-1", status="skipped", detail="no key")

    audit_lines = admin_cli.tail_audit(5)
    assert len(audit_lines) == 1
    assert f"{entry.id} published by=mgr-1" in audit_lines[0]

    admin_cli.main(["--tail-notifications", "5"])
    out = capsys.readouterr().out
    assert "status=skipped detail=no key" in out
