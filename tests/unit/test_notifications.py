from __future__ import annotations

import concurrent.futures
import datetime as dt

import pytest

from config import EmailRoute
from notifications import NotificationDispatcher, NotificationPayload, render_email
from publication import publish
from storage.feedback import get_feedback, insert_feedback
from storage.notifications import list_notification_events
from storage.sessions import insert_session, set_status


class InlineExecutor(concurrent.futures.Executor):
    """Run submitted work immediately so outcomes can be asserted."""

    def submit(self, fn, /, *args, **kwargs):
        future = concurrent.futures.Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as exc:  # noqa: BLE001
            future.set_exception(exc)
        return future


def _route(**overrides) -> EmailRoute:
    data = {"api_key_env": None, "sender": "Feedback <noreply@example.com>", "app_url": "https://app.example/"}
    data.update(overrides)
    return EmailRoute(**data)


def _payload(**overrides) -> NotificationPayload:
    data = {"feedback_id": "f1", "employee_id": "emp-1", "session_title": "Q3 <review>", "manager_name": "Morgan Lee"}
    data.update(overrides)
    return NotificationPayload(**data)


def test_render_email_escapes_and_links() -> None:
    message = render_email(_payload(), full_name="Dana Cruz", app_url="https://app.example/")
    assert message["subject"] == "New Performance Feedback Available: Q3 <review>"
    assert "Q3 &lt;review&gt;" in message["html"]
    assert "Hi Dana Cruz," in message["html"]
    assert "(Morgan Lee)" in message["html"]
    assert 'href="https://app.example/employee"' in message["html"]


def test_sent_outcome_is_recorded(people, make_email) -> None:
    client = make_email()
    dispatcher = NotificationDispatcher(_route(), client=client, executor=InlineExecutor())
    outcome = dispatcher.dispatch(_payload()).result()
    assert outcome.status == "sent"
    assert client.sent[0]["json"]["to"] == ["dana@example.com"]
    assert client.sent[0]["url"] == "https://api.resend.com/emails"
    assert [e.status for e in list_notification_events("f1")] == ["sent"]


def test_missing_configuration_is_skipped(people, monkeypatch) -> None:
    monkeypatch.delenv("RESEND_API_KEY", raising=False)
    no_route = NotificationDispatcher(None, executor=InlineExecutor()).deliver(_payload())
    no_key = NotificationDispatcher(EmailRoute(), executor=InlineExecutor()).deliver(_payload())
    assert no_route.status == "skipped"
    assert no_key.status == "skipped"
    assert "RESEND_API_KEY" in no_key.detail


def test_missing_recipient_is_skipped(make_email) -> None:
    client = make_email()
    outcome = NotificationDispatcher(_route(), client=client, executor=InlineExecutor()).deliver(
        _payload(employee_id="ghost")
    )
    assert outcome.status == "skipped"
    assert client.sent == []


@pytest.mark.parametrize("kwargs", [{"status_code": 500}, {"error": ConnectionError("smtp down")}])
def test_failures_are_recorded_not_raised(people, make_email, kwargs) -> None:
    dispatcher = NotificationDispatcher(_route(), client=make_email(**kwargs), executor=InlineExecutor())
    outcome = dispatcher.deliver(_payload())
    assert outcome.status == "failed"
    assert [e.status for e in list_notification_events("f1")] == ["failed"]


def test_publish_survives_notification_failure(people, make_email) -> None:
    session = insert_session(title="Q3 review", manager_id="mgr-1", employee_id="emp-1")
    set_status(session.id, expected=["pending"], target="draft")
    entry = insert_feedback(
        session_id=session.id,
        markdown="draft",
        competency_tags=[],
        tone_analysis={},
        selected_tone="neutral",
    )
    dispatcher = NotificationDispatcher(
        _route(),
        client=make_email(error=ConnectionError("down")),
        executor=InlineExecutor(),
    )
    result = publish(entry.id, text="final", tone="neutral", caller_id="mgr-1", notifier=dispatcher, now=dt.datetime.now(dt.timezone.utc))
    assert result.feedback.is_published
    assert get_feedback(entry.id).is_published
    assert [e.status for e in list_notification_events(entry.id)] == ["failed"]


def test_default_executor_runs_in_background(people, make_email) -> None:
    dispatcher = NotificationDispatcher(_route(), client=make_email())
    try:
        future = dispatcher.dispatch(_payload())
        assert future.result(timeout=5).status == "sent"
    finally:
        dispatcher.shutdown()
