from __future__ import annotations  # Fire-and-forget employee notification on publish

import concurrent.futures
import html
import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel

from config import EmailRoute
from config.settings import settings
from domain.errors import PersistenceError
from llm_gateway import HttpClient
from observability import log_event
from storage.notifications import insert_notification_event
from storage.profiles import get_profile


logger = logging.getLogger(__name__)


class NotificationPayload(BaseModel):
    feedback_id: str
    employee_id: str
    session_title: str
    manager_name: Optional[str] = None


class NotificationOutcome(BaseModel):
    status: str
    detail: str = ""


def render_email(payload: NotificationPayload, *, full_name: Optional[str], app_url: str) -> Dict[str, str]:
    greeting = html.escape(full_name or "there")
    manager = f" ({html.escape(payload.manager_name)})" if payload.manager_name else ""
    title = html.escape(payload.session_title)
    body = (
        f"<p>Hi {greeting},</p>"
        f"<p>Your manager{manager} has published new performance feedback for you.</p>"
        f"<h3>{title}</h3>"
        f'<p><a href="{app_url.rstrip("/")}/employee">View My Feedback</a></p>'
        "<p>This is an automated message. Please do not reply to this email.</p>"
    )
    return {
        "subject": f"New Performance Feedback Available: {payload.session_title}",
        "html": body,
    }


class NotificationDispatcher:
    """Send publish notifications on a background executor; outcomes are recorded, never raised."""

    def __init__(
        self,
        route: Optional[EmailRoute],
        *,
        client: Optional[HttpClient] = None,
        executor: Optional[concurrent.futures.Executor] = None,
    ) -> None:
        self._route = route
        self._client = client
        self._executor = executor or concurrent.futures.ThreadPoolExecutor(
            max_workers=settings.NOTIFY_WORKERS,
            thread_name_prefix="notify",
        )

    def dispatch(self, payload: NotificationPayload) -> concurrent.futures.Future:
        return self._executor.submit(self.deliver, payload)

    def deliver(self, payload: NotificationPayload) -> NotificationOutcome:
        try:
            outcome = self._send(payload)
        except Exception as exc:  # noqa: BLE001
            logger.error("Notification failed feedback=%s: %s", payload.feedback_id, exc)
            outcome = NotificationOutcome(status="failed", detail=str(exc))
        self._record(payload, outcome)
        return outcome

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _send(self, payload: NotificationPayload) -> NotificationOutcome:
        route = self._route
        if route is None:
            return NotificationOutcome(status="skipped", detail="email not configured")
        api_key = route.api_key()
        if route.api_key_env and not api_key:
            return NotificationOutcome(status="skipped", detail=f"{route.api_key_env} not set")

        profile = get_profile(payload.employee_id)
        if profile is None or not profile.email:
            return NotificationOutcome(status="skipped", detail="employee email not found")

        message: Dict[str, Any] = {"from": route.sender, "to": [profile.email]}
        message.update(render_email(payload, full_name=profile.full_name, app_url=route.app_url))
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        url = f"{route.base_url}{route.endpoint}"
        if self._client is not None:
            response = self._client.post(url, json=message, headers=headers, timeout=route.timeout_s)
        else:
            with httpx.Client(timeout=route.timeout_s) as http_client:
                response = http_client.post(url, json=message, headers=headers)
        if response.status_code >= 400:
            return NotificationOutcome(status="failed", detail=f"email API returned status {response.status_code}")
        return NotificationOutcome(status="sent", detail=profile.email)

    def _record(self, payload: NotificationPayload, outcome: NotificationOutcome) -> None:
        log_event(
            "notification",
            payload.feedback_id,
            status=outcome.status,
            feedback_id=payload.feedback_id,
            reason=outcome.detail,
        )
        try:
            insert_notification_event(
                feedback_id=payload.feedback_id,
                employee_id=payload.employee_id,
                status=outcome.status,
                detail=outcome.detail,
            )
        except PersistenceError as exc:
            logger.error("Could not record notification outcome feedback=%s: %s", payload.feedback_id, exc)


__all__ = ["NotificationDispatcher", "NotificationOutcome", "NotificationPayload", "render_email"]
