from __future__ import annotations  # Re-export notification dispatcher

from .dispatcher import NotificationDispatcher, NotificationOutcome, NotificationPayload, render_email

__all__ = ["NotificationDispatcher", "NotificationOutcome", "NotificationPayload", "render_email"]
