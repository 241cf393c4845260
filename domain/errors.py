"""Error taxonomy surfaced by the pipeline and the publication workflow."""
from __future__ import annotations


class FeedbackError(RuntimeError):  # Base error for surfaced failures
    status_code = 500


class InvalidRequestError(FeedbackError):  # Malformed request, raised before any external call
    status_code = 422


class AuthenticationError(FeedbackError):  # Caller identity missing or unknown
    status_code = 401


class AuthorizationError(FeedbackError):  # Caller is not the session's manager
    status_code = 403


class NotFoundError(FeedbackError):
    status_code = 404


class InvalidTransitionError(FeedbackError):  # Session or feedback is in the wrong state
    status_code = 409


class UndoNotAllowedError(InvalidTransitionError):
    pass


class ProviderUnavailableError(FeedbackError):  # No generative provider for primary synthesis
    status_code = 503


class ProviderQuotaError(FeedbackError):  # Rate limit or credit exhaustion on primary synthesis
    status_code = 429

    def __init__(self, message: str, *, reason: str = "rate_limited") -> None:
        super().__init__(message)
        self.reason = reason


class PersistenceError(FeedbackError):  # Storage write or read failure
    status_code = 500


__all__ = [
    "FeedbackError",
    "InvalidRequestError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "InvalidTransitionError",
    "UndoNotAllowedError",
    "ProviderUnavailableError",
    "ProviderQuotaError",
    "PersistenceError",
]
