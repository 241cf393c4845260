from __future__ import annotations  # Re-export publication workflow

from .state_machine import (
    PublicationStatus,
    PublishResult,
    audit_trail,
    publication_status,
    publish,
    save_draft,
    undo,
)

__all__ = [
    "PublicationStatus",
    "PublishResult",
    "audit_trail",
    "publication_status",
    "publish",
    "save_draft",
    "undo",
]
