"""Session status transitions."""
from __future__ import annotations

from typing import Dict, FrozenSet

from domain.errors import InvalidTransitionError

# published -> draft is reachable only through undo; see publication.state_machine.
TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "pending": frozenset({"recording"}),
    "recording": frozenset({"processing"}),
    "processing": frozenset({"processing", "draft"}),
    "draft": frozenset({"published"}),
    "published": frozenset({"draft"}),
}


def check_transition(current: str, target: str) -> None:
    """Raise when ``current -> target`` is not a legal session move."""

    if target not in TRANSITIONS.get(current, frozenset()):
        raise InvalidTransitionError(f"Session cannot move from {current} to {target}")


__all__ = ["TRANSITIONS", "check_transition"]
