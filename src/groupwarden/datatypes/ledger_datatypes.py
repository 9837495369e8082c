"""Moderation ledger rows and the results of operations on them."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class AdminDisposition(Enum):
    """What an administrator decided about a logged verdict."""

    IGNORE = "ignore"
    BAN = "ban"
    MUTE = "mute"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


class RestoreOutcome(Enum):
    RESTORED = "restored"
    NOT_FOUND = "not_found"
    ALREADY_RESTORED = "already_restored"
    DELIVERY_FAILED = "delivery_failed"

    @property
    def success(self) -> bool:
        return self is RestoreOutcome.RESTORED

    @property
    def message(self) -> str:
        return {
            RestoreOutcome.RESTORED: "Message restored successfully",
            RestoreOutcome.NOT_FOUND: "Message not found",
            RestoreOutcome.ALREADY_RESTORED: "Message already restored",
            RestoreOutcome.DELIVERY_FAILED: "Could not deliver the restored message",
        }[self]


@dataclass(slots=True)
class NewLogEntry:
    """Fields supplied by the caller when a verdict is recorded."""

    room_id: str
    user_phone: str
    body: str
    violation_kind: str
    action_taken: str = "deleted"
    user_name: str | None = None
    category_scores: Dict[str, float] = field(default_factory=dict)
    message_ref: Dict[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class ModerationLogEntry:
    """A persisted moderation verdict.

    ``restored`` only ever goes from False to True; ``admin_response`` is the
    last disposition text an administrator attached.
    """

    id: int
    room_id: str
    user_phone: str
    hashed_phone: str
    user_name: str | None
    body: str
    violation_kind: str
    action_taken: str
    category_scores: Dict[str, float]
    message_ref: Dict[str, Any] | None
    restored: bool
    admin_response: str | None
    timestamp: int


@dataclass(frozen=True, slots=True)
class AdminResponseResult:
    disposition: AdminDisposition
    message: str
    success: bool = True
