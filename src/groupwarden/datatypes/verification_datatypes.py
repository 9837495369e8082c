"""Records and outcomes of the new-participant verification state machine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class VerificationState(Enum):
    """Per (phone, room) state. ``REMOVED`` is terminal and not persisted."""

    NONE = "none"
    PENDING = "pending"
    VERIFIED = "verified"
    REMOVED = "removed"


@dataclass(frozen=True, slots=True)
class PendingVerification:
    """A row of ``pending_verifications``; timestamps are unix seconds."""

    phone: str
    room_id: str
    code: str
    created_at: int
    expires_at: int

    def is_expired(self, now: int) -> bool:
        return self.expires_at <= now


@dataclass(frozen=True, slots=True)
class VerifiedUser:
    phone: str
    room_id: str
    verified_at: int


@dataclass(frozen=True, slots=True)
class Challenge:
    """Output of a challenge generator: the expected code and its rendered image (PNG bytes)."""

    code: str
    image: bytes


class VerificationResultKind(Enum):
    SUCCESS = "success"
    WRONG_CODE = "wrong_code"


@dataclass(frozen=True, slots=True)
class VerificationOutcome:
    """Result of checking an inbound message against a pending challenge.

    Attributes:
        kind: Whether the answer matched.
        message: Localized text to post back to the room.
        phone: Phone of the participant who answered.
    """

    kind: VerificationResultKind
    message: str
    phone: str

    @property
    def success(self) -> bool:
        return self.kind is VerificationResultKind.SUCCESS


@dataclass(frozen=True, slots=True)
class SweepReport:
    """Summary of one expiry sweep."""

    expired: int
    removed: int
    failed: int
    deleted: int
