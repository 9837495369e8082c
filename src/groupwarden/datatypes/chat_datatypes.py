"""
Transport-neutral chat data structures.

The chat transport collaborator turns its native events into these types
before handing them to the event listener.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

from groupwarden.datatypes.verdict_datatypes import MediaKind
from groupwarden.util.format_utils import identity_to_phone


class ParticipantRole(Enum):
    MEMBER = "member"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"

    @property
    def is_admin(self) -> bool:
        return self is not ParticipantRole.MEMBER


@dataclass(slots=True)
class Participant:
    identity: str
    role: ParticipantRole = ParticipantRole.MEMBER

    @property
    def phone(self) -> str:
        return identity_to_phone(self.identity)


@dataclass(slots=True)
class RoomMetadata:
    """Display name and membership of a room as reported by the transport."""

    room_id: str
    name: str
    participants: List[Participant] = field(default_factory=list)

    def find_participant(self, identity: str) -> Participant | None:
        phone = identity_to_phone(identity)
        for participant in self.participants:
            if participant.identity == identity or participant.phone == phone:
                return participant
        return None

    def is_admin(self, identity: str) -> bool:
        participant = self.find_participant(identity)
        return participant is not None and participant.role.is_admin


@dataclass(slots=True)
class MediaAttachment:
    """Media carried by an inbound message; bytes are fetched lazily through the transport."""

    kind: MediaKind
    mime_type: str = ""


@dataclass(slots=True)
class InboundMessage:
    """A message delivered by the transport.

    Attributes:
        room_id: Room the message was posted in; equals ``sender`` for direct chats.
        sender: Transport identity of the author.
        text: Text body or media caption (may be empty).
        message_ref: Opaque transport reference used to delete, download or restore.
        sender_name: Display name pushed by the sender, if any.
        media: Attached media, if any.
        quoted_text: Text of the message this one replies to, if any.
        from_self: True for messages sent by the engine's own account.
        is_group: False for one-to-one chats.
    """

    room_id: str
    sender: str
    text: str = ""
    message_ref: Dict[str, Any] | None = None
    sender_name: str | None = None
    media: MediaAttachment | None = None
    quoted_text: str | None = None
    from_self: bool = False
    is_group: bool = True

    @property
    def sender_phone(self) -> str:
        return identity_to_phone(self.sender)


@dataclass(slots=True)
class JoinEvent:
    room_id: str
    participants: List[str] = field(default_factory=list)
