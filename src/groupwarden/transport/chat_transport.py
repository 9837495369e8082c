"""
Interface the engine expects from a chat transport.

The transport owns the connection to the chat network. It pushes events into
``EventListener.on_message`` / ``on_join`` and exposes the actions below.
Implementations raise ``TransportError`` (or any exception) on failure;
callers in this package catch and log.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, List, Protocol, runtime_checkable

from groupwarden.datatypes.chat_datatypes import InboundMessage, JoinEvent, RoomMetadata

MessageCallback = Callable[[InboundMessage], Awaitable[None]]
JoinCallback = Callable[[JoinEvent], Awaitable[None]]


@runtime_checkable
class ChatTransport(Protocol):
    self_identity: str
    """Identity of the account the engine runs as."""

    async def start(self, on_message: MessageCallback, on_join: JoinCallback) -> None:
        """Connect and begin delivering events to the callbacks; returns once connected."""
        ...

    async def close(self) -> None:
        ...

    async def send_text(self, room_id: str, text: str) -> None:
        """Post ``text`` to a room or, given a user identity, a direct chat."""
        ...

    async def send_image(self, room_id: str, image: bytes, caption: str = "") -> None:
        ...

    async def delete_message(self, room_id: str, message_ref: Dict[str, Any]) -> None:
        """Delete the message identified by ``message_ref`` for everyone."""
        ...

    async def remove_participant(self, room_id: str, identity: str) -> None:
        ...

    async def fetch_room_metadata(self, room_id: str) -> RoomMetadata:
        ...

    async def fetch_all_rooms(self) -> List[RoomMetadata]:
        """Every room the account participates in."""
        ...

    async def download_media(self, message_ref: Dict[str, Any]) -> bytes:
        ...
