"""
Name/id mapping for the rooms the engine participates in.

Rooms are configured by display name; the transport addresses them by id.
The directory is rebuilt from ``fetch_all_rooms`` on startup (and on demand
from the console) and answers the "is this room monitored" and "is this
sender an admin" questions for the listener.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from groupwarden.datatypes.chat_datatypes import RoomMetadata
from groupwarden.transport.chat_transport import ChatTransport
from groupwarden.util.format_utils import mask_phone
from groupwarden.util.logger import get_logger

logger = get_logger("room_directory")


class RoomDirectory:
    def __init__(self, transport: ChatTransport, monitored_names: Iterable[str]) -> None:
        self.transport = transport
        self.monitored_names = [name for name in monitored_names if name]
        self._monitored_lower = {name.lower() for name in self.monitored_names}
        self._id_to_name: Dict[str, str] = {}
        self._name_to_id: Dict[str, str] = {}

    async def refresh(self) -> int:
        """Rebuild the mapping from the transport; returns the number of rooms seen."""
        try:
            rooms = await self.transport.fetch_all_rooms()
        except Exception as exc:
            logger.error("[ROOMS] Error fetching rooms: %s", exc)
            return len(self._id_to_name)

        self._id_to_name = {}
        self._name_to_id = {}
        for room in rooms:
            self.remember(room)

        logger.info("[ROOMS] Loaded %d rooms", len(self._id_to_name))
        for name in self.monitored_names:
            room_id = self._name_to_id.get(name.lower())
            if room_id:
                logger.info("[ROOMS] Monitoring \"%s\" -> %s", name, room_id)
            else:
                logger.warning("[ROOMS] Room \"%s\" not found. Make sure the engine is a member.", name)
        return len(self._id_to_name)

    def remember(self, room: RoomMetadata) -> None:
        self._id_to_name[room.room_id] = room.name
        self._name_to_id[room.name.lower()] = room.room_id

    def name_of(self, room_id: str) -> str | None:
        return self._id_to_name.get(room_id)

    def id_of(self, name: str) -> str | None:
        return self._name_to_id.get(name.lower())

    def is_monitored(self, room_id: str) -> bool:
        name = self._id_to_name.get(room_id)
        return name is not None and name.lower() in self._monitored_lower

    def monitored_rooms(self) -> List[Tuple[str, str]]:
        """``(name, room_id)`` for every configured room that was found."""
        found = []
        for name in self.monitored_names:
            room_id = self._name_to_id.get(name.lower())
            if room_id:
                found.append((name, room_id))
        return found

    async def resolve_name(self, room_id: str) -> str:
        """Cached display name, else the transport's, else the id itself."""
        name = self._id_to_name.get(room_id)
        if name:
            return name
        try:
            metadata = await self.transport.fetch_room_metadata(room_id)
        except Exception as exc:
            logger.debug("[ROOMS] Could not resolve name of %s: %s", room_id, exc)
            return room_id
        self.remember(metadata)
        return metadata.name or room_id

    async def is_admin(self, room_id: str, identity: str) -> bool:
        """True when ``identity`` holds an admin role in the room; False if unknown."""
        try:
            metadata = await self.transport.fetch_room_metadata(room_id)
        except Exception as exc:
            logger.error("[ROOMS] Could not check admin status of %s: %s", mask_phone(identity), exc)
            return False
        return metadata.is_admin(identity)

    def __len__(self) -> int:
        return len(self._id_to_name)
