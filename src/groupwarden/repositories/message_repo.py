"""Message history and the read-only aggregates built on it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

import aiosqlite

from groupwarden.util.format_utils import hash_phone

SECONDS_PER_DAY = 86_400
DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


@dataclass(frozen=True, slots=True)
class StoredMessage:
    room_id: str
    hashed_phone: str
    body: str
    timestamp: int


class MessageRepo:
    """Low-level access to the ``messages`` table."""

    @staticmethod
    async def insert(
        conn: aiosqlite.Connection,
        room_id: str,
        phone: str,
        body: str,
        timestamp: int,
        *,
        is_from_admin: bool = False,
    ) -> None:
        await conn.execute(
            "INSERT INTO messages (room_id, hashed_phone, body, is_from_admin, timestamp) VALUES (?, ?, ?, ?, ?)",
            (room_id, hash_phone(phone), body, int(is_from_admin), timestamp),
        )

    @staticmethod
    async def recent(
        conn: aiosqlite.Connection,
        room_id: str,
        since: int,
        limit: int = 500,
    ) -> List[StoredMessage]:
        cursor = await conn.execute(
            """
            SELECT room_id, hashed_phone, body, timestamp FROM messages
            WHERE room_id = ? AND timestamp >= ? AND body IS NOT NULL AND body != ''
            ORDER BY timestamp DESC LIMIT ?
            """,
            (room_id, since, limit),
        )
        return [
            StoredMessage(room_id=str(r[0]), hashed_phone=str(r[1]), body=str(r[2]), timestamp=int(r[3]))
            for r in await cursor.fetchall()
        ]

    @staticmethod
    async def count(conn: aiosqlite.Connection, room_id: str, since: int) -> int:
        cursor = await conn.execute(
            "SELECT COUNT(*) FROM messages WHERE room_id = ? AND timestamp >= ?",
            (room_id, since),
        )
        row = await cursor.fetchone()
        return int(row[0]) if row else 0

    @staticmethod
    async def count_unique_senders(conn: aiosqlite.Connection, room_id: str, since: int) -> int:
        cursor = await conn.execute(
            "SELECT COUNT(DISTINCT hashed_phone) FROM messages WHERE room_id = ? AND timestamp >= ?",
            (room_id, since),
        )
        row = await cursor.fetchone()
        return int(row[0]) if row else 0

    @staticmethod
    async def count_by_weekday(conn: aiosqlite.Connection, room_id: str, since: int) -> List[Tuple[str, int]]:
        """Message counts per day of week, busiest first."""
        cursor = await conn.execute(
            """
            SELECT CAST(strftime('%w', timestamp, 'unixepoch') AS INTEGER) AS weekday, COUNT(*) AS n
            FROM messages
            WHERE room_id = ? AND timestamp >= ?
            GROUP BY weekday
            ORDER BY n DESC, weekday
            """,
            (room_id, since),
        )
        return [(DAY_NAMES[int(r[0])], int(r[1])) for r in await cursor.fetchall()]
