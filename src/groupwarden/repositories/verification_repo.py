"""
Persistent storage for pending challenges and verified participants.

Timestamps are INTEGER unix seconds so expiry checks are plain comparisons.
"""

from __future__ import annotations

from typing import List, Tuple

import aiosqlite

from groupwarden.datatypes.verification_datatypes import PendingVerification, VerifiedUser
from groupwarden.util.format_utils import hash_phone
from groupwarden.util.logger import get_logger

logger = get_logger("verification_repo")


def _row_to_pending(row) -> PendingVerification:
    return PendingVerification(
        phone=str(row[0]),
        room_id=str(row[1]),
        code=str(row[2]),
        created_at=int(row[3]),
        expires_at=int(row[4]),
    )


class PendingVerificationRepo:
    """Low-level CRUD for the ``pending_verifications`` table."""

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @staticmethod
    async def upsert(
        conn: aiosqlite.Connection,
        phone: str,
        room_id: str,
        code: str,
        created_at: int,
        expires_at: int,
    ) -> None:
        """Insert or replace the pending row (primary key = phone + room_id)."""
        await conn.execute(
            """
            INSERT INTO pending_verifications (phone, room_id, code, created_at, expires_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(phone, room_id) DO UPDATE SET
                code       = excluded.code,
                created_at = excluded.created_at,
                expires_at = excluded.expires_at
            """,
            (phone, room_id, code.upper(), created_at, expires_at),
        )

    @staticmethod
    async def delete_if_unchanged(conn: aiosqlite.Connection, record: PendingVerification) -> bool:
        """Delete ``record`` only if the stored row still has the same expiry.

        Returns False when the row is gone or was replaced by a newer
        challenge in the meantime.
        """
        cursor = await conn.execute(
            "DELETE FROM pending_verifications WHERE phone = ? AND room_id = ? AND expires_at = ?",
            (record.phone, record.room_id, record.expires_at),
        )
        return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    async def get(conn: aiosqlite.Connection, phone: str, room_id: str) -> PendingVerification | None:
        """Return the row for the key regardless of expiry."""
        cursor = await conn.execute(
            "SELECT phone, room_id, code, created_at, expires_at "
            "FROM pending_verifications WHERE phone = ? AND room_id = ?",
            (phone, room_id),
        )
        row = await cursor.fetchone()
        return _row_to_pending(row) if row else None

    @staticmethod
    async def get_active(
        conn: aiosqlite.Connection,
        phone: str,
        room_id: str,
        now: int,
    ) -> PendingVerification | None:
        """Return the row only while ``now < expires_at``."""
        cursor = await conn.execute(
            "SELECT phone, room_id, code, created_at, expires_at "
            "FROM pending_verifications WHERE phone = ? AND room_id = ? AND expires_at > ?",
            (phone, room_id, now),
        )
        row = await cursor.fetchone()
        return _row_to_pending(row) if row else None

    @staticmethod
    async def get_expired(conn: aiosqlite.Connection, now: int) -> List[PendingVerification]:
        """Return all rows where ``expires_at <= now``."""
        cursor = await conn.execute(
            "SELECT phone, room_id, code, created_at, expires_at "
            "FROM pending_verifications WHERE expires_at <= ? ORDER BY expires_at",
            (now,),
        )
        rows = await cursor.fetchall()
        return [_row_to_pending(row) for row in rows]

    @staticmethod
    async def count(conn: aiosqlite.Connection) -> int:
        cursor = await conn.execute("SELECT COUNT(*) FROM pending_verifications")
        row = await cursor.fetchone()
        return int(row[0]) if row else 0


class VerifiedUserRepo:
    """Low-level CRUD for the ``verified_users`` table."""

    @staticmethod
    async def insert(conn: aiosqlite.Connection, phone: str, room_id: str, verified_at: int) -> None:
        await conn.execute(
            """
            INSERT INTO verified_users (phone, room_id, hashed_phone, verified_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(phone, room_id) DO NOTHING
            """,
            (phone, room_id, hash_phone(phone), verified_at),
        )

    @staticmethod
    async def exists(conn: aiosqlite.Connection, phone: str, room_id: str) -> bool:
        cursor = await conn.execute(
            "SELECT 1 FROM verified_users WHERE phone = ? AND room_id = ? LIMIT 1",
            (phone, room_id),
        )
        return await cursor.fetchone() is not None

    @staticmethod
    async def counts_by_room(conn: aiosqlite.Connection) -> List[Tuple[str, int]]:
        cursor = await conn.execute(
            "SELECT room_id, COUNT(*) FROM verified_users GROUP BY room_id ORDER BY room_id"
        )
        return [(str(row[0]), int(row[1])) for row in await cursor.fetchall()]

    @staticmethod
    async def last_verified(conn: aiosqlite.Connection, limit: int = 10) -> List[VerifiedUser]:
        cursor = await conn.execute(
            "SELECT phone, room_id, verified_at FROM verified_users ORDER BY verified_at DESC LIMIT ?",
            (limit,),
        )
        return [
            VerifiedUser(phone=str(row[0]), room_id=str(row[1]), verified_at=int(row[2]))
            for row in await cursor.fetchall()
        ]
