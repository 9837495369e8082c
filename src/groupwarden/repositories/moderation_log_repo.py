"""Persistent storage for moderation verdicts (``moderation_logs``)."""

from __future__ import annotations

import json
from typing import Any, Dict, List

import aiosqlite

from groupwarden.datatypes.ledger_datatypes import ModerationLogEntry, NewLogEntry
from groupwarden.util.format_utils import hash_phone
from groupwarden.util.logger import get_logger

logger = get_logger("moderation_log_repo")

_COLUMNS = (
    "id, room_id, user_phone, hashed_phone, user_name, body, violation_kind, "
    "action_taken, category_scores, message_ref, restored, admin_response, timestamp"
)


def _load_json(raw: str | None, default: Any) -> Any:
    if not raw:
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("[MODERATION LOG] Stored JSON column is corrupt: %.60s", raw)
        return default


def _row_to_entry(row) -> ModerationLogEntry:
    scores: Dict[str, float] = _load_json(row[8], {})
    return ModerationLogEntry(
        id=int(row[0]),
        room_id=str(row[1]),
        user_phone=str(row[2]),
        hashed_phone=str(row[3]),
        user_name=row[4],
        body=row[5] or "",
        violation_kind=str(row[6]),
        action_taken=str(row[7]),
        category_scores=scores if isinstance(scores, dict) else {},
        message_ref=_load_json(row[9], None),
        restored=bool(row[10]),
        admin_response=row[11],
        timestamp=int(row[12]),
    )


class ModerationLogRepo:
    """Low-level CRUD for the ``moderation_logs`` table."""

    @staticmethod
    async def insert(conn: aiosqlite.Connection, entry: NewLogEntry, timestamp: int) -> int:
        """Insert a verdict row and return its id."""
        cursor = await conn.execute(
            """
            INSERT INTO moderation_logs (
                room_id, user_phone, hashed_phone, user_name, body, violation_kind,
                action_taken, category_scores, message_ref, restored, timestamp
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?)
            """,
            (
                entry.room_id,
                entry.user_phone,
                hash_phone(entry.user_phone),
                entry.user_name,
                entry.body,
                entry.violation_kind,
                entry.action_taken,
                json.dumps(entry.category_scores or {}),
                json.dumps(entry.message_ref) if entry.message_ref is not None else None,
                timestamp,
            ),
        )
        return int(cursor.lastrowid)

    @staticmethod
    async def get(conn: aiosqlite.Connection, entry_id: int) -> ModerationLogEntry | None:
        cursor = await conn.execute(f"SELECT {_COLUMNS} FROM moderation_logs WHERE id = ?", (entry_id,))
        row = await cursor.fetchone()
        return _row_to_entry(row) if row else None

    @staticmethod
    async def list_recent(conn: aiosqlite.Connection, limit: int = 20) -> List[ModerationLogEntry]:
        cursor = await conn.execute(
            f"SELECT {_COLUMNS} FROM moderation_logs ORDER BY timestamp DESC, id DESC LIMIT ?",
            (limit,),
        )
        return [_row_to_entry(row) for row in await cursor.fetchall()]

    @staticmethod
    async def mark_restored(conn: aiosqlite.Connection, entry_id: int) -> bool:
        """Flip ``restored`` to 1; returns False if it was already set or the row is missing."""
        cursor = await conn.execute(
            "UPDATE moderation_logs SET restored = 1 WHERE id = ? AND restored = 0",
            (entry_id,),
        )
        return cursor.rowcount > 0

    @staticmethod
    async def set_admin_response(conn: aiosqlite.Connection, entry_id: int, response: str) -> bool:
        cursor = await conn.execute(
            "UPDATE moderation_logs SET admin_response = ? WHERE id = ?",
            (response, entry_id),
        )
        return cursor.rowcount > 0

    @staticmethod
    async def clear_all(conn: aiosqlite.Connection) -> int:
        cursor = await conn.execute("DELETE FROM moderation_logs")
        return cursor.rowcount
