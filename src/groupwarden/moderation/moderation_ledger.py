"""
Durable record of every moderation verdict.

Entries are created by the listener after a verdict, read by the console and
the dashboard, and updated by two transitions only: ``restored`` flips from
False to True once, and ``admin_response`` records the latest disposition.
Updates to one entry are serialized by a keyed lock on top of the database
write transaction.
"""

from __future__ import annotations

from typing import List

from groupwarden.database.database import Database
from groupwarden.datatypes.ledger_datatypes import ModerationLogEntry, NewLogEntry, RestoreOutcome
from groupwarden.moderation.notifications import format_restored_message
from groupwarden.repositories.moderation_log_repo import ModerationLogRepo
from groupwarden.transport.chat_transport import ChatTransport
from groupwarden.util.keyed_lock import KeyedLock
from groupwarden.util.logger import get_logger

logger = get_logger("moderation_ledger")


class ModerationLedger:
    def __init__(self, database: Database) -> None:
        self.database = database
        self._locks = KeyedLock()

    async def create_entry(self, entry: NewLogEntry) -> ModerationLogEntry:
        """Persist a verdict and return the stored row (with its id)."""
        async with self.database.connection.transaction() as db:
            entry_id = await ModerationLogRepo.insert(db, entry, self.database.now())
            stored = await ModerationLogRepo.get(db, entry_id)
        if stored is None:
            raise RuntimeError(f"moderation log {entry_id} vanished after insert")
        logger.info("[LEDGER] Logged %s in %s as #%d", entry.violation_kind, entry.room_id, entry_id)
        return stored

    async def get_entry(self, entry_id: int) -> ModerationLogEntry | None:
        async with self.database.connection.read() as db:
            return await ModerationLogRepo.get(db, entry_id)

    async def list_recent(self, limit: int = 20) -> List[ModerationLogEntry]:
        async with self.database.connection.read() as db:
            return await ModerationLogRepo.list_recent(db, limit)

    async def mark_restored(self, entry_id: int) -> RestoreOutcome:
        """Flip ``restored`` to True; refuses missing and already-restored entries."""
        async with self._locks.hold(entry_id):
            return await self._mark_restored(entry_id)

    async def _mark_restored(self, entry_id: int) -> RestoreOutcome:
        async with self.database.connection.transaction() as db:
            entry = await ModerationLogRepo.get(db, entry_id)
            if entry is None:
                return RestoreOutcome.NOT_FOUND
            if entry.restored:
                return RestoreOutcome.ALREADY_RESTORED
            if not await ModerationLogRepo.mark_restored(db, entry_id):
                return RestoreOutcome.ALREADY_RESTORED
        return RestoreOutcome.RESTORED

    async def restore_message(self, entry_id: int, transport: ChatTransport) -> RestoreOutcome:
        """
        Re-post a deleted message into its room and mark it restored.

        The entry is checked before anything is sent, so a second call for the
        same id never posts twice.
        """
        async with self._locks.hold(entry_id):
            entry = await self.get_entry(entry_id)
            if entry is None:
                return RestoreOutcome.NOT_FOUND
            if entry.restored:
                return RestoreOutcome.ALREADY_RESTORED

            try:
                await transport.send_text(entry.room_id, format_restored_message(entry))
            except Exception as exc:
                logger.error("[LEDGER] Failed to restore #%d into %s: %s", entry_id, entry.room_id, exc)
                return RestoreOutcome.DELIVERY_FAILED

            outcome = await self._mark_restored(entry_id)
            logger.info("[LEDGER] Restore of #%d: %s", entry_id, outcome.value)
            return outcome

    async def set_admin_response(self, entry_id: int, response: str) -> bool:
        async with self._locks.hold(entry_id):
            async with self.database.connection.transaction() as db:
                updated = await ModerationLogRepo.set_admin_response(db, entry_id, response)
        if not updated:
            logger.warning("[LEDGER] Cannot record admin response, #%d not found", entry_id)
        return updated

    async def clear_all(self) -> int:
        async with self.database.connection.transaction() as db:
            removed = await ModerationLogRepo.clear_all(db)
        logger.info("[LEDGER] Cleared %d moderation log entries", removed)
        return removed
