"""
Central database coordinator.

The Database class owns the single ``ConnectionManager`` of the process and
exposes the message log plus the read-only aggregates used by the console
and the dashboard. Verification and ledger state are accessed through their
repositories by the components that own them, using ``connection`` below.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Callable, Dict, List, Tuple

from groupwarden.database.db_connection import ConnectionManager
from groupwarden.database.db_schema import SchemaManager
from groupwarden.datatypes.verification_datatypes import VerifiedUser
from groupwarden.repositories.message_repo import SECONDS_PER_DAY, MessageRepo, StoredMessage
from groupwarden.repositories.verification_repo import VerifiedUserRepo
from groupwarden.util.logger import get_logger

logger = get_logger("database")

# Database file path
DB_PATH = Path("./data/groupwarden.db").resolve()


class Database:
    """
    Coordinator for schema setup, message logging and aggregates.

    Lifecycle:
        1. ``await initialize()`` at program startup
        2. Use the methods below (or ``connection`` for repositories)
        3. ``await shutdown()`` at program end
    """

    def __init__(self, db_path: Path = DB_PATH, clock: Callable[[], float] = time.time):
        self.db_path = db_path
        self.connection = ConnectionManager()
        self._clock = clock
        self._initialized = False

    def now(self) -> int:
        """Current time in unix seconds, as stored in every table."""
        return int(self._clock())

    async def initialize(self) -> bool:
        """
        Open the connection and create the schema.

        Returns:
            True if initialization succeeded, False otherwise
        """
        if self._initialized:
            logger.debug("[DATABASE] Already initialized, skipping")
            return True

        try:
            await self.connection.open(self.db_path)
            async with self.connection.transaction() as db:
                await SchemaManager.initialize_schema(db)
            self._initialized = True
            logger.info("[DATABASE] Database initialized at %s", self.db_path)
            return True
        except Exception as e:
            logger.error("[DATABASE] Database initialization failed: %s", e)
            await self.connection.close()
            return False

    async def shutdown(self) -> None:
        if not self._initialized:
            return
        await self.connection.close()
        self._initialized = False
        logger.info("[DATABASE] Database shutdown complete")

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    # ------------------------------------------------------------------
    # Message log
    # ------------------------------------------------------------------

    async def save_message(self, room_id: str, phone: str, body: str, *, is_from_admin: bool = False) -> None:
        """Persist one inbound message with a hashed sender."""
        async with self.connection.transaction() as db:
            await MessageRepo.insert(db, room_id, phone, body, self.now(), is_from_admin=is_from_admin)

    def _since(self, days: int) -> int:
        return self.now() - max(0, days) * SECONDS_PER_DAY

    async def count_messages(self, room_id: str, days: int = 7) -> int:
        async with self.connection.read() as db:
            return await MessageRepo.count(db, room_id, self._since(days))

    async def count_unique_senders(self, room_id: str, days: int = 7) -> int:
        async with self.connection.read() as db:
            return await MessageRepo.count_unique_senders(db, room_id, self._since(days))

    async def message_histogram(self, room_id: str, days: int = 7) -> Dict[str, int]:
        """Day-of-week name to message count, busiest day first."""
        async with self.connection.read() as db:
            rows = await MessageRepo.count_by_weekday(db, room_id, self._since(days))
        return dict(rows)

    async def recent_messages(self, room_id: str, days: int = 7, limit: int = 500) -> List[StoredMessage]:
        async with self.connection.read() as db:
            return await MessageRepo.recent(db, room_id, self._since(days), limit)

    # ------------------------------------------------------------------
    # Verification aggregates
    # ------------------------------------------------------------------

    async def verified_counts_by_room(self) -> List[Tuple[str, int]]:
        async with self.connection.read() as db:
            return await VerifiedUserRepo.counts_by_room(db)

    async def last_verified(self, limit: int = 10) -> List[VerifiedUser]:
        async with self.connection.read() as db:
            return await VerifiedUserRepo.last_verified(db, limit)
