"""
Database schema initialization and migration management.

All timestamps are INTEGER unix seconds (UTC), so expiry comparisons are
plain integer comparisons.
"""

import aiosqlite
from groupwarden.util.logger import get_logger

logger = get_logger("database_schema")

SCHEMA_VERSION = 1


class SchemaManager:
    """Creates the tables and indexes the engine needs."""

    @staticmethod
    async def initialize_schema(db: aiosqlite.Connection) -> None:
        """
        Create or update all database tables and indexes.

        Args:
            db: Open database connection
        """
        await SchemaManager._create_tables(db)
        await SchemaManager._create_indexes(db)
        await SchemaManager._update_schema_version(db)
        await db.commit()
        logger.info("[SCHEMA] Database schema initialized (version %d)", SCHEMA_VERSION)

    @staticmethod
    async def _create_tables(db: aiosqlite.Connection) -> None:
        """Create all required database tables."""
        await db.execute("""
            CREATE TABLE IF NOT EXISTS messages (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                room_id TEXT NOT NULL,
                hashed_phone TEXT NOT NULL,
                body TEXT,
                is_from_admin INTEGER NOT NULL DEFAULT 0,
                timestamp INTEGER NOT NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS pending_verifications (
                phone TEXT NOT NULL,
                room_id TEXT NOT NULL,
                code TEXT NOT NULL,
                created_at INTEGER NOT NULL,
                expires_at INTEGER NOT NULL,
                PRIMARY KEY (phone, room_id)
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS verified_users (
                phone TEXT NOT NULL,
                room_id TEXT NOT NULL,
                hashed_phone TEXT NOT NULL,
                verified_at INTEGER NOT NULL,
                PRIMARY KEY (phone, room_id)
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS moderation_logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                room_id TEXT NOT NULL,
                user_phone TEXT NOT NULL,
                hashed_phone TEXT NOT NULL,
                user_name TEXT,
                body TEXT NOT NULL DEFAULT '',
                violation_kind TEXT NOT NULL,
                action_taken TEXT NOT NULL,
                category_scores TEXT NOT NULL DEFAULT '{}',
                message_ref TEXT,
                restored INTEGER NOT NULL DEFAULT 0,
                admin_response TEXT,
                timestamp INTEGER NOT NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    @staticmethod
    async def _create_indexes(db: aiosqlite.Connection) -> None:
        await db.execute("CREATE INDEX IF NOT EXISTS idx_messages_room_time ON messages(room_id, timestamp DESC)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_pending_expiry ON pending_verifications(expires_at)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_verified_room ON verified_users(room_id)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_moderation_room ON moderation_logs(room_id)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_moderation_timestamp ON moderation_logs(timestamp DESC)")

    @staticmethod
    async def _update_schema_version(db: aiosqlite.Connection) -> None:
        await db.execute("INSERT OR IGNORE INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
