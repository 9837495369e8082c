"""Tests for database module."""

import pytest

from groupwarden.database.database import Database
from groupwarden.repositories.message_repo import SECONDS_PER_DAY
from groupwarden.repositories.verification_repo import PendingVerificationRepo, VerifiedUserRepo
from groupwarden.util.format_utils import hash_phone

from conftest import T0

ROOM = "1@g.us"


@pytest.mark.asyncio
async def test_initialize_is_idempotent(tmp_path):
    db = Database(tmp_path / "nested" / "dir" / "test.db")
    assert await db.initialize()
    assert await db.initialize()
    assert db.is_initialized
    assert (tmp_path / "nested" / "dir" / "test.db").exists()

    await db.shutdown()
    assert not db.is_initialized
    await db.shutdown()


@pytest.mark.asyncio
async def test_initialize_failure_returns_false(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")
    db = Database(blocker / "test.db")

    assert await db.initialize() is False
    assert not db.is_initialized


@pytest.mark.asyncio
async def test_schema_survives_reopen(tmp_path, clock):
    path = tmp_path / "test.db"
    db = Database(path, clock=clock)
    await db.initialize()
    await db.save_message(ROOM, "31622222222", "hello")
    await db.shutdown()

    reopened = Database(path, clock=clock)
    await reopened.initialize()
    assert await reopened.count_messages(ROOM) == 1
    await reopened.shutdown()


@pytest.mark.asyncio
async def test_messages_store_hashed_senders(database):
    await database.save_message(ROOM, "31622222222", "first")
    await database.save_message(ROOM, "31622222222", "second")
    await database.save_message(ROOM, "31633333333", "third")
    await database.save_message("other@g.us", "31622222222", "elsewhere")

    assert await database.count_messages(ROOM) == 3
    assert await database.count_unique_senders(ROOM) == 2

    recent = await database.recent_messages(ROOM)
    assert {m.body for m in recent} == {"first", "second", "third"}
    assert all(m.hashed_phone in {hash_phone("31622222222"), hash_phone("31633333333")} for m in recent)


@pytest.mark.asyncio
async def test_aggregates_respect_the_window(database, clock):
    await database.save_message(ROOM, "31622222222", "old news")
    clock.advance(8 * SECONDS_PER_DAY)
    await database.save_message(ROOM, "31633333333", "fresh")

    assert await database.count_messages(ROOM, days=7) == 1
    assert await database.count_messages(ROOM, days=30) == 2
    assert await database.count_unique_senders(ROOM, days=7) == 1


@pytest.mark.asyncio
async def test_message_histogram_by_weekday(database, clock):
    # T0 (1700000000) is a Tuesday in UTC
    await database.save_message(ROOM, "31622222222", "a")
    await database.save_message(ROOM, "31622222222", "b")
    clock.advance(SECONDS_PER_DAY)
    await database.save_message(ROOM, "31622222222", "c")

    histogram = await database.message_histogram(ROOM)

    assert histogram == {"Tuesday": 2, "Wednesday": 1}
    assert list(histogram) == ["Tuesday", "Wednesday"]


@pytest.mark.asyncio
async def test_verified_aggregates(database):
    async with database.connection.transaction() as db:
        await VerifiedUserRepo.insert(db, "31622222222", ROOM, T0)
        await VerifiedUserRepo.insert(db, "31633333333", ROOM, T0 + 5)
        await VerifiedUserRepo.insert(db, "31633333333", "2@g.us", T0 + 10)
        await VerifiedUserRepo.insert(db, "31633333333", "2@g.us", T0 + 20)

    assert await database.verified_counts_by_room() == [(ROOM, 2), ("2@g.us", 1)]

    latest = await database.last_verified(limit=2)
    assert [(u.phone, u.room_id, u.verified_at) for u in latest] == [
        ("31633333333", "2@g.us", T0 + 10),
        ("31633333333", ROOM, T0 + 5),
    ]


@pytest.mark.asyncio
async def test_pending_repo_queries(database):
    async with database.connection.transaction() as db:
        await PendingVerificationRepo.upsert(db, "31622222222", ROOM, "abcde", T0, T0 + 300)

    async with database.connection.read() as db:
        stored = await PendingVerificationRepo.get(db, "31622222222", ROOM)
        assert stored.code == "ABCDE"
        assert await PendingVerificationRepo.get_active(db, "31622222222", ROOM, T0 + 299) == stored
        assert await PendingVerificationRepo.get_active(db, "31622222222", ROOM, T0 + 300) is None
        assert await PendingVerificationRepo.get_expired(db, T0 + 299) == []
        assert await PendingVerificationRepo.get_expired(db, T0 + 300) == [stored]
        assert stored.is_expired(T0 + 300)


@pytest.mark.asyncio
async def test_transaction_rolls_back_on_error(database):
    with pytest.raises(RuntimeError):
        async with database.connection.transaction() as db:
            await PendingVerificationRepo.upsert(db, "31622222222", ROOM, "ABCDE", T0, T0 + 300)
            raise RuntimeError("abort")

    async with database.connection.read() as db:
        assert await PendingVerificationRepo.count(db) == 0


def test_connection_not_open_raises():
    db = Database()
    with pytest.raises(RuntimeError):
        db.connection.connection
