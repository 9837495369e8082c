"""
Pytest configuration and fixtures for Groupwarden tests.
"""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from groupwarden.database.database import Database  # noqa: E402
from groupwarden.datatypes.chat_datatypes import Participant, ParticipantRole, RoomMetadata  # noqa: E402

T0 = 1_700_000_000
BOT_IDENTITY = "31600000000@s.whatsapp.net"


class FakeClock:
    """Settable clock returning unix seconds."""

    def __init__(self, start: float = T0) -> None:
        self.now = float(start)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture
async def database(tmp_path: Path, clock: FakeClock):
    """Initialized on-disk database in a temporary directory."""
    db = Database(tmp_path / "groupwarden.db", clock=clock)
    assert await db.initialize()
    yield db
    await db.shutdown()


def make_transport(rooms=None) -> MagicMock:
    """A ChatTransport double whose actions are AsyncMocks."""
    rooms = rooms or []
    transport = MagicMock()
    transport.self_identity = BOT_IDENTITY
    transport.start = AsyncMock()
    transport.close = AsyncMock()
    transport.send_text = AsyncMock()
    transport.send_image = AsyncMock()
    transport.delete_message = AsyncMock()
    transport.remove_participant = AsyncMock()
    transport.download_media = AsyncMock(return_value=b"")
    transport.fetch_all_rooms = AsyncMock(return_value=rooms)

    by_id = {room.room_id: room for room in rooms}

    async def fetch_room_metadata(room_id):
        if room_id not in by_id:
            raise LookupError(room_id)
        return by_id[room_id]

    transport.fetch_room_metadata = AsyncMock(side_effect=fetch_room_metadata)
    return transport


@pytest.fixture
def test_room() -> RoomMetadata:
    return RoomMetadata(
        room_id="120363000000000001@g.us",
        name="Test Group",
        participants=[
            Participant("31611111111@s.whatsapp.net", ParticipantRole.ADMIN),
            Participant("31622222222@s.whatsapp.net"),
        ],
    )


@pytest.fixture
def transport(test_room: RoomMetadata) -> MagicMock:
    return make_transport([test_room])
