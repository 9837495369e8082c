"""Tests for administrator dispositions."""

import pytest

from groupwarden.datatypes.ledger_datatypes import AdminDisposition, ModerationLogEntry
from groupwarden.moderation.admin_response import USAGE_HINT, AdminResponseHandler
from groupwarden.util.errors import TransportError

ROOM = "120363000000000001@g.us"


@pytest.fixture
def entry():
    return ModerationLogEntry(
        id=12,
        room_id=ROOM,
        user_phone="31622222222",
        hashed_phone="0" * 64,
        user_name=None,
        body="spam spam spam",
        violation_kind="repeated_message",
        action_taken="deleted",
        category_scores={},
        message_ref=None,
        restored=False,
        admin_response=None,
        timestamp=0,
    )


@pytest.fixture
def handler(transport):
    return AdminResponseHandler(transport)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("ignore", AdminDisposition.IGNORE),
        ("  IGNORE this one ", AdminDisposition.IGNORE),
        ("Ban", AdminDisposition.BAN),
        ("please ban him", AdminDisposition.BAN),
        ("mute", AdminDisposition.MUTE),
        ("ignore, don't ban", AdminDisposition.IGNORE),
        ("whatever", AdminDisposition.UNKNOWN),
        ("", AdminDisposition.UNKNOWN),
    ],
)
def test_classify(text, expected):
    assert AdminResponseHandler.classify(text) is expected


@pytest.mark.asyncio
async def test_ignore_takes_no_action(handler, transport, entry):
    result = await handler.handle("ignore", entry)

    assert result.disposition is AdminDisposition.IGNORE
    assert result.success
    assert result.message == "Action: Ignored. No action taken."
    transport.remove_participant.assert_not_awaited()


@pytest.mark.asyncio
async def test_ban_removes_participant(handler, transport, entry):
    result = await handler.handle("ban", entry)

    assert result.success
    assert result.message == "Action: User 31622222222 has been removed from the group."
    transport.remove_participant.assert_awaited_once_with(ROOM, "31622222222@s.whatsapp.net")


@pytest.mark.asyncio
async def test_ban_failure_is_reported(handler, transport, entry):
    transport.remove_participant.side_effect = TransportError("not an admin")

    result = await handler.handle("ban", entry)

    assert result.disposition is AdminDisposition.BAN
    assert result.success is False
    assert result.message == "Error banning user: not an admin"


@pytest.mark.asyncio
async def test_mute_is_acknowledged(handler, transport, entry):
    result = await handler.handle("mute", entry)

    assert result.success
    assert result.message == "Action: Mute functionality coming soon."
    transport.remove_participant.assert_not_awaited()


@pytest.mark.asyncio
async def test_unknown_reply_gets_usage_hint(handler, entry):
    result = await handler.handle("what?", entry)

    assert result.disposition is AdminDisposition.UNKNOWN
    assert result.success is False
    assert result.message == USAGE_HINT
