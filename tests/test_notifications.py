"""Tests for notification texts and admin reply parsing."""

import pytest

from groupwarden.datatypes.verdict_datatypes import (
    ExcessiveLinksVerdict,
    MediaKind,
    SensitiveMediaVerdict,
    ToxicContentVerdict,
    ViolationKind,
)
from groupwarden.moderation.notifications import (
    USER_REASONS,
    format_admin_alert,
    format_user_notification,
    parse_admin_reply,
)


def test_every_violation_has_a_user_reason():
    assert set(USER_REASONS) == set(ViolationKind)


def test_user_notification():
    text = format_user_notification(ExcessiveLinksVerdict(link_count=5, max_links=3), "Test Group")

    assert text.startswith("⚠️ *Your message was deleted*")
    assert "*Group:* Test Group" in text
    assert "*Reason:* Your message contains too many links (maximum 3 allowed)." in text
    assert text.endswith("please contact an administrator.")


def test_user_notification_for_video():
    verdict = SensitiveMediaVerdict(MediaKind.VIDEO, topic="Politics", description="a rally", confidence=0.9)
    assert "contains a video with sensitive" in format_user_notification(verdict, "Test Group")


def test_admin_alert():
    verdict = ToxicContentVerdict(categories=("harassment",), scores={"harassment": 0.9}, flagged=True)

    text = format_admin_alert(verdict, "Test Group", "31622222222", "x" * 150, 17)

    assert text.startswith("*Moderation Alert* [ID: 17]")
    assert "*User:* 3162****22" in text
    assert "*Violation:* toxic_content" in text
    assert "*Reason:* Flagged for: harassment" in text
    assert "*Severity:* high" in text
    assert f"\"{'x' * 100}...\"" in text
    assert "- *ban* - Remove user from group" in text


class TestParseAdminReply:
    def test_leading_id(self):
        assert parse_admin_reply("12 ban") == (12, "ban")
        assert parse_admin_reply("#7   ignore it") == (7, "ignore it")

    def test_quoted_alert(self):
        quoted = "*Moderation Alert* [ID: 42]\n\n*Group:* Test Group"
        assert parse_admin_reply("ban", quoted) == (42, "ban")

    def test_quote_without_tag_falls_back_to_leading_id(self):
        assert parse_admin_reply("3 mute", "just some message") == (3, "mute")

    @pytest.mark.parametrize("text", ["ban", "hello there", "", "12"])
    def test_not_a_reply(self, text):
        assert parse_admin_reply(text) is None
