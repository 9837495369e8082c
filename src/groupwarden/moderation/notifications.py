"""Texts sent to offenders, administrators and rooms after a moderation decision."""

from __future__ import annotations

import re

from groupwarden.datatypes.ledger_datatypes import ModerationLogEntry
from groupwarden.datatypes.verdict_datatypes import ModerationVerdict, ViolationKind
from groupwarden.util.format_utils import mask_phone, truncate

ALERT_ID_PATTERN = re.compile(r"\[ID:\s*(\d+)\]")
LEADING_ID_PATTERN = re.compile(r"^\s*#?(\d+)\s+(.+)$", re.DOTALL)

USER_REASONS = {
    ViolationKind.EXCESSIVE_LINKS: "contains too many links (maximum 3 allowed)",
    ViolationKind.EXCESSIVE_CAPS: "contains too many capital letters (appears to be shouting)",
    ViolationKind.REPEATED_MESSAGE: "is a repeated message (spam)",
    ViolationKind.TOXIC_CONTENT: "contains inappropriate or toxic content",
    ViolationKind.SENSITIVE_TOPIC: "contains a sensitive or controversial topic that is not allowed in this group",
    ViolationKind.SENSITIVE_IMAGE: (
        "contains an image with sensitive or controversial content that is not allowed in this group"
    ),
    ViolationKind.SENSITIVE_VIDEO: (
        "contains a video with sensitive or controversial content that is not allowed in this group"
    ),
    ViolationKind.SENSITIVE_GIF: (
        "contains a GIF with sensitive or controversial content that is not allowed in this group"
    ),
}


def format_user_notification(verdict: ModerationVerdict, room_name: str) -> str:
    """Private message explaining to the sender why their message was deleted."""
    reason = USER_REASONS.get(verdict.kind, verdict.reason)
    return (
        "⚠️ *Your message was deleted*\n\n"
        f"*Group:* {room_name}\n"
        f"*Reason:* Your message {reason}.\n\n"
        "Please follow the group rules to maintain a pleasant environment for everyone.\n\n"
        "If you believe this was an error, please contact an administrator."
    )


def format_admin_alert(verdict: ModerationVerdict, room_name: str, phone: str, body: str, log_id: int) -> str:
    return (
        f"*Moderation Alert* [ID: {log_id}]\n\n"
        f"*Group:* {room_name}\n"
        f"*User:* {mask_phone(phone)}\n"
        f"*Violation:* {verdict.kind}\n"
        f"*Reason:* {verdict.reason}\n"
        f"*Severity:* {verdict.severity}\n\n"
        "*Message:*\n"
        f"\"{truncate(body, 100)}\"\n\n"
        "Reply with:\n"
        "- *ignore* - No action\n"
        "- *ban* - Remove user from group\n"
        "- *mute* - (Coming soon)"
    )


def format_restored_message(entry: ModerationLogEntry) -> str:
    display_name = entry.user_name or mask_phone(entry.user_phone)
    return f"📩 *Restored Message*\n\n*From:* {display_name}\n*Original message:*\n\n{entry.body}"


def parse_admin_reply(text: str, quoted_text: str | None = None) -> tuple[int, str] | None:
    """
    Find the ledger id an administrator's reply refers to.

    A reply quoting an alert uses the ``[ID: n]`` tag of the quoted text and
    the whole reply as the response; otherwise the reply must start with the
    id (``"12 ban"``).

    Returns:
        ``(log_id, response_text)`` or None when the text is not an alert reply.
    """
    if quoted_text:
        match = ALERT_ID_PATTERN.search(quoted_text)
        if match and text.strip():
            return int(match.group(1)), text.strip()

    match = LEADING_ID_PATTERN.match(text or "")
    if match:
        return int(match.group(1)), match.group(2).strip()
    return None
