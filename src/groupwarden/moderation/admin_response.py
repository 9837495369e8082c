"""Interpret an administrator's reply to a moderation alert."""

from __future__ import annotations

from typing import Tuple

from groupwarden.datatypes.ledger_datatypes import AdminDisposition, AdminResponseResult, ModerationLogEntry
from groupwarden.transport.chat_transport import ChatTransport
from groupwarden.util.format_utils import mask_phone, phone_to_identity
from groupwarden.util.logger import get_logger

logger = get_logger("admin_response")

# Checked in order; the first keyword contained in the reply wins.
DISPOSITION_KEYWORDS: Tuple[Tuple[str, AdminDisposition], ...] = (
    ("ignore", AdminDisposition.IGNORE),
    ("ban", AdminDisposition.BAN),
    ("mute", AdminDisposition.MUTE),
)

USAGE_HINT = "Unknown action. Use: ignore, ban, or mute"


class AdminResponseHandler:
    """
    Maps free-form replies to a disposition and carries it out.

    The handler never touches the ledger; callers store the disposition.
    """

    def __init__(self, transport: ChatTransport) -> None:
        self.transport = transport

    @staticmethod
    def classify(text: str) -> AdminDisposition:
        normalized = (text or "").strip().lower()
        for keyword, disposition in DISPOSITION_KEYWORDS:
            if keyword in normalized:
                return disposition
        return AdminDisposition.UNKNOWN

    async def handle(self, text: str, entry: ModerationLogEntry) -> AdminResponseResult:
        disposition = self.classify(text)

        if disposition is AdminDisposition.IGNORE:
            return AdminResponseResult(disposition, "Action: Ignored. No action taken.")

        if disposition is AdminDisposition.BAN:
            try:
                await self.transport.remove_participant(entry.room_id, phone_to_identity(entry.user_phone))
            except Exception as exc:
                logger.error(
                    "[ADMIN RESPONSE] Removing %s from %s failed: %s",
                    mask_phone(entry.user_phone), entry.room_id, exc,
                )
                return AdminResponseResult(disposition, f"Error banning user: {exc}", success=False)
            logger.info("[ADMIN RESPONSE] Removed %s from %s", mask_phone(entry.user_phone), entry.room_id)
            return AdminResponseResult(
                disposition,
                f"Action: User {entry.user_phone} has been removed from the group.",
            )

        if disposition is AdminDisposition.MUTE:
            return AdminResponseResult(disposition, "Action: Mute functionality coming soon.")

        return AdminResponseResult(disposition, USAGE_HINT, success=False)
