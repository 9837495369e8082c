"""Event listener for Groupwarden.

The chat transport pushes every inbound message and join notification here.
The listener filters out what the engine does not govern and routes the rest:

- group messages from monitored rooms are logged, moderated (admins exempt),
  and checked as verification answers;
- direct messages from configured administrators are treated as replies to
  moderation alerts;
- joins in monitored rooms start a verification challenge.
"""

from __future__ import annotations

from typing import Iterable

from groupwarden.database.database import Database
from groupwarden.datatypes.chat_datatypes import InboundMessage, JoinEvent
from groupwarden.datatypes.ledger_datatypes import ModerationLogEntry, NewLogEntry
from groupwarden.datatypes.verdict_datatypes import ModerationVerdict
from groupwarden.listener.room_directory import RoomDirectory
from groupwarden.moderation.admin_response import AdminResponseHandler
from groupwarden.moderation.moderation_ledger import ModerationLedger
from groupwarden.moderation.moderation_pipeline import ModerationPipeline
from groupwarden.moderation.notifications import (
    format_admin_alert,
    format_user_notification,
    parse_admin_reply,
)
from groupwarden.transport.chat_transport import ChatTransport
from groupwarden.util.format_utils import identity_to_phone, mask_phone, phone_to_identity
from groupwarden.util.logger import get_logger
from groupwarden.verification.verification_manager import VerificationManager

logger = get_logger("event_listener")


class EventListener:
    """Routes transport events to moderation, verification and admin handling."""

    def __init__(
        self,
        transport: ChatTransport,
        rooms: RoomDirectory,
        pipeline: ModerationPipeline,
        ledger: ModerationLedger,
        admin_handler: AdminResponseHandler,
        verification: VerificationManager,
        database: Database,
        admins: Iterable[str] = (),
        self_identity: str = "",
    ) -> None:
        self.transport = transport
        self.rooms = rooms
        self.pipeline = pipeline
        self.ledger = ledger
        self.admin_handler = admin_handler
        self.verification = verification
        self.database = database
        self.admins = {identity_to_phone(admin) for admin in admins if admin}
        self.self_phone = identity_to_phone(self_identity)

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def on_message(self, message: InboundMessage) -> None:
        """Handle one inbound message; never raises."""
        if message.from_self:
            return
        try:
            if not message.is_group:
                await self._handle_direct_message(message)
            elif self.rooms.is_monitored(message.room_id):
                await self._handle_group_message(message)
        except Exception:
            logger.exception("[LISTENER] Error processing message in %s", message.room_id)

    async def _handle_group_message(self, message: InboundMessage) -> None:
        text = message.text or ""
        if not text and message.media is None:
            return

        phone = message.sender_phone
        room_name = await self.rooms.resolve_name(message.room_id)
        is_admin = await self.rooms.is_admin(message.room_id, message.sender)

        if text:
            try:
                await self.database.save_message(message.room_id, phone, text, is_from_admin=is_admin)
                logger.debug("[LISTENER] Saved message from %s", mask_phone(phone))
            except Exception as exc:
                logger.error("[LISTENER] Could not save message: %s", exc)

        if is_admin:
            logger.debug("[LISTENER] Skipping moderation for room admin %s", mask_phone(phone))
        else:
            verdict = await self._moderate(message)
            if verdict is not None:
                await self.enforce(message, verdict, room_name)

        outcome = await self.verification.check_answer(message.sender, text, message.room_id, room_name)
        if outcome is not None:
            try:
                await self.transport.send_text(message.room_id, outcome.message)
            except Exception as exc:
                logger.error("[LISTENER] Error sending verification response: %s", exc)

    async def _moderate(self, message: InboundMessage) -> ModerationVerdict | None:
        media_bytes = None
        media_kind = None
        if message.media is not None and message.message_ref is not None:
            try:
                media_bytes = await self.transport.download_media(message.message_ref)
                media_kind = message.media.kind
            except Exception as exc:
                logger.error("[LISTENER] Could not download %s: %s", message.media.kind, exc)

        return await self.pipeline.moderate(
            message.text,
            message.sender,
            message.room_id,
            media=media_bytes,
            media_kind=media_kind,
        )

    async def enforce(
        self,
        message: InboundMessage,
        verdict: ModerationVerdict,
        room_name: str,
    ) -> ModerationLogEntry | None:
        """Log the verdict, delete the message, tell the sender and alert the admins."""
        phone = message.sender_phone
        text = message.text or ""
        entry: ModerationLogEntry | None = None

        try:
            entry = await self.ledger.create_entry(NewLogEntry(
                room_id=message.room_id,
                user_phone=phone,
                body=verdict.log_body(text),
                violation_kind=str(verdict.kind),
                action_taken="deleted",
                user_name=message.sender_name,
                category_scores=verdict.category_scores,
                message_ref=message.message_ref,
            ))
        except Exception as exc:
            logger.error("[LISTENER] Could not log verdict: %s", exc)

        if message.message_ref is not None:
            try:
                await self.transport.delete_message(message.room_id, message.message_ref)
                logger.info("[LISTENER] Deleted %s message from %s", verdict.kind, mask_phone(phone))
            except Exception as exc:
                logger.error("[LISTENER] Could not delete message: %s", exc)

        try:
            await self.transport.send_text(message.sender, format_user_notification(verdict, room_name))
        except Exception as exc:
            logger.error("[LISTENER] Could not notify %s: %s", mask_phone(phone), exc)

        if entry is not None:
            alert = format_admin_alert(verdict, room_name, phone, entry.body, entry.id)
            for admin in sorted(self.admins):
                try:
                    await self.transport.send_text(phone_to_identity(admin), alert)
                except Exception as exc:
                    logger.error("[LISTENER] Could not alert admin %s: %s", mask_phone(admin), exc)

        return entry

    # ------------------------------------------------------------------
    # Admin replies
    # ------------------------------------------------------------------

    async def _handle_direct_message(self, message: InboundMessage) -> None:
        if message.sender_phone not in self.admins or not message.text:
            return

        parsed = parse_admin_reply(message.text, message.quoted_text)
        if parsed is None:
            return

        entry_id, response = parsed
        reply = await self.handle_admin_reply(entry_id, response)
        try:
            await self.transport.send_text(message.sender, reply)
        except Exception as exc:
            logger.error("[LISTENER] Could not answer admin %s: %s", mask_phone(message.sender_phone), exc)

    async def handle_admin_reply(self, entry_id: int, response: str) -> str:
        """Apply an administrator's reply to ledger entry ``entry_id``; returns the text to send back."""
        entry = await self.ledger.get_entry(entry_id)
        if entry is None:
            return f"Moderation log [ID: {entry_id}] not found."

        result = await self.admin_handler.handle(response, entry)
        if result.success:
            await self.ledger.set_admin_response(entry_id, str(result.disposition))
        logger.info("[LISTENER] Admin reply to #%d: %s", entry_id, result.disposition)
        return result.message

    # ------------------------------------------------------------------
    # Joins
    # ------------------------------------------------------------------

    async def on_join(self, event: JoinEvent) -> None:
        """Challenge every newly joined participant of a monitored room."""
        if not self.rooms.is_monitored(event.room_id):
            logger.debug("[LISTENER] Room %s is not monitored, ignoring join", event.room_id)
            return

        room_name = await self.rooms.resolve_name(event.room_id)
        for identity in event.participants:
            if self.self_phone and identity_to_phone(identity) == self.self_phone:
                logger.info("[LISTENER] Engine was added to %s, skipping verification", room_name)
                continue
            try:
                await self.verification.issue_challenge(event.room_id, room_name, identity)
            except Exception:
                logger.exception("[LISTENER] Error starting verification in %s", room_name)
