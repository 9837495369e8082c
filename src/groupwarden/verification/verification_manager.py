"""
Verification state machine for new participants.

Per ``(phone, room)``::

    NONE --issue_challenge--> PENDING --correct answer--> VERIFIED
                                  |
                                  +--expires_at <= now, sweep--> REMOVED

Answer checks and the expiry sweep take the same per-key lock, re-read the
pending row under it and leave PENDING through a guarded delete on
``expires_at``. Whichever transition claims the row first wins; the other
sees no pending record.
"""

from __future__ import annotations

import asyncio
import re
from typing import List

from groupwarden.database.database import Database
from groupwarden.datatypes.verification_datatypes import (
    PendingVerification,
    SweepReport,
    VerificationOutcome,
    VerificationResultKind,
)
from groupwarden.listener.room_directory import RoomDirectory
from groupwarden.repositories.verification_repo import PendingVerificationRepo, VerifiedUserRepo
from groupwarden.transport.chat_transport import ChatTransport
from groupwarden.util.format_utils import identity_to_phone, mask_phone, phone_to_identity
from groupwarden.util.keyed_lock import KeyedLock
from groupwarden.util.logger import get_logger
from groupwarden.verification.challenge import ChallengeGenerator
from groupwarden.verification.localization import get_messages

logger = get_logger("verification_manager")

CHALLENGE_WIDTH = 200
CHALLENGE_HEIGHT = 80
CHALLENGE_SHAPE = re.compile(r"^[A-Z0-9]{3,7}$", re.IGNORECASE)


class VerificationManager:
    """
    Issues challenges, checks answers and removes participants who time out.

    Args:
        database: Open database (pending and verified tables).
        transport: Chat transport used to post challenges and remove participants.
        generator: Produces ``(code, image)`` challenges.
        rooms: Resolves room display names for localization.
        timeout_minutes: Lifetime of a challenge.
        challenge_length: Characters per code.
    """

    def __init__(
        self,
        database: Database,
        transport: ChatTransport,
        generator: ChallengeGenerator,
        rooms: RoomDirectory,
        timeout_minutes: int = 5,
        challenge_length: int = 5,
    ) -> None:
        self.database = database
        self.transport = transport
        self.generator = generator
        self.rooms = rooms
        self.timeout_minutes = timeout_minutes
        self.challenge_length = challenge_length
        self._locks = KeyedLock()

    @property
    def timeout_seconds(self) -> int:
        return self.timeout_minutes * 60

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def is_verified(self, phone: str, room_id: str) -> bool:
        async with self.database.connection.read() as db:
            return await VerifiedUserRepo.exists(db, phone, room_id)

    async def get_pending(self, phone: str, room_id: str) -> PendingVerification | None:
        """The live challenge for the key, or None once it has expired."""
        async with self.database.connection.read() as db:
            return await PendingVerificationRepo.get_active(db, phone, room_id, self.database.now())

    async def pending_count(self) -> int:
        async with self.database.connection.read() as db:
            return await PendingVerificationRepo.count(db)

    # ------------------------------------------------------------------
    # NONE -> PENDING
    # ------------------------------------------------------------------

    async def issue_challenge(self, room_id: str, room_name: str, identity: str) -> PendingVerification | None:
        """
        Challenge a participant who just joined.

        Already-verified participants are skipped (returns None). Re-issuing
        replaces any earlier pending challenge for the same key.
        """
        phone = identity_to_phone(identity)

        async with self._locks.hold((phone, room_id)):
            if await self.is_verified(phone, room_id):
                logger.info("[VERIFY] %s is already verified in %s", mask_phone(phone), room_name)
                return None

            challenge = await asyncio.to_thread(
                self.generator.generate, CHALLENGE_WIDTH, CHALLENGE_HEIGHT, self.challenge_length
            )
            now = self.database.now()
            record = PendingVerification(
                phone=phone,
                room_id=room_id,
                code=challenge.code.upper(),
                created_at=now,
                expires_at=now + self.timeout_seconds,
            )
            async with self.database.connection.transaction() as db:
                await PendingVerificationRepo.upsert(
                    db, record.phone, record.room_id, record.code, record.created_at, record.expires_at
                )

        messages = get_messages(room_name)
        caption = f"Welcome new member!\n\n{messages.welcome(self.timeout_minutes)}"
        try:
            await self.transport.send_image(room_id, challenge.image, caption)
            logger.info("[VERIFY] Challenge issued to %s in %s", mask_phone(phone), room_name)
        except Exception as exc:
            logger.error("[VERIFY] Error sending challenge to %s: %s", room_id, exc)
        return record

    # ------------------------------------------------------------------
    # PENDING -> VERIFIED
    # ------------------------------------------------------------------

    async def check_answer(
        self,
        identity: str,
        text: str | None,
        room_id: str,
        room_name: str,
    ) -> VerificationOutcome | None:
        """
        Compare a message against the sender's live challenge.

        Returns:
            A ``success`` outcome for the right code, ``wrong_code`` for a
            code-shaped mismatch, or None when the message is not an answer
            (no live challenge, or ordinary prose).
        """
        if not text or not text.strip():
            return None

        phone = identity_to_phone(identity)
        answer = text.strip().upper()

        async with self._locks.hold((phone, room_id)):
            now = self.database.now()
            async with self.database.connection.transaction() as db:
                pending = await PendingVerificationRepo.get_active(db, phone, room_id, now)
                if pending is None:
                    return None

                if answer != pending.code.upper():
                    if CHALLENGE_SHAPE.match(text.strip()):
                        logger.info("[VERIFY] Wrong code from %s", mask_phone(phone))
                        return VerificationOutcome(
                            kind=VerificationResultKind.WRONG_CODE,
                            message=get_messages(room_name).wrong,
                            phone=phone,
                        )
                    return None

                if not await PendingVerificationRepo.delete_if_unchanged(db, pending):
                    return None
                await VerifiedUserRepo.insert(db, phone, room_id, now)

        logger.info("[VERIFY] %s verified in %s", mask_phone(phone), room_name)
        return VerificationOutcome(
            kind=VerificationResultKind.SUCCESS,
            message=get_messages(room_name).success,
            phone=phone,
        )

    # ------------------------------------------------------------------
    # PENDING -> REMOVED
    # ------------------------------------------------------------------

    async def _claim(self, record: PendingVerification, now: int) -> bool:
        """Delete ``record`` if it is still the same expired challenge."""
        async with self._locks.hold((record.phone, record.room_id)):
            async with self.database.connection.transaction() as db:
                current = await PendingVerificationRepo.get(db, record.phone, record.room_id)
                if current is None or current.expires_at != record.expires_at or not current.is_expired(now):
                    return False
                return await PendingVerificationRepo.delete_if_unchanged(db, current)

    async def sweep_expired(self, now: int | None = None) -> SweepReport:
        """
        Remove every participant whose challenge expired at or before ``now``.

        Each expired record is claimed (deleted) first so a late answer can no
        longer verify it. Then the room is told and the participant removed.
        Removal failures are logged and do not stop the sweep; the record stays
        deleted either way.
        """
        now = self.database.now() if now is None else now
        async with self.database.connection.read() as db:
            expired = await PendingVerificationRepo.get_expired(db, now)

        if not expired:
            return SweepReport(expired=0, removed=0, failed=0, deleted=0)

        claimed: List[PendingVerification] = []
        for record in expired:
            try:
                if await self._claim(record, now):
                    claimed.append(record)
            except Exception:
                logger.exception("[VERIFY] Could not claim expired challenge of %s", mask_phone(record.phone))

        results = [await self._expire(record) for record in claimed]
        removed = sum(1 for ok in results if ok)
        report = SweepReport(
            expired=len(expired),
            removed=removed,
            failed=len(claimed) - removed,
            deleted=len(claimed),
        )
        logger.info(
            "[VERIFY] Sweep: %d expired, %d removed, %d failed",
            report.expired, report.removed, report.failed,
        )
        return report

    async def _expire(self, record: PendingVerification) -> bool:
        room_name = await self.rooms.resolve_name(record.room_id)
        messages = get_messages(room_name)

        try:
            await self.transport.send_text(record.room_id, messages.timeout)
        except Exception as exc:
            logger.error("[VERIFY] Error sending timeout message to %s: %s", record.room_id, exc)

        try:
            await self.transport.remove_participant(record.room_id, phone_to_identity(record.phone))
        except Exception as exc:
            logger.error("[VERIFY] Could not remove %s from %s: %s", mask_phone(record.phone), record.room_id, exc)
            return False

        logger.info("[VERIFY] Removed %s from %s (timeout)", mask_phone(record.phone), room_name)
        return True

