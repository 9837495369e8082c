"""
Moderation pipeline: turns an inbound message into at most one verdict.

    media path: extract frames -> classify media -> no verdict
    text path:  heuristic spam -> toxic classifier -> topic classifier -> no verdict

Media is evaluated first when present and a media verdict short-circuits the
text path. Classification errors collapse to "no verdict" for that stage.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Tuple

from groupwarden.ai.classification_gateway import ClassificationGateway
from groupwarden.datatypes.classification_datatypes import Ok
from groupwarden.datatypes.verdict_datatypes import (
    MediaKind,
    ModerationVerdict,
    SensitiveMediaVerdict,
    SensitiveTopicVerdict,
    Severity,
    ToxicContentVerdict,
)
from groupwarden.media.frame_extractor import FrameExtractor
from groupwarden.moderation.spam_detector import HeuristicSpamDetector
from groupwarden.util.format_utils import mask_phone
from groupwarden.util.logger import get_logger

logger = get_logger("moderation_pipeline")

TOPIC_CONFIDENCE_THRESHOLD = 0.7
MEDIA_CONFIDENCE_THRESHOLD = 0.6
TOPIC_MIN_LENGTH = 20
TOXIC_MIN_LENGTH = 3


@dataclass(frozen=True, slots=True)
class TextContext:
    text: str
    sender: str
    room_id: str


TextStage = Callable[[TextContext], Awaitable[ModerationVerdict | None]]


class ModerationPipeline:
    """Runs the media and text stages in order and returns the first verdict."""

    def __init__(
        self,
        spam_detector: HeuristicSpamDetector,
        gateway: ClassificationGateway,
        frame_extractor: FrameExtractor,
    ) -> None:
        self.spam_detector = spam_detector
        self.gateway = gateway
        self.frame_extractor = frame_extractor
        self.text_stages: Tuple[TextStage, ...] = (
            self._spam_stage,
            self._toxic_stage,
            self._topic_stage,
        )

    async def moderate(
        self,
        text: str | None,
        sender: str,
        room_id: str,
        media: bytes | None = None,
        media_kind: MediaKind | None = None,
    ) -> ModerationVerdict | None:
        """
        Evaluate one message.

        Args:
            text: Message text or media caption.
            sender: Sender identity (keys the repeat cache).
            room_id: Room the message was posted in.
            media: Raw media bytes, if the message carries media.
            media_kind: Kind of ``media``.

        Returns:
            The first verdict produced, or None when the message is allowed.
        """
        if media and media_kind is not None:
            verdict = await self.moderate_media(media, media_kind)
            if verdict is not None:
                return verdict

        if text:
            return await self.moderate_text(text, sender, room_id)
        return None

    async def moderate_text(self, text: str, sender: str, room_id: str) -> ModerationVerdict | None:
        context = TextContext(text=text, sender=sender, room_id=room_id)
        for stage in self.text_stages:
            verdict = await stage(context)
            if verdict is not None:
                logger.info(
                    "[PIPELINE] %s from %s in %s: %s",
                    verdict.kind, mask_phone(sender), room_id, verdict.reason,
                )
                return verdict
        return None

    async def moderate_media(self, data: bytes, media_kind: MediaKind) -> SensitiveMediaVerdict | None:
        frames = await self.frame_extractor.extract(data, media_kind)
        if not frames:
            logger.info("[PIPELINE] No frames available for %s, skipping media check", media_kind)
            return None

        result = await self.gateway.classify_media(frames, media_kind)
        if not isinstance(result, Ok):
            logger.debug("[PIPELINE] Media classification unavailable: %s %s", result.kind, result.detail)
            return None

        classification = result.value
        if not (classification.flagged and classification.confidence > MEDIA_CONFIDENCE_THRESHOLD):
            return None

        verdict = SensitiveMediaVerdict(
            media_kind=media_kind,
            topic=classification.topic or "unspecified",
            description=classification.description or f"Sensitive {media_kind.label} content",
            confidence=classification.confidence,
        )
        logger.info("[PIPELINE] %s violation: %s", media_kind.label, verdict.description)
        return verdict

    # ------------------------------------------------------------------
    # Text stages
    # ------------------------------------------------------------------

    async def _spam_stage(self, context: TextContext) -> ModerationVerdict | None:
        return await self.spam_detector.check(context.text, context.sender, context.room_id)

    async def _toxic_stage(self, context: TextContext) -> ModerationVerdict | None:
        if len(context.text) < TOXIC_MIN_LENGTH:
            return None
        result = await self.gateway.classify_text(context.text)
        if not isinstance(result, Ok) or not result.value.violation:
            return None
        classification = result.value
        return ToxicContentVerdict(
            categories=classification.categories,
            scores=dict(classification.scores),
            flagged=classification.flagged,
            severity=Severity.HIGH if classification.flagged else Severity.MEDIUM,
        )

    async def _topic_stage(self, context: TextContext) -> ModerationVerdict | None:
        if len(context.text) <= TOPIC_MIN_LENGTH:
            return None
        result = await self.gateway.classify_topic(context.text)
        if not isinstance(result, Ok):
            return None
        classification = result.value
        if classification.flagged and classification.confidence > TOPIC_CONFIDENCE_THRESHOLD:
            return SensitiveTopicVerdict(
                topic=classification.topic or "unspecified",
                confidence=classification.confidence,
            )
        return None
