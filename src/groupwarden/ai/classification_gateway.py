"""
Classification gateway over an OpenAI-compatible API.

Three capabilities are exposed:

- ``classify_text``: the moderation endpoint (toxicity categories + scores).
- ``classify_topic``: a chat completion against the closed sensitive taxonomy.
- ``classify_media``: a vision chat completion over one or more JPEG frames.

Every call returns ``Ok(value)`` or ``Err(kind, detail)``. Nothing is raised
to the caller; failures are logged here and the pipeline treats ``Err`` as
"no verdict".
"""

from __future__ import annotations

import base64
from collections.abc import Mapping
from typing import Any, Dict, List, Sequence

from openai import AsyncOpenAI

from groupwarden.ai import prompts
from groupwarden.configuration.ai_settings import AISettings
from groupwarden.datatypes.classification_datatypes import (
    ClassificationErrorKind,
    ClassificationResult,
    Err,
    MediaClassification,
    Ok,
    TopicClassification,
    ToxicClassification,
)
from groupwarden.datatypes.verdict_datatypes import MediaKind
from groupwarden.moderation.moderation_parsing import (
    MEDIA_RESPONSE_SCHEMA,
    TOPIC_RESPONSE_SCHEMA,
    parse_classification,
)
from groupwarden.util.logger import get_logger

logger = get_logger("classification_gateway")

HIGH_SCORE_THRESHOLD = 0.75
TOPIC_MAX_TOKENS = 100
MEDIA_MAX_TOKENS = 200


def _as_dict(value: Any) -> Dict[str, Any]:
    """Normalize an SDK model or mapping into a plain dict keyed by API names."""
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return dict(value)
    dump = getattr(value, "model_dump", None)
    if callable(dump):
        return dump(by_alias=True)
    return dict(vars(value))


def _frame_content(images: Sequence[bytes]) -> List[Dict[str, Any]]:
    return [
        {
            "type": "image_url",
            "image_url": {
                "url": f"data:image/jpeg;base64,{base64.b64encode(image).decode('ascii')}",
                "detail": "low",
            },
        }
        for image in images
    ]


class ClassificationGateway:
    """
    Thin async wrapper around ``AsyncOpenAI`` returning result objects.

    Args:
        settings: Backend configuration (key, base URL, model names).
        client: Optional pre-built client; created lazily from ``settings`` otherwise.
    """

    def __init__(self, settings: AISettings, client: AsyncOpenAI | None = None) -> None:
        self.settings = settings
        self._client = client

    @property
    def is_available(self) -> bool:
        return self._client is not None or self.settings.is_configured

    def _get_client(self) -> AsyncOpenAI | None:
        if self._client is None and self.settings.is_configured:
            self._client = AsyncOpenAI(
                api_key=self.settings.api_key,
                base_url=self.settings.base_url,
                timeout=self.settings.request_timeout,
            )
            logger.info(
                "[GATEWAY] Initialized client (base_url=%s, chat_model=%s)",
                self.settings.base_url or "default",
                self.settings.chat_model,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    async def classify_text(self, text: str) -> ClassificationResult[ToxicClassification]:
        """Score ``text`` with the moderation endpoint.

        A violation is reported when the service flags the text (all flagged
        categories are returned) or, failing that, when any single category
        scores above 0.75 (that first category is returned).
        """
        if not text or not text.strip():
            return Err(ClassificationErrorKind.EMPTY_INPUT)
        client = self._get_client()
        if client is None:
            return Err(ClassificationErrorKind.NOT_CONFIGURED, "no API key")

        try:
            response = await client.moderations.create(
                model=self.settings.moderation_model,
                input=text,
            )
            result = response.results[0]
        except Exception as exc:
            logger.error("[GATEWAY] Moderation request failed: %s", exc)
            return Err(ClassificationErrorKind.TRANSPORT, str(exc))

        categories = _as_dict(getattr(result, "categories", None))
        scores = {
            name: float(score)
            for name, score in _as_dict(getattr(result, "category_scores", None)).items()
            if score is not None
        }

        if getattr(result, "flagged", False):
            flagged_categories = tuple(name for name, hit in categories.items() if hit)
            return Ok(ToxicClassification(
                flagged=True,
                categories=flagged_categories,
                scores=scores,
                violation=True,
            ))

        for name, score in scores.items():
            if score > HIGH_SCORE_THRESHOLD:
                return Ok(ToxicClassification(flagged=False, categories=(name,), scores=scores, violation=True))

        return Ok(ToxicClassification(flagged=False, scores=scores, violation=False))

    async def classify_topic(self, text: str) -> ClassificationResult[TopicClassification]:
        """Ask the chat model whether ``text`` touches the sensitive taxonomy."""
        if not text or not text.strip():
            return Err(ClassificationErrorKind.EMPTY_INPUT)

        raw = await self._complete(
            [
                {"role": "system", "content": prompts.TOPIC_SYSTEM_PROMPT},
                {"role": "user", "content": text},
            ],
            max_tokens=TOPIC_MAX_TOKENS,
        )
        if isinstance(raw, Err):
            return raw

        try:
            payload = parse_classification(raw.value, TOPIC_RESPONSE_SCHEMA)
        except ValueError as exc:
            logger.warning("[GATEWAY] Unusable topic answer: %s", exc)
            return Err(ClassificationErrorKind.MALFORMED, str(exc))

        return Ok(TopicClassification(
            flagged=bool(payload["flagged"]),
            topic=payload.get("topic"),
            confidence=float(payload["confidence"]),
        ))

    # ------------------------------------------------------------------
    # Media
    # ------------------------------------------------------------------

    async def classify_media(
        self,
        images: Sequence[bytes],
        media_kind: MediaKind = MediaKind.IMAGE,
    ) -> ClassificationResult[MediaClassification]:
        """Classify a still image or a set of frames sampled from a video or GIF."""
        if not images:
            return Err(ClassificationErrorKind.EMPTY_INPUT)

        if media_kind is MediaKind.IMAGE:
            system_prompt = prompts.IMAGE_SYSTEM_PROMPT
            instruction = "Analyze this image for sensitive content."
        else:
            system_prompt = prompts.FRAMES_SYSTEM_PROMPT
            noun = "a video" if media_kind is MediaKind.VIDEO else "a GIF"
            instruction = (
                f"Analyze these {len(images)} frames extracted from {noun} "
                "for sensitive or prohibited content."
            )

        raw = await self._complete(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": [*_frame_content(images), {"type": "text", "text": instruction}]},
            ],
            max_tokens=MEDIA_MAX_TOKENS,
        )
        if isinstance(raw, Err):
            return raw

        try:
            payload = parse_classification(raw.value, MEDIA_RESPONSE_SCHEMA)
        except ValueError as exc:
            logger.warning("[GATEWAY] Unusable %s answer: %s", media_kind, exc)
            return Err(ClassificationErrorKind.MALFORMED, str(exc))

        return Ok(MediaClassification(
            flagged=bool(payload["flagged"]),
            topic=payload.get("topic"),
            description=payload.get("description"),
            confidence=float(payload["confidence"]),
        ))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _complete(self, messages: List[Dict[str, Any]], max_tokens: int) -> ClassificationResult[str]:
        client = self._get_client()
        if client is None:
            return Err(ClassificationErrorKind.NOT_CONFIGURED, "no API key")

        try:
            response = await client.chat.completions.create(
                model=self.settings.chat_model,
                messages=messages,
                temperature=self.settings.temperature,
                max_tokens=max_tokens,
            )
        except Exception as exc:
            logger.error("[GATEWAY] Chat completion failed: %s", exc)
            return Err(ClassificationErrorKind.TRANSPORT, str(exc))

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError) as exc:
            logger.warning("[GATEWAY] Completion had no choices: %s", exc)
            return Err(ClassificationErrorKind.MALFORMED, "no choices")

        if not content:
            return Err(ClassificationErrorKind.MALFORMED, "empty completion")
        return Ok(content.strip())
