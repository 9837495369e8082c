"""Utilities for parsing JSON answers from the classification backend."""

from __future__ import annotations

import json
import re
from typing import Any, Dict

import jsonschema
from jsonschema import ValidationError

from groupwarden.util.logger import get_logger

logger = get_logger("moderation_parsing")

_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?\s*(.*?)\s*```", re.DOTALL)
_DECODER = json.JSONDecoder()

TOPIC_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "flagged": {"type": "boolean"},
        "topic": {"type": ["string", "null"]},
        "confidence": {"type": "number", "minimum": 0, "maximum": 1},
    },
    "required": ["flagged", "confidence"],
}

MEDIA_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "flagged": {"type": "boolean"},
        "topic": {"type": ["string", "null"]},
        "description": {"type": ["string", "null"]},
        "confidence": {"type": "number", "minimum": 0, "maximum": 1},
    },
    "required": ["flagged", "confidence"],
}


def _strip_code_fences(raw: str) -> str:
    match = _FENCE_PATTERN.search(raw)
    return match.group(1) if match else raw


def _extract_json_payload(raw: str) -> Any:
    """Extract a JSON object from model output.

    Markdown fences and prose before the first ``{`` are dropped; the first
    complete object is decoded and anything after it is ignored.
    """
    text = _strip_code_fences(raw.strip()).strip()
    start = text.find("{")
    try:
        if start == -1:
            return json.loads(text)
        payload, _ = _DECODER.raw_decode(text, start)
        return payload
    except json.JSONDecodeError as exc:
        logger.warning("[EXTRACT] Parsing failed: %s", exc)
        raise ValueError("Failed to extract JSON payload") from exc


def parse_classification(response: str | None, expected_schema: Dict[str, Any]) -> Dict[str, Any]:
    """Parse and validate a classification answer.

    Args:
        response: Raw completion text.
        expected_schema: JSON schema the payload must satisfy.

    Returns:
        The validated payload.

    Raises:
        ValueError: If the text holds no JSON object or it fails validation.
    """
    if not response or not response.strip():
        raise ValueError("Empty response")

    payload = _extract_json_payload(response)
    if not isinstance(payload, dict):
        raise ValueError(f"Payload is not an object, got {type(payload).__name__}")

    try:
        jsonschema.validate(instance=payload, schema=expected_schema)
    except ValidationError as exc:
        logger.warning("[PARSE] Schema validation failed: %s", exc.message)
        raise ValueError(f"Schema validation failed: {exc.message}") from exc

    return payload
