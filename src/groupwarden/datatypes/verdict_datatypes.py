"""
Moderation verdict types.

A verdict is the outcome of one moderation pass over a message or media item.
Each violation kind has its own frozen dataclass carrying exactly the fields
that kind needs; ``ModerationVerdict`` is the union of all of them. Every
variant exposes ``kind``, ``reason`` and ``severity`` plus two helpers used by
the ledger: ``log_body`` and ``category_scores``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Tuple, Union


class Severity(Enum):
    """Informational severity shown to administrators."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    def __str__(self) -> str:
        return self.value


class ViolationKind(Enum):
    """Enumeration of every violation a verdict can report."""

    EXCESSIVE_LINKS = "excessive_links"
    EXCESSIVE_CAPS = "excessive_caps"
    REPEATED_MESSAGE = "repeated_message"
    TOXIC_CONTENT = "toxic_content"
    SENSITIVE_TOPIC = "sensitive_topic"
    SENSITIVE_IMAGE = "sensitive_image"
    SENSITIVE_VIDEO = "sensitive_video"
    SENSITIVE_GIF = "sensitive_gif"

    def __str__(self) -> str:
        return self.value

    @property
    def is_media(self) -> bool:
        return self in MEDIA_VIOLATIONS


MEDIA_VIOLATIONS = frozenset({
    ViolationKind.SENSITIVE_IMAGE,
    ViolationKind.SENSITIVE_VIDEO,
    ViolationKind.SENSITIVE_GIF,
})


class MediaKind(Enum):
    """Kinds of media the pipeline can inspect."""

    IMAGE = "image"
    VIDEO = "video"
    GIF = "gif"

    def __str__(self) -> str:
        return self.value

    @property
    def violation_kind(self) -> ViolationKind:
        return {
            MediaKind.IMAGE: ViolationKind.SENSITIVE_IMAGE,
            MediaKind.VIDEO: ViolationKind.SENSITIVE_VIDEO,
            MediaKind.GIF: ViolationKind.SENSITIVE_GIF,
        }[self]

    @property
    def label(self) -> str:
        """Capitalised name used in reasons and log bodies (``Image``, ``Video``, ``GIF``)."""
        return "GIF" if self is MediaKind.GIF else self.value.capitalize()


@dataclass(frozen=True, slots=True)
class ExcessiveLinksVerdict:
    link_count: int
    max_links: int
    severity: Severity = Severity.MEDIUM
    kind: ViolationKind = field(default=ViolationKind.EXCESSIVE_LINKS, init=False)

    @property
    def reason(self) -> str:
        return f"Message contains {self.link_count} links (max: {self.max_links})"

    def log_body(self, text: str) -> str:
        return text

    @property
    def category_scores(self) -> Dict[str, float]:
        return {}


@dataclass(frozen=True, slots=True)
class ExcessiveCapsVerdict:
    caps_ratio: float
    severity: Severity = Severity.LOW
    kind: ViolationKind = field(default=ViolationKind.EXCESSIVE_CAPS, init=False)

    @property
    def reason(self) -> str:
        return f"Message is {round(self.caps_ratio * 100)}% uppercase"

    def log_body(self, text: str) -> str:
        return text

    @property
    def category_scores(self) -> Dict[str, float]:
        return {}


@dataclass(frozen=True, slots=True)
class RepeatedMessageVerdict:
    repeat_count: int
    severity: Severity = Severity.MEDIUM
    kind: ViolationKind = field(default=ViolationKind.REPEATED_MESSAGE, init=False)

    @property
    def reason(self) -> str:
        return f"Same message sent {self.repeat_count} times"

    def log_body(self, text: str) -> str:
        return text

    @property
    def category_scores(self) -> Dict[str, float]:
        return {}


@dataclass(frozen=True, slots=True)
class ToxicContentVerdict:
    """Verdict from the toxic-content classifier.

    ``flagged`` is False when the verdict comes from a single high category
    score rather than the service's own flag.
    """

    categories: Tuple[str, ...]
    scores: Dict[str, float]
    flagged: bool
    severity: Severity = Severity.HIGH
    kind: ViolationKind = field(default=ViolationKind.TOXIC_CONTENT, init=False)

    @property
    def reason(self) -> str:
        if self.flagged:
            return f"Flagged for: {', '.join(self.categories)}"
        category = self.categories[0] if self.categories else "unknown"
        score = self.scores.get(category, 0.0)
        return f"High score ({round(score * 100)}%) for: {category}"

    def log_body(self, text: str) -> str:
        return text

    @property
    def category_scores(self) -> Dict[str, float]:
        return dict(self.scores)


@dataclass(frozen=True, slots=True)
class SensitiveTopicVerdict:
    topic: str
    confidence: float
    severity: Severity = Severity.HIGH
    kind: ViolationKind = field(default=ViolationKind.SENSITIVE_TOPIC, init=False)

    @property
    def reason(self) -> str:
        return f"Detected sensitive topic: {self.topic}"

    def log_body(self, text: str) -> str:
        return text

    @property
    def category_scores(self) -> Dict[str, float]:
        return {self.topic: self.confidence}


@dataclass(frozen=True, slots=True)
class SensitiveMediaVerdict:
    """Verdict for an image, video or GIF.

    The raw media is not retained; ``description`` replaces the message body
    in the ledger.
    """

    media_kind: MediaKind
    topic: str
    description: str
    confidence: float
    severity: Severity = Severity.HIGH

    @property
    def kind(self) -> ViolationKind:
        return self.media_kind.violation_kind

    @property
    def reason(self) -> str:
        return f"{self.media_kind.label} contains sensitive topic: {self.topic}"

    def log_body(self, text: str) -> str:
        return f"[{self.media_kind.label.upper()}] {self.description}"

    @property
    def category_scores(self) -> Dict[str, float]:
        return {self.topic: self.confidence}


ModerationVerdict = Union[
    ExcessiveLinksVerdict,
    ExcessiveCapsVerdict,
    RepeatedMessageVerdict,
    ToxicContentVerdict,
    SensitiveTopicVerdict,
    SensitiveMediaVerdict,
]
