"""
Result types returned by the classification gateway.

Every gateway call returns either ``Ok(value)`` or ``Err(kind, detail)``.
The pipeline collapses ``Err`` to "no verdict"; the error kinds exist for
logging and tests, never for control flow outside the gateway.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Generic, Tuple, TypeVar, Union

T = TypeVar("T")


class ClassificationErrorKind(Enum):
    NOT_CONFIGURED = "not_configured"
    TRANSPORT = "transport"
    MALFORMED = "malformed"
    EMPTY_INPUT = "empty_input"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Err:
    kind: ClassificationErrorKind
    detail: str = ""

    @property
    def is_ok(self) -> bool:
        return False


ClassificationResult = Union[Ok[T], Err]


@dataclass(frozen=True, slots=True)
class ToxicClassification:
    """Outcome of the toxic-content check.

    Attributes:
        flagged: The service itself flagged the text.
        categories: Flagged categories, or the single high-scoring one.
        scores: Raw per-category scores.
        violation: True when either the flag or the high-score rule applied.
    """

    flagged: bool
    categories: Tuple[str, ...] = ()
    scores: Dict[str, float] = field(default_factory=dict)
    violation: bool = False


@dataclass(frozen=True, slots=True)
class TopicClassification:
    flagged: bool
    topic: str | None
    confidence: float


@dataclass(frozen=True, slots=True)
class MediaClassification:
    flagged: bool
    topic: str | None
    description: str | None
    confidence: float
