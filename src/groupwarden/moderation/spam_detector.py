"""
Local spam heuristics evaluated before any external classification.

The detector runs an ordered chain of predicates (links, caps, repeat) and
returns the first verdict produced. Each predicate can be exercised on its
own; ``count_links`` and ``caps_ratio`` are pure helpers.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Tuple

from groupwarden.datatypes.verdict_datatypes import (
    ExcessiveCapsVerdict,
    ExcessiveLinksVerdict,
    ModerationVerdict,
    RepeatedMessageVerdict,
)
from groupwarden.util.format_utils import identity_to_phone, mask_phone
from groupwarden.util.keyed_lock import KeyedLock
from groupwarden.util.logger import get_logger

logger = get_logger("spam_detector")

LINK_PATTERN = re.compile(r"https?://\S+", re.IGNORECASE)
LETTER_PATTERN = re.compile(r"[A-Za-z]")


@dataclass(frozen=True, slots=True)
class SpamThresholds:
    max_links: int = 3
    max_caps_ratio: float = 0.7
    min_caps_length: int = 10
    repeat_threshold: int = 3
    repeat_window_seconds: float = 60.0
    min_message_length: int = 5

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "SpamThresholds":
        """Build thresholds from the ``spam`` config section, ignoring unknown keys."""
        data = data or {}
        defaults = cls()
        return cls(
            max_links=int(data.get("max_links", defaults.max_links)),
            max_caps_ratio=float(data.get("max_caps_ratio", defaults.max_caps_ratio)),
            min_caps_length=int(data.get("min_caps_length", defaults.min_caps_length)),
            repeat_threshold=int(data.get("repeat_threshold", defaults.repeat_threshold)),
            repeat_window_seconds=float(data.get("repeat_window_seconds", defaults.repeat_window_seconds)),
            min_message_length=int(data.get("min_message_length", defaults.min_message_length)),
        )


def count_links(text: str) -> int:
    return len(LINK_PATTERN.findall(text))


def caps_ratio(text: str) -> Tuple[float, int]:
    """Return ``(uppercase / letters, letters)`` over ASCII letters only."""
    letters = LETTER_PATTERN.findall(text)
    if not letters:
        return 0.0, 0
    upper = sum(1 for ch in letters if ch.isupper())
    return upper / len(letters), len(letters)


@dataclass(slots=True)
class RepeatCacheEntry:
    text: str
    count: int
    last_seen: float


class RepeatCache:
    """
    Sliding-window record of the last message per ``(phone, room)``.

    Senders are keyed by phone, so the same account posting from several
    devices shares one entry.

    Entries older than ``window_seconds`` are evicted lazily on the next
    ``record`` call. Updates for the same key are serialized by a keyed lock.
    """

    def __init__(self, window_seconds: float = 60.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.window_seconds = window_seconds
        self._clock = clock
        self._entries: Dict[Tuple[str, str], RepeatCacheEntry] = {}
        self._locks = KeyedLock()

    def _evict_stale(self, now: float) -> None:
        stale = [key for key, entry in self._entries.items() if now - entry.last_seen > self.window_seconds]
        for key in stale:
            del self._entries[key]

    async def record(self, sender: str, room_id: str, text: str) -> int:
        """Record ``text`` for the key and return the current repeat count."""
        normalized = text.strip().lower()
        key = (identity_to_phone(sender), room_id)
        async with self._locks.hold(key):
            now = self._clock()
            self._evict_stale(now)
            entry = self._entries.get(key)
            if entry is not None and entry.text == normalized:
                entry.count += 1
                entry.last_seen = now
                return entry.count
            self._entries[key] = RepeatCacheEntry(text=normalized, count=1, last_seen=now)
            return 1

    def get(self, sender: str, room_id: str) -> RepeatCacheEntry | None:
        return self._entries.get((identity_to_phone(sender), room_id))

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


SpamPredicate = Callable[[str, str, str], Awaitable[ModerationVerdict | None]]


class HeuristicSpamDetector:
    """First-match-wins chain of local spam checks."""

    def __init__(self, thresholds: SpamThresholds | None = None, cache: RepeatCache | None = None) -> None:
        self.thresholds = thresholds or SpamThresholds()
        self.cache = cache or RepeatCache(self.thresholds.repeat_window_seconds)
        self.predicates: Tuple[SpamPredicate, ...] = (
            self.check_links,
            self.check_caps,
            self.check_repeat,
        )

    async def check_links(self, text: str, sender: str, room_id: str) -> ModerationVerdict | None:
        links = count_links(text)
        if links > self.thresholds.max_links:
            return ExcessiveLinksVerdict(link_count=links, max_links=self.thresholds.max_links)
        return None

    async def check_caps(self, text: str, sender: str, room_id: str) -> ModerationVerdict | None:
        ratio, letters = caps_ratio(text)
        if letters < self.thresholds.min_caps_length:
            return None
        if ratio > self.thresholds.max_caps_ratio:
            return ExcessiveCapsVerdict(caps_ratio=ratio)
        return None

    async def check_repeat(self, text: str, sender: str, room_id: str) -> ModerationVerdict | None:
        count = await self.cache.record(sender, room_id, text)
        if count >= self.thresholds.repeat_threshold:
            return RepeatedMessageVerdict(repeat_count=count)
        return None

    async def check(self, text: str | None, sender: str, room_id: str) -> ModerationVerdict | None:
        """Run the predicates in order; ``None`` when the text is clean or too short."""
        if not text or len(text) < self.thresholds.min_message_length:
            return None
        for predicate in self.predicates:
            try:
                verdict = await predicate(text, sender, room_id)
            except Exception:
                logger.exception("[SPAM] Predicate %s failed", getattr(predicate, "__name__", predicate))
                continue
            if verdict is not None:
                logger.debug("[SPAM] %s from %s: %s", verdict.kind, mask_phone(sender), verdict.reason)
                return verdict
        return None
