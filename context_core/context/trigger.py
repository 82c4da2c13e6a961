"""
COMPACTION_TRIGGER
==================

Decides, per chat, whether a compaction pass is due, and runs it inline.

Decision:
1. Fetch a fixed deep lookback (default 100 messages), independent of tier
2. Fewer than ``min_history`` messages → nothing to do
3. Estimate the serialized size (UTF-8 bytes / 4); above ``token_threshold``
   → compact now

The triggering caller waits for its own compaction so every later request
gets a bounded context. Compaction is single-flight per chat: a caller that
finds a pass already running for the same chat skips it and proceeds with
whatever summary is current (stale but safe).
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Iterator, Optional, Set

from .compaction import CompactionResult, Compactor
from .tokens import BYTES_PER_TOKEN, exceeds_threshold, history_size_bytes

if TYPE_CHECKING:
    from ..memory.history import HistoryStore

logger = logging.getLogger(__name__)


# ============================================================================
# SINGLE-FLIGHT
# ============================================================================

class SingleFlight:
    """
    At most one holder per key; other claimants are turned away, not queued.

    Keys are dropped as soon as their holder releases, so the registry only
    ever holds chats with a pass in progress.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._in_flight: Set[str] = set()

    def try_acquire(self, key: str) -> bool:
        with self._lock:
            if key in self._in_flight:
                return False
            self._in_flight.add(key)
            return True

    def release(self, key: str) -> None:
        with self._lock:
            self._in_flight.discard(key)

    def is_in_flight(self, key: str) -> bool:
        with self._lock:
            return key in self._in_flight

    @contextmanager
    def claim(self, key: str) -> Iterator[bool]:
        acquired = self.try_acquire(key)
        try:
            yield acquired
        finally:
            if acquired:
                self.release(key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._in_flight)


# ============================================================================
# TRIGGER
# ============================================================================

# Outcomes
TOO_SHORT = "too_short"
UNDER_THRESHOLD = "under_threshold"
IN_FLIGHT = "in_flight"
TRIGGERED = "triggered"
ERROR = "error"

# Per-chat states
STATE_NONE = "none"
STATE_COMPACTING = "compacting"
STATE_COMPACTED = "compacted"


@dataclass
class TriggerDecision:
    chat_id: str
    outcome: str
    message_count: int = 0
    estimated_tokens: int = 0
    result: Optional[CompactionResult] = None

    def to_dict(self) -> Dict:
        return {
            "chat_id": self.chat_id,
            "outcome": self.outcome,
            "message_count": self.message_count,
            "estimated_tokens": self.estimated_tokens,
            "result": self.result.to_dict() if self.result else None,
        }


class CompactionTrigger:
    """Size-triggered, best-effort compaction check."""

    DEFAULT_THRESHOLD = 50000
    DEFAULT_DEEP_LOOKBACK = 100
    DEFAULT_MIN_HISTORY = 20

    def __init__(
        self,
        history_store: "HistoryStore",
        compactor: Compactor,
        token_threshold: int = DEFAULT_THRESHOLD,
        deep_lookback: int = DEFAULT_DEEP_LOOKBACK,
        min_history: int = DEFAULT_MIN_HISTORY,
        single_flight: Optional[SingleFlight] = None,
    ):
        self.history_store = history_store
        self.compactor = compactor
        self.token_threshold = token_threshold
        self.deep_lookback = deep_lookback
        self.min_history = min_history
        self.single_flight = single_flight or SingleFlight()

    def check(self, chat_id: str) -> TriggerDecision:
        """
        Compact the chat now if its recent history is over the threshold.

        Never raises; the returned decision is informational only.
        """
        try:
            deep = self.history_store.get_recent(chat_id, self.deep_lookback)
        except Exception as e:
            logger.error("Compaction check for chat=%s could not read history: %s", chat_id, e)
            return TriggerDecision(chat_id=chat_id, outcome=ERROR)

        if len(deep) < self.min_history:
            logger.debug("Compaction check chat=%s: %d messages, too short", chat_id, len(deep))
            return TriggerDecision(chat_id=chat_id, outcome=TOO_SHORT, message_count=len(deep))

        # Compare unrounded bytes / 4 against the threshold
        nbytes = history_size_bytes(deep)
        estimate = nbytes // BYTES_PER_TOKEN
        if not exceeds_threshold(nbytes, self.token_threshold):
            logger.debug(
                "Compaction check chat=%s: bytes=%d estimate=%d <= threshold=%d, skip",
                chat_id, nbytes, estimate, self.token_threshold,
            )
            return TriggerDecision(chat_id=chat_id, outcome=UNDER_THRESHOLD,
                                   message_count=len(deep), estimated_tokens=estimate)

        with self.single_flight.claim(chat_id) as acquired:
            if not acquired:
                logger.info(
                    "Chat %s exceeds threshold (estimate=%d) but a compaction is already running; "
                    "serving current summary", chat_id, estimate,
                )
                return TriggerDecision(chat_id=chat_id, outcome=IN_FLIGHT,
                                       message_count=len(deep), estimated_tokens=estimate)

            logger.info(
                "Chat %s exceeds threshold (estimate=%d > %d). Summarizing...",
                chat_id, estimate, self.token_threshold,
            )
            result = self.compactor.compact(chat_id, deep)

        logger.info("Compaction outcome chat=%s estimate=%d status=%s",
                    chat_id, estimate, result.status)
        return TriggerDecision(chat_id=chat_id, outcome=TRIGGERED, message_count=len(deep),
                               estimated_tokens=estimate, result=result)

    def state(self, chat_id: str) -> str:
        """Per-chat lifecycle state: none, compacting or compacted."""
        if self.single_flight.is_in_flight(chat_id):
            return STATE_COMPACTING
        if self.compactor.summary_store.get_latest(chat_id) is not None:
            return STATE_COMPACTED
        return STATE_NONE
