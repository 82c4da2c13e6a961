"""
CONTEXT_COMPACTION
==================

Summarization pass for one chat.

When the trigger decides a chat has grown too large, this module:
1. Keeps the most recent N messages out of the pass (still actively referenced)
2. Formats everything older into a role-tagged transcript
3. Makes exactly one summarization call
4. Appends the resulting digest to the summary store

A failed pass is a no-op: nothing is persisted and nothing is raised to the
chat turn that triggered it. The next turn that crosses the threshold
retries naturally.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from ..llm.summarizer import EmptySummaryError, SummarizationError, SummarizationService
from ..memory.summaries import SummaryStore, SummaryStoreError, timestamps_ordered
from ..observability import estimate_cost, get_current_task
from .messages import Message

logger = logging.getLogger(__name__)


# ============================================================================
# COMPACTION RESULT
# ============================================================================

SKIPPED = "skipped"
COMPACTED = "compacted"
FAILED = "failed"


@dataclass
class CompactionResult:
    """Outcome of one compaction attempt."""
    chat_id: str
    status: str                    # skipped, compacted, failed
    reason: str = ""
    messages_summarized: int = 0
    summary_id: Optional[str] = None
    original_tokens: int = 0
    summary_tokens: int = 0
    duration_ms: int = 0
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def compacted(self) -> bool:
        return self.status == COMPACTED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chat_id": self.chat_id,
            "status": self.status,
            "reason": self.reason,
            "messages_summarized": self.messages_summarized,
            "summary_id": self.summary_id,
            "original_tokens": self.original_tokens,
            "summary_tokens": self.summary_tokens,
            "duration_ms": self.duration_ms,
            "timestamp": self.timestamp,
        }


# ============================================================================
# PROMPT
# ============================================================================

COMPRESSION_PROMPT = """Compress the following conversation into a concise, high-level summary.
Focus on:
1. What goals were accomplished?
2. What key technical decisions were made?
3. What is the current state of the system?
4. Any specific file paths or variable names mentioned that are critical.

CONVERSATION:
{transcript}
"""


def format_transcript(messages: Sequence[Message]) -> str:
    """Role-tagged transcript, one message per line."""
    return "\n".join(f"[{m.role.value.upper()}]: {m.text_content}" for m in messages)


# ============================================================================
# COMPACTOR
# ============================================================================

class Compactor:
    """
    Compresses the older slice of a chat's history into one Summary.

    Idempotent on failure: the store is append-only, so a duplicate or
    concurrent pass for the same chat costs one extra summarization call and
    cannot corrupt state.
    """

    DEFAULT_KEEP_RECENT = 10  # Newest messages never summarized in a pass
    DEFAULT_MIN_RESERVE = 5   # Smallest slice worth a summarization call

    def __init__(
        self,
        summary_store: SummaryStore,
        summarizer: SummarizationService,
        keep_recent: int = DEFAULT_KEEP_RECENT,
        min_reserve: int = DEFAULT_MIN_RESERVE,
    ):
        """
        Args:
            summary_store: Where digests are appended
            summarizer: Summarization service (should enforce its own timeout)
            keep_recent: Number of trailing messages excluded from the pass
            min_reserve: Minimum slice length that justifies a call
        """
        self.summary_store = summary_store
        self.summarizer = summarizer
        self.keep_recent = keep_recent
        self.min_reserve = min_reserve

    def select_reserve(self, deep_history: Sequence[Message]) -> List[Message]:
        """Everything but the last ``keep_recent`` messages."""
        if self.keep_recent <= 0:
            return list(deep_history)
        return list(deep_history[:-self.keep_recent])

    def compact(self, chat_id: str, deep_history: Sequence[Message]) -> CompactionResult:
        """
        Run one compaction pass. Never raises.

        Args:
            chat_id: Chat being compacted
            deep_history: Tier-independent lookback, oldest first

        Returns:
            CompactionResult (callers may ignore it)
        """
        reserve = self.select_reserve(deep_history)

        if len(reserve) < self.min_reserve:
            logger.debug(
                "Compaction skipped for chat=%s: %d messages outside reserve (< %d)",
                chat_id, len(reserve), self.min_reserve,
            )
            return CompactionResult(chat_id=chat_id, status=SKIPPED,
                                    reason="insufficient_reserve")

        start = time.perf_counter()
        try:
            result = self._summarize_and_save(chat_id, reserve)
        except (SummarizationError, SummaryStoreError, ValueError) as e:
            result = CompactionResult(chat_id=chat_id, status=FAILED, reason=str(e))
            logger.warning("Compaction failed for chat=%s: %s", chat_id, e)
        except Exception as e:
            result = CompactionResult(chat_id=chat_id, status=FAILED, reason=repr(e))
            logger.exception("Unexpected compaction error for chat=%s", chat_id)
        result.duration_ms = round((time.perf_counter() - start) * 1000)

        self._report(result)
        return result

    def _summarize_and_save(self, chat_id: str, reserve: List[Message]) -> CompactionResult:
        prompt = COMPRESSION_PROMPT.format(transcript=format_transcript(reserve))

        _llm_start = time.perf_counter()
        response = self.summarizer.generate(prompt)
        _llm_elapsed = (time.perf_counter() - _llm_start) * 1000

        text = (response.text or "").strip() if response is not None else ""
        if not text:
            raise EmptySummaryError("summarization returned empty text")

        original_tokens = max(0, response.usage.prompt_tokens or 0)
        summary_tokens = max(0, response.usage.completion_tokens or 0)
        self._report_llm_call(response.model or self.summarizer.model,
                              original_tokens, summary_tokens, _llm_elapsed)

        now = datetime.now(timezone.utc).isoformat()
        range_start = reserve[0].timestamp or now
        range_end = reserve[-1].timestamp or now
        if not timestamps_ordered(range_start, range_end):
            range_start, range_end = range_end, range_start

        summary = self.summary_store.save_summary(
            chat_id, text, range_start, range_end, original_tokens, summary_tokens,
        )

        logger.info(
            "Summary %s created for chat=%s. Compressed %d messages, %d -> %d tokens.",
            summary.id, chat_id, len(reserve), original_tokens, summary_tokens,
        )
        return CompactionResult(
            chat_id=chat_id,
            status=COMPACTED,
            messages_summarized=len(reserve),
            summary_id=summary.id,
            original_tokens=original_tokens,
            summary_tokens=summary_tokens,
        )

    def _report_llm_call(self, model: Optional[str], tokens_in: int, tokens_out: int,
                         elapsed_ms: float) -> None:
        _task = get_current_task()
        if not _task:
            return
        try:
            _task.llm_call(
                "context_compaction",
                model=model,
                tokens_in=tokens_in,
                tokens_out=tokens_out,
                cost=estimate_cost(model, tokens_in, tokens_out) if model else None,
                duration_ms=round(elapsed_ms),
            )
        except Exception:
            logger.debug("Tracking task rejected llm_call event", exc_info=True)

    def _report(self, result: CompactionResult) -> None:
        _task = get_current_task()
        if not _task:
            return
        try:
            _task.event("context_compacted" if result.compacted else "context_compaction_" + result.status,
                        payload=result.to_dict())
        except Exception:
            logger.debug("Tracking task rejected compaction event", exc_info=True)
