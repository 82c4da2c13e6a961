"""
CONTEXT_WINDOW
==============

Builds the bounded context returned to the chat pipeline for one turn.

    window = assembler.get_context(chat_id, "FAST")
    # [DigestEntry?, MessageEntry, MessageEntry, ...]

The tail is always the last N messages for the tier (FAST=20, LARGE=50),
regardless of what the latest summary already covers. Overlap between the
digest and the tail is expected; callers must not treat the tail as "only
what has not been summarized".

Usage:
    from context_core.context import get_window_assembler

    assembler = get_window_assembler()
    entries = assembler.get_context("chat-42", "LARGE")
    print(assembler.get_stats())
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from ..config.loader import GlobalConfig, Tier, TierConfig, get_config_manager
from ..llm.summarizer import (
    GeminiSummarizationService,
    SummarizationService,
    TimeoutSummarizationService,
)
from ..memory.summaries import JsonSummaryStore, Summary, SummaryStore
from .compaction import Compactor
from .messages import ContextEntry, DigestEntry, MessageEntry
from .trigger import CompactionTrigger

if TYPE_CHECKING:
    from ..memory.history import HistoryStore

logger = logging.getLogger(__name__)


class WindowAssembler:
    """Digest + recent tail, with compaction checked first."""

    def __init__(
        self,
        history_store: "HistoryStore",
        summary_store: SummaryStore,
        trigger: CompactionTrigger,
        tiers: Optional[TierConfig] = None,
    ):
        self.history_store = history_store
        self.summary_store = summary_store
        self.trigger = trigger
        self.tiers = tiers or TierConfig()

    def get_context(self, chat_id: str, tier: Union[str, Tier] = Tier.FAST) -> List[ContextEntry]:
        """
        Main entry point: the context for one inbound user turn.

        Args:
            chat_id: Chat to assemble
            tier: FAST or LARGE (case-insensitive)

        Returns:
            ``[digest?] + tail`` in chronological order

        Raises:
            ValueError: Unknown tier
        """
        limit = self.tiers.limit_for(tier)

        # 1. Compact first if the chat has grown too large (may block)
        try:
            self.trigger.check(chat_id)
        except Exception:
            logger.exception("Compaction check crashed for chat=%s; continuing", chat_id)

        # 2. Latest digest; a store outage degrades to tail-only
        latest = self._latest_summary(chat_id)

        # 3. Raw tail
        tail = self.history_store.get_recent(chat_id, limit)
        window: List[ContextEntry] = [MessageEntry(m) for m in tail]

        # 4. Digest first
        if latest is not None:
            window.insert(0, DigestEntry(
                summary_id=latest.id,
                content=latest.content,
                range_start=latest.range_start,
                range_end=latest.range_end,
            ))

        logger.debug("Context for chat=%s tier=%s: digest=%s tail=%d",
                     chat_id, Tier.parse(tier).value, latest is not None, len(tail))
        return window

    def _latest_summary(self, chat_id: str) -> Optional[Summary]:
        try:
            return self.summary_store.get_latest(chat_id)
        except Exception as e:
            logger.error("Summary store unavailable for chat=%s, serving tail only: %s", chat_id, e)
            return None

    # ========================================================================
    # STATS & ADMIN
    # ========================================================================

    def get_stats(self) -> Dict[str, int]:
        stats = self.summary_store.get_summary_stats()
        return {
            "total_summaries": stats.total_count,
            "estimated_tokens_saved": stats.total_original - stats.total_summary,
        }

    def get_summaries(self, limit: int = 20) -> List[Summary]:
        return self.summary_store.get_summaries(limit)

    def clear_summaries(self) -> None:
        self.summary_store.clear_summaries()

    def get_state(self, chat_id: str) -> str:
        return self.trigger.state(chat_id)


# ============================================================================
# FACTORY
# ============================================================================

def create_window_assembler(
    config: Optional[GlobalConfig] = None,
    summarizer: Optional[SummarizationService] = None,
    history_store: Optional["HistoryStore"] = None,
    summary_store: Optional[SummaryStore] = None,
) -> WindowAssembler:
    """
    Wire stores, summarizer, compactor and trigger from configuration.

    Any collaborator may be passed in to override the configured default.
    A passed-in summarizer is used as-is; the default Gemini service is
    wrapped with the configured hard timeout.
    """
    # Imported here: memory.history depends on context.messages
    from ..memory.history import JsonHistoryStore

    config = config or get_config_manager().global_config
    compaction = config.compaction

    history_store = history_store or JsonHistoryStore(config.paths.history_dir)
    summary_store = summary_store or JsonSummaryStore(config.paths.summaries_file)

    if summarizer is None:
        summarizer = TimeoutSummarizationService(
            GeminiSummarizationService(
                model=compaction.summary_model,
                apikeys_dir=config.paths.apikeys_dir,
            ),
            timeout_seconds=compaction.summary_timeout_seconds,
        )

    compactor = Compactor(
        summary_store=summary_store,
        summarizer=summarizer,
        keep_recent=compaction.keep_recent,
        min_reserve=compaction.min_reserve,
    )
    trigger = CompactionTrigger(
        history_store=history_store,
        compactor=compactor,
        token_threshold=compaction.token_threshold,
        deep_lookback=compaction.deep_lookback,
        min_history=compaction.min_history,
    )
    return WindowAssembler(history_store, summary_store, trigger, tiers=config.tiers)


_assembler: Optional[WindowAssembler] = None


def get_window_assembler() -> WindowAssembler:
    """Get or create the process-wide assembler."""
    global _assembler
    if _assembler is None:
        _assembler = create_window_assembler()
    return _assembler


def reset_window_assembler(assembler: Any = None) -> None:
    """Replace (or drop) the process-wide assembler."""
    global _assembler
    _assembler = assembler
