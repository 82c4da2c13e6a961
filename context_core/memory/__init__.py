"""
MEMORY MODULE
=============

Persistence consumed by contextCore.

Handles:
- Summary storage (append-only digests, aggregate stats)
- Raw chat history (recent-tail reads)
"""

from .summaries import (
    Summary,
    SummaryStats,
    SummaryStore,
    SummaryStoreError,
    JsonSummaryStore,
)
from .history import HistoryStore, JsonHistoryStore

__all__ = [
    'Summary',
    'SummaryStats',
    'SummaryStore',
    'SummaryStoreError',
    'JsonSummaryStore',
    'HistoryStore',
    'JsonHistoryStore',
]
