"""
LLM MODULE
==========

Summarization service interface and adapters.
"""

from .summarizer import (
    SummarizationService,
    SummarizationResult,
    Usage,
    SummarizationError,
    SummarizationTimeout,
    EmptySummaryError,
    GeminiSummarizationService,
    TimeoutSummarizationService,
)

__all__ = [
    'SummarizationService',
    'SummarizationResult',
    'Usage',
    'SummarizationError',
    'SummarizationTimeout',
    'EmptySummaryError',
    'GeminiSummarizationService',
    'TimeoutSummarizationService',
]
