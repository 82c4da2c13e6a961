"""
CONTEXT_CORE
============

Bounded, continuity-preserving context for long-running conversational agents.

Features:
- Size-triggered compaction of older chat history into durable digests
- Single-flight per chat, hard timeout on the summarization call
- Digest + recent tail assembly per tier (FAST / LARGE)
- Append-only summary store with aggregate statistics

Usage:
    from context_core import create_window_assembler, load_global_config

    assembler = create_window_assembler(load_global_config())
    window = assembler.get_context("chat-42", "FAST")
    for entry in window:
        print(entry.kind, entry.role.value, entry.text[:80])
"""

__version__ = "1.0.0"

# Configuration
from .config import (
    ConfigManager,
    GlobalConfig,
    CompactionConfig,
    TierConfig,
    Tier,
    get_config_manager,
    load_global_config,
)

# Context
from .context import (
    Role,
    Message,
    TextPart,
    MediaPart,
    FunctionCallPart,
    FunctionResponsePart,
    DigestEntry,
    MessageEntry,
    estimate_tokens,
    Compactor,
    CompactionResult,
    CompactionTrigger,
    SingleFlight,
    WindowAssembler,
    create_window_assembler,
    get_window_assembler,
)

# Memory
from .memory import (
    Summary,
    SummaryStats,
    SummaryStore,
    SummaryStoreError,
    JsonSummaryStore,
    HistoryStore,
    JsonHistoryStore,
)

# Summarization
from .llm import (
    SummarizationService,
    SummarizationResult,
    Usage,
    SummarizationError,
    SummarizationTimeout,
    GeminiSummarizationService,
    TimeoutSummarizationService,
)

# Logging
from .logging_config import setup_logging

__all__ = [
    # Version
    '__version__',

    # Configuration
    'ConfigManager',
    'GlobalConfig',
    'CompactionConfig',
    'TierConfig',
    'Tier',
    'get_config_manager',
    'load_global_config',

    # Context
    'Role',
    'Message',
    'TextPart',
    'MediaPart',
    'FunctionCallPart',
    'FunctionResponsePart',
    'DigestEntry',
    'MessageEntry',
    'estimate_tokens',
    'Compactor',
    'CompactionResult',
    'CompactionTrigger',
    'SingleFlight',
    'WindowAssembler',
    'create_window_assembler',
    'get_window_assembler',

    # Memory
    'Summary',
    'SummaryStats',
    'SummaryStore',
    'SummaryStoreError',
    'JsonSummaryStore',
    'HistoryStore',
    'JsonHistoryStore',

    # Summarization
    'SummarizationService',
    'SummarizationResult',
    'Usage',
    'SummarizationError',
    'SummarizationTimeout',
    'GeminiSummarizationService',
    'TimeoutSummarizationService',

    # Logging
    'setup_logging',
]
