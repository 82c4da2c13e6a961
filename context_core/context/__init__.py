"""
CONTEXT MANAGEMENT MODULE
=========================

Bounded, continuity-preserving context for long-running chats.

Features:
- Size estimation (UTF-8 bytes / 4)
- Size-triggered, single-flight compaction of older history into a digest
- Preserves the most recent turns verbatim
- Digest + recent tail assembly per tier
"""

from .messages import (
    Role,
    Message,
    TextPart,
    MediaPart,
    FunctionCallPart,
    FunctionResponsePart,
    DigestEntry,
    MessageEntry,
    ContextEntry,
)
from .tokens import (
    estimate_tokens,
    serialize_history,
    estimate_history_tokens,
    history_size_bytes,
    exceeds_threshold,
)
from .compaction import Compactor, CompactionResult, format_transcript
from .trigger import CompactionTrigger, SingleFlight, TriggerDecision
from .window import (
    WindowAssembler,
    create_window_assembler,
    get_window_assembler,
    reset_window_assembler,
)

__all__ = [
    'Role',
    'Message',
    'TextPart',
    'MediaPart',
    'FunctionCallPart',
    'FunctionResponsePart',
    'DigestEntry',
    'MessageEntry',
    'ContextEntry',
    'estimate_tokens',
    'serialize_history',
    'estimate_history_tokens',
    'history_size_bytes',
    'exceeds_threshold',
    'Compactor',
    'CompactionResult',
    'format_transcript',
    'CompactionTrigger',
    'SingleFlight',
    'TriggerDecision',
    'WindowAssembler',
    'create_window_assembler',
    'get_window_assembler',
    'reset_window_assembler',
]
