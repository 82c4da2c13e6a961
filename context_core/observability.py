"""
OBSERVABILITY
=============

Tracing hooks for contextCore.

Provides contextvars-based access to the current tracking task object
anywhere in the call stack, without threading it through every function
signature. The chat pipeline binds a task handle before calling
``WindowAssembler.get_context``; the compactor reports its summarization
call and the resulting compaction event against it.

A task handle is any object exposing::

    task.event(name, payload={...})
    task.llm_call(name, model=..., tokens_in=..., tokens_out=..., cost=..., duration_ms=...)

Usage::

    from context_core.observability import set_current_task, clear_current_task

    set_current_task(task)
    try:
        window = assembler.get_context(chat_id, "FAST")
    finally:
        clear_current_task()
"""

import contextvars
from typing import Any, Dict, Optional

# Current tracking task for this execution context.
_current_task: contextvars.ContextVar[Optional[Any]] = contextvars.ContextVar(
    "context_core_task", default=None
)


def set_current_task(task: Any) -> None:
    """Set the tracking task for the current execution context."""
    _current_task.set(task)


def get_current_task() -> Optional[Any]:
    """Get the current tracking task, or None if not in a tracked context."""
    return _current_task.get()


def clear_current_task() -> None:
    """Clear the current tracking task."""
    _current_task.set(None)


# ============================================================================
# COST ESTIMATION
# ============================================================================

# USD per 1M tokens (update when pricing changes)
COST_PER_MILLION: Dict[str, Dict[str, float]] = {
    # Google
    "gemini-2.0-flash": {"input": 0.10, "output": 0.40},
    "gemini-2.0-flash-exp": {"input": 0.10, "output": 0.40},
    "gemini-2.0-flash-lite": {"input": 0.075, "output": 0.30},
    "gemini-2.5-flash": {"input": 0.30, "output": 2.50},
    "gemini-2.5-flash-lite": {"input": 0.10, "output": 0.40},
    "gemini-2.5-pro": {"input": 1.25, "output": 10.00},
}


def estimate_cost(model: str, tokens_in: int, tokens_out: int) -> Optional[float]:
    """Estimate USD cost for an LLM call. Returns None if model not in table."""
    rates = COST_PER_MILLION.get(model)
    if not rates:
        return None
    return (tokens_in * rates["input"] / 1_000_000) + (tokens_out * rates["output"] / 1_000_000)
