"""
TOKEN ESTIMATION
================

Cheap size heuristic used only to decide whether compaction is due.
Billed token counts come from the summarization service's own usage
metadata once a real call is made.

The estimate is UTF-8 byte length / 4, unrounded. Threshold comparisons
are done on the byte count (``nbytes > 4 * threshold``) so a history a
fraction of a token over the limit still counts as over it; the integer
``estimate_tokens`` value is for logging and reporting.
"""

import json
from typing import Iterable

from .messages import Message

BYTES_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """
    Approximate token count for text, rounded down.

    Uses UTF-8 byte length divided by 4. Deterministic, no I/O.

    Args:
        text: Serialized text to size

    Returns:
        Approximate token count
    """
    return text_size_bytes(text) // BYTES_PER_TOKEN


def text_size_bytes(text: str) -> int:
    if not text:
        return 0
    return len(text.encode("utf-8"))


def exceeds_threshold(nbytes: int, token_threshold: int) -> bool:
    """True when ``nbytes / 4`` is strictly greater than the threshold."""
    return nbytes > BYTES_PER_TOKEN * token_threshold


def serialize_history(messages: Iterable[Message]) -> str:
    """Deterministic compact JSON form of a message sequence."""
    return json.dumps(
        [m.to_dict() for m in messages],
        ensure_ascii=False,
        separators=(",", ":"),
        sort_keys=True,
        default=str,
    )


def history_size_bytes(messages: Iterable[Message]) -> int:
    return text_size_bytes(serialize_history(messages))


def estimate_history_tokens(messages: Iterable[Message]) -> int:
    return history_size_bytes(messages) // BYTES_PER_TOKEN
