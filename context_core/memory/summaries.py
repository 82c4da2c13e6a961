"""
SUMMARY_STORE
=============

Append-only persistence for chat digests.

A chat accumulates Summaries over its lifetime. Only the most recently
created one is read back when assembling a context window; all of them are
kept for aggregate statistics. Records are never updated; the only delete
is the administrative ``clear_summaries()``.

Storage (JsonSummaryStore): ``data/contextCore/SUMMARIES/summaries.json``,
a JSON array of summary records in creation order. Every write goes through
a temp file and ``os.replace`` so readers never observe a partial file.
"""

import json
import logging
import os
import tempfile
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class SummaryStoreError(Exception):
    """The summary store could not be read or written."""


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC. None if unparsable."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def timestamps_ordered(start: str, end: str) -> bool:
    """True if start <= end, comparing as datetimes when both parse."""
    start_dt, end_dt = parse_timestamp(start), parse_timestamp(end)
    if start_dt is not None and end_dt is not None:
        return start_dt <= end_dt
    return start <= end


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True)
class Summary:
    """One persisted digest of an older slice of a chat."""
    id: str
    chat_id: str
    content: str
    range_start: str
    range_end: str
    original_tokens: int
    summary_tokens: int
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "chat_id": self.chat_id,
            "content": self.content,
            "range_start": self.range_start,
            "range_end": self.range_end,
            "original_tokens": self.original_tokens,
            "summary_tokens": self.summary_tokens,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Summary":
        return cls(
            id=data["id"],
            chat_id=data["chat_id"],
            content=data.get("content", ""),
            range_start=data.get("range_start", ""),
            range_end=data.get("range_end", ""),
            original_tokens=data.get("original_tokens", 0),
            summary_tokens=data.get("summary_tokens", 0),
            created_at=data.get("created_at", ""),
        )


@dataclass(frozen=True)
class SummaryStats:
    total_count: int = 0
    total_original: int = 0
    total_summary: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "total_count": self.total_count,
            "total_original": self.total_original,
            "total_summary": self.total_summary,
        }


# ============================================================================
# INTERFACE
# ============================================================================

class SummaryStore(ABC):
    """Append-only digest storage. Implementations must make append and read-latest atomic."""

    @abstractmethod
    def save_summary(self, chat_id: str, content: str, range_start: str, range_end: str,
                     original_tokens: int, summary_tokens: int) -> Summary:
        """Append a new summary for a chat."""

    @abstractmethod
    def get_latest(self, chat_id: str) -> Optional[Summary]:
        """Most recently created summary for a chat, or None."""

    @abstractmethod
    def get_summaries(self, limit: int = 20) -> List[Summary]:
        """Most recent summaries across all chats, newest first."""

    @abstractmethod
    def clear_summaries(self) -> None:
        """Delete every summary (administrative reset)."""

    @abstractmethod
    def get_summary_stats(self) -> SummaryStats:
        """Aggregate counts over every retained summary."""

    @staticmethod
    def _validate(range_start: str, range_end: str, original_tokens: int, summary_tokens: int) -> None:
        if not timestamps_ordered(range_start, range_end):
            raise ValueError(f"range_start {range_start!r} is after range_end {range_end!r}")
        if original_tokens < 0 or summary_tokens < 0:
            raise ValueError("token counts must be non-negative")


# ============================================================================
# JSON FILE IMPLEMENTATION
# ============================================================================

class JsonSummaryStore(SummaryStore):
    """Summary store backed by a single JSON file."""

    def __init__(self, path: str):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

    def _read_all(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise SummaryStoreError(f"Failed to read summaries from {self.path}: {e}") from e
        if not isinstance(data, list):
            raise SummaryStoreError(f"Malformed summaries file {self.path}: expected a list")
        return data

    def _write_all(self, records: List[Dict[str, Any]]) -> None:
        try:
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".summaries_", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(records, f, indent=2, ensure_ascii=False)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise SummaryStoreError(f"Failed to write summaries to {self.path}: {e}") from e

    def save_summary(self, chat_id: str, content: str, range_start: str, range_end: str,
                     original_tokens: int, summary_tokens: int) -> Summary:
        self._validate(range_start, range_end, original_tokens, summary_tokens)

        summary = Summary(
            id=uuid.uuid4().hex[:12],
            chat_id=chat_id,
            content=content,
            range_start=range_start,
            range_end=range_end,
            original_tokens=int(original_tokens),
            summary_tokens=int(summary_tokens),
            created_at=datetime.now(timezone.utc).isoformat(),
        )

        with self._lock:
            records = self._read_all()
            records.append(summary.to_dict())
            self._write_all(records)

        logger.debug("Saved summary %s for chat=%s", summary.id, chat_id)
        return summary

    def get_latest(self, chat_id: str) -> Optional[Summary]:
        with self._lock:
            records = self._read_all()
        for record in reversed(records):
            if record.get("chat_id") == chat_id:
                return Summary.from_dict(record)
        return None

    def get_summaries(self, limit: int = 20) -> List[Summary]:
        with self._lock:
            records = self._read_all()
        if limit <= 0:
            return []
        return [Summary.from_dict(r) for r in reversed(records[-limit:])]

    def clear_summaries(self) -> None:
        with self._lock:
            self._write_all([])
        logger.info("Cleared all summaries in %s", self.path)

    def get_summary_stats(self) -> SummaryStats:
        with self._lock:
            records = self._read_all()
        return SummaryStats(
            total_count=len(records),
            total_original=sum(r.get("original_tokens", 0) for r in records),
            total_summary=sum(r.get("summary_tokens", 0) for r in records),
        )
