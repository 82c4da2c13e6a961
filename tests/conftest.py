"""
Shared fixtures for contextCore tests.
"""
import threading
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

from context_core.config.loader import CompactionConfig, GlobalConfig, PathsConfig, TierConfig
from context_core.context.messages import Message, Role
from context_core.context.window import create_window_assembler
from context_core.llm.summarizer import SummarizationResult, SummarizationService, Usage
from context_core.memory.history import JsonHistoryStore
from context_core.memory.summaries import JsonSummaryStore

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


def ts(i: int) -> str:
    return (BASE_TIME + timedelta(minutes=i)).isoformat()


def make_messages(count: int, size: int = 40, start: int = 0) -> List[Message]:
    """Alternating user/assistant turns with distinct, fixed-width texts."""
    messages = []
    for i in range(start, start + count):
        role = Role.USER if i % 2 == 0 else Role.ASSISTANT
        text = f"message-{i:03d} " + "x" * max(0, size - 12)
        messages.append(Message.text(role, text, timestamp=ts(i), source="telegram"))
    return messages


class FakeSummarizer(SummarizationService):
    """Records prompts; optionally fails, returns empty text, or blocks on a gate."""

    def __init__(self, text: str = "Summary of the earlier conversation.",
                 prompt_tokens: Optional[int] = 1200, completion_tokens: Optional[int] = 80,
                 error: Optional[Exception] = None, gate: Optional[threading.Event] = None):
        self.model = "fake-summarizer"
        self.text = text
        self.prompt_tokens = prompt_tokens
        self.completion_tokens = completion_tokens
        self.error = error
        self.gate = gate
        self.entered = threading.Event()
        self.calls: List[str] = []
        self._lock = threading.Lock()

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self.calls)

    def generate(self, prompt: str) -> SummarizationResult:
        with self._lock:
            self.calls.append(prompt)
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return SummarizationResult(
            text=self.text,
            usage=Usage(prompt_tokens=self.prompt_tokens, completion_tokens=self.completion_tokens),
            model=self.model,
        )


@pytest.fixture
def summarizer():
    return FakeSummarizer()


@pytest.fixture
def history_store(tmp_path):
    return JsonHistoryStore(str(tmp_path / "history"))


@pytest.fixture
def summary_store(tmp_path):
    return JsonSummaryStore(str(tmp_path / "summaries" / "summaries.json"))


def make_config(tmp_path, threshold: int = 50000) -> GlobalConfig:
    return GlobalConfig(
        paths=PathsConfig(
            history_dir=str(tmp_path / "history"),
            summaries_file=str(tmp_path / "summaries" / "summaries.json"),
            logs_dir=str(tmp_path / "logs"),
            apikeys_dir=str(tmp_path / "apikeys"),
        ),
        compaction=CompactionConfig(token_threshold=threshold),
        tiers=TierConfig(),
    )


@pytest.fixture
def build_assembler(tmp_path, history_store, summary_store):
    """Factory: assembler over the shared tmp stores with a chosen threshold/summarizer."""
    def _build(summarizer: SummarizationService, threshold: int = 50000):
        return create_window_assembler(
            make_config(tmp_path, threshold),
            summarizer=summarizer,
            history_store=history_store,
            summary_store=summary_store,
        )
    return _build


def seed(history_store: JsonHistoryStore, chat_id: str, messages: List[Message]) -> None:
    for m in messages:
        history_store.append(chat_id, m)
