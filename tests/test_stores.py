"""
Summary and history store tests
"""
import threading

import pytest

from context_core.context.messages import Message
from context_core.memory.history import JsonHistoryStore
from context_core.memory.summaries import (
    JsonSummaryStore,
    SummaryStoreError,
    parse_timestamp,
    timestamps_ordered,
)

from conftest import make_messages, seed, ts


class TestJsonSummaryStore:

    def test_empty_store(self, summary_store):
        assert summary_store.get_latest("chat-1") is None
        assert summary_store.get_summaries() == []
        stats = summary_store.get_summary_stats()
        assert (stats.total_count, stats.total_original, stats.total_summary) == (0, 0, 0)

    def test_save_and_get_latest(self, summary_store):
        first = summary_store.save_summary("chat-1", "one", ts(0), ts(5), 100, 10)
        second = summary_store.save_summary("chat-1", "two", ts(6), ts(9), 200, 20)
        summary_store.save_summary("chat-2", "other", ts(0), ts(1), 50, 5)

        latest = summary_store.get_latest("chat-1")
        assert latest == second
        assert latest.id != first.id
        assert summary_store.get_latest("chat-2").content == "other"

    def test_append_only_retains_all_for_stats(self, summary_store):
        summary_store.save_summary("chat-1", "one", ts(0), ts(5), 100, 10)
        summary_store.save_summary("chat-1", "two", ts(6), ts(9), 200, 20)
        stats = summary_store.get_summary_stats()
        assert stats.total_count == 2
        assert stats.total_original == 300
        assert stats.total_summary == 30

    def test_get_summaries_newest_first_with_limit(self, summary_store):
        for i in range(5):
            summary_store.save_summary("chat-1", f"s{i}", ts(i), ts(i), i, 0)
        contents = [s.content for s in summary_store.get_summaries(3)]
        assert contents == ["s4", "s3", "s2"]

    def test_clear_summaries(self, summary_store):
        summary_store.save_summary("chat-1", "one", ts(0), ts(5), 100, 10)
        summary_store.clear_summaries()
        assert summary_store.get_latest("chat-1") is None
        assert summary_store.get_summary_stats().total_count == 0

    def test_rejects_inverted_range(self, summary_store):
        with pytest.raises(ValueError):
            summary_store.save_summary("chat-1", "bad", ts(9), ts(1), 0, 0)
        assert summary_store.get_latest("chat-1") is None

    def test_rejects_negative_tokens(self, summary_store):
        with pytest.raises(ValueError):
            summary_store.save_summary("chat-1", "bad", ts(0), ts(1), -1, 0)

    def test_persists_across_instances(self, tmp_path):
        path = str(tmp_path / "s.json")
        JsonSummaryStore(path).save_summary("chat-1", "kept", ts(0), ts(1), 10, 1)
        assert JsonSummaryStore(path).get_latest("chat-1").content == "kept"

    def test_corrupt_file_raises_store_error(self, tmp_path):
        path = tmp_path / "s.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SummaryStoreError):
            JsonSummaryStore(str(path)).get_latest("chat-1")

    def test_concurrent_appends_all_land(self, summary_store):
        def worker(n):
            summary_store.save_summary("chat-1", f"s{n}", ts(0), ts(1), 1, 1)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert summary_store.get_summary_stats().total_count == 10


class TestTimestamps:

    def test_parse_z_suffix(self):
        assert parse_timestamp("2026-01-01T00:00:00Z") == parse_timestamp("2026-01-01T00:00:00+00:00")

    def test_unparsable(self):
        assert parse_timestamp("yesterday") is None

    def test_ordering_across_offsets(self):
        # 01:00+01:00 is 00:00 UTC, before 00:30Z
        assert timestamps_ordered("2026-01-01T01:00:00+01:00", "2026-01-01T00:30:00Z")
        assert timestamps_ordered(ts(1), ts(1))
        assert not timestamps_ordered(ts(2), ts(1))


class TestJsonHistoryStore:

    def test_get_recent_is_chronological_tail(self, history_store):
        seed(history_store, "chat-1", make_messages(30))
        recent = history_store.get_recent("chat-1", 20)
        assert len(recent) == 20
        assert recent[0].text_content.startswith("message-010")
        assert recent[-1].text_content.startswith("message-029")

    def test_short_history_returns_everything(self, history_store):
        seed(history_store, "chat-1", make_messages(5))
        assert len(history_store.get_recent("chat-1", 20)) == 5

    def test_unknown_chat(self, history_store):
        assert history_store.get_recent("nobody", 20) == []
        assert history_store.count("nobody") == 0

    def test_chat_ids_are_isolated_and_sanitized(self, history_store):
        seed(history_store, "user/../1", make_messages(3))
        seed(history_store, "chat-2", make_messages(1))
        assert history_store.count("user/../1") == 3
        assert history_store.count("chat-2") == 1
        assert all(p.parent == history_store.history_dir for p in history_store.history_dir.iterdir())

    def test_round_trips_messages(self, history_store):
        msg = Message.text("assistant", "persisted", timestamp=ts(0), source="slack")
        history_store.append("chat-1", msg)
        assert history_store.get_recent("chat-1", 1) == [msg]

    def test_clear(self, history_store):
        seed(history_store, "chat-1", make_messages(3))
        history_store.clear("chat-1")
        assert history_store.count("chat-1") == 0

    def test_zero_limit(self, tmp_path):
        store = JsonHistoryStore(str(tmp_path / "h"))
        seed(store, "chat-1", make_messages(3))
        assert store.get_recent("chat-1", 0) == []
