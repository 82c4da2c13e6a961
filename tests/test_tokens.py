"""
Token estimation tests
"""
import json

from context_core.context.messages import Message, Role
from context_core.context.tokens import (
    estimate_history_tokens,
    estimate_tokens,
    exceeds_threshold,
    history_size_bytes,
    serialize_history,
)

from conftest import make_messages


class TestEstimateTokens:

    def test_empty_text(self):
        assert estimate_tokens("") == 0

    def test_ascii_is_bytes_over_four(self):
        assert estimate_tokens("a" * 400) == 100
        assert estimate_tokens("abc") == 0

    def test_multibyte_counts_bytes_not_chars(self):
        # 3 bytes per char in UTF-8
        assert estimate_tokens("한" * 4) == 3

    def test_deterministic(self):
        text = "Hello, this is a test message for token counting."
        assert estimate_tokens(text) == estimate_tokens(text)


class TestSerializeHistory:

    def test_round_trips_as_json(self):
        messages = make_messages(3)
        data = json.loads(serialize_history(messages))
        assert [d["role"] for d in data] == ["user", "assistant", "user"]
        assert data[0]["content"][0]["kind"] == "text"

    def test_stable_across_calls(self):
        messages = make_messages(5)
        assert serialize_history(messages) == serialize_history(list(messages))

    def test_history_estimate_grows_with_size(self):
        small = estimate_history_tokens(make_messages(25, size=50))
        large = estimate_history_tokens(make_messages(25, size=500))
        assert large > small

    def test_scenario_b_estimate_is_between_thresholds(self):
        # 25 messages of ~500 chars: roughly 3-4k token-equivalents
        estimate = estimate_history_tokens(make_messages(25, size=500))
        assert 1000 < estimate < 50000

    def test_empty_history(self):
        assert serialize_history([]) == "[]"
        assert estimate_history_tokens([Message.text(Role.USER, "")]) > 0


class TestThreshold:

    def test_fraction_of_a_token_over_counts(self):
        # 3911 bytes is 977.75 tokens
        assert exceeds_threshold(3911, 977)
        assert estimate_tokens("a" * 3911) == 977

    def test_exactly_at_threshold_is_not_over(self):
        assert not exceeds_threshold(3908, 977)
        assert not exceeds_threshold(0, 0)

    def test_history_bytes_match_serialized_form(self):
        messages = make_messages(3)
        assert history_size_bytes(messages) == len(serialize_history(messages).encode("utf-8"))
        assert estimate_history_tokens(messages) == history_size_bytes(messages) // 4
