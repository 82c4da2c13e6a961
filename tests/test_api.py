"""
REST API tests
"""
import pytest
from fastapi.testclient import TestClient

from context_core.api.app import API_VERSION, create_app

from conftest import make_messages, seed, ts


@pytest.fixture
def client_for(build_assembler, summarizer):
    def _client(threshold=50000):
        return TestClient(create_app(build_assembler(summarizer, threshold=threshold)))
    return _client


class TestSystem:

    def test_health(self, client_for):
        response = client_for().get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["version"] == API_VERSION

    def test_version(self, client_for):
        assert client_for().get("/version").json()["name"] == "contextCore"


class TestContext:

    def test_context_without_digest(self, client_for, history_store):
        seed(history_store, "chat-1", make_messages(15))
        response = client_for().get("/chats/chat-1/context")

        assert response.status_code == 200
        body = response.json()
        assert body["tier"] == "FAST"
        assert body["has_digest"] is False
        assert body["tail_length"] == 15
        assert body["entries"][0]["kind"] == "message"

    def test_context_compacts_and_returns_digest(self, client_for, history_store, summarizer):
        seed(history_store, "chat-1", make_messages(25, size=500))
        response = client_for(threshold=1000).get("/chats/chat-1/context", params={"tier": "fast"})

        body = response.json()
        assert body["has_digest"] is True
        assert body["tail_length"] == 20
        assert body["entries"][0]["kind"] == "digest"
        assert summarizer.text in body["entries"][0]["text"]

    def test_unknown_tier_is_400(self, client_for):
        response = client_for().get("/chats/chat-1/context", params={"tier": "HUGE"})
        assert response.status_code == 400

    def test_state(self, client_for, summary_store):
        client = client_for()
        assert client.get("/chats/chat-1/state").json() == {"chat_id": "chat-1", "state": "none"}
        summary_store.save_summary("chat-1", "s", ts(0), ts(1), 10, 1)
        assert client.get("/chats/chat-1/state").json()["state"] == "compacted"


class TestSummaries:

    def test_stats_and_list(self, client_for, summary_store):
        summary_store.save_summary("chat-1", "one", ts(0), ts(1), 300, 30)
        summary_store.save_summary("chat-2", "two", ts(0), ts(1), 200, 20)
        client = client_for()

        assert client.get("/stats").json() == {"total_summaries": 2, "estimated_tokens_saved": 450}

        listed = client.get("/summaries", params={"limit": 1}).json()
        assert len(listed) == 1
        assert listed[0]["content"] == "two"

    def test_limit_validation(self, client_for):
        assert client_for().get("/summaries", params={"limit": 0}).status_code == 422

    def test_clear(self, client_for, summary_store):
        summary_store.save_summary("chat-1", "one", ts(0), ts(1), 300, 30)
        client = client_for()

        response = client.delete("/summaries")

        assert response.json() == {"status": "cleared"}
        assert client.get("/stats").json()["total_summaries"] == 0
