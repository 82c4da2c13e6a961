"""
Summarization service tests
"""
import threading
from types import SimpleNamespace

import pytest

from context_core.llm.summarizer import (
    GeminiSummarizationService,
    SummarizationError,
    SummarizationResult,
    SummarizationTimeout,
    TimeoutSummarizationService,
    Usage,
    _resolve_api_key,
)

from conftest import FakeSummarizer


def fake_client(text="A summary.", prompt_tokens=900, completion_tokens=60, error=None):
    calls = []

    def generate_content(model, contents, config=None):
        calls.append({"model": model, "contents": contents, "config": config})
        if error is not None:
            raise error
        return SimpleNamespace(
            text=text,
            usage_metadata=SimpleNamespace(
                prompt_token_count=prompt_tokens,
                candidates_token_count=completion_tokens,
            ),
        )

    client = SimpleNamespace(models=SimpleNamespace(generate_content=generate_content))
    return client, calls


class TestGeminiSummarizationService:

    def test_generate_reads_text_and_usage(self):
        client, calls = fake_client()
        service = GeminiSummarizationService(model="gemini-test", client=client)

        result = service.generate("Compress this")

        assert result.text == "A summary."
        assert result.usage == Usage(prompt_tokens=900, completion_tokens=60)
        assert result.model == "gemini-test"
        assert calls[0]["model"] == "gemini-test"
        assert calls[0]["contents"] == "Compress this"

    def test_missing_usage_metadata(self):
        client, _ = fake_client(prompt_tokens=None, completion_tokens=None)
        result = GeminiSummarizationService(client=client).generate("x")
        assert result.usage.prompt_tokens is None
        assert result.usage.completion_tokens is None

    def test_none_text_becomes_empty(self):
        client, _ = fake_client(text=None)
        assert GeminiSummarizationService(client=client).generate("x").text == ""

    def test_upstream_error_is_wrapped(self):
        client, _ = fake_client(error=RuntimeError("429 quota exceeded"))
        with pytest.raises(SummarizationError, match="quota"):
            GeminiSummarizationService(client=client).generate("x")

    def test_model_from_environment(self, monkeypatch):
        monkeypatch.setenv("WORKER_FLASH", "gemini-env-model")
        assert GeminiSummarizationService(client=object()).model == "gemini-env-model"

    def test_default_model(self, monkeypatch):
        monkeypatch.delenv("WORKER_FLASH", raising=False)
        assert GeminiSummarizationService(client=object()).model == "gemini-2.0-flash"


class TestApiKeyResolution:

    def test_explicit_key_wins(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "from-env")
        assert _resolve_api_key("explicit", None) == "explicit"

    def test_env_var(self, monkeypatch, tmp_path):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.setenv("GOOGLE_API_KEY", "google-key")
        assert _resolve_api_key(None, str(tmp_path)) == "google-key"

    def test_key_file(self, monkeypatch, tmp_path):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        (tmp_path / "api_gemini.key").write_text("file-key\n")
        assert _resolve_api_key(None, str(tmp_path)) == "file-key"

    def test_missing_key_raises(self, monkeypatch, tmp_path):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        with pytest.raises(SummarizationError, match="API key"):
            _resolve_api_key(None, str(tmp_path))


class TestTimeoutSummarizationService:

    def test_passes_through_result(self):
        inner = FakeSummarizer(text="fast answer")
        service = TimeoutSummarizationService(inner, timeout_seconds=5)
        result = service.generate("prompt")
        assert isinstance(result, SummarizationResult)
        assert result.text == "fast answer"
        assert service.model == inner.model

    def test_hung_call_times_out(self):
        gate = threading.Event()
        service = TimeoutSummarizationService(FakeSummarizer(gate=gate), timeout_seconds=0.05)
        try:
            with pytest.raises(SummarizationTimeout) as exc_info:
                service.generate("prompt")
        finally:
            gate.set()
        assert exc_info.value.timeout_seconds == 0.05
        assert isinstance(exc_info.value, SummarizationError)

    def test_abandoned_worker_does_not_block_exit(self):
        gate = threading.Event()
        workers = []

        class HungSummarizer(FakeSummarizer):
            def generate(self, prompt):
                workers.append(threading.current_thread())
                return super().generate(prompt)

        service = TimeoutSummarizationService(HungSummarizer(gate=gate), timeout_seconds=0.05)
        try:
            with pytest.raises(SummarizationTimeout):
                service.generate("prompt")
            assert service.inner.entered.wait(timeout=5)
            assert workers[0].daemon
            assert workers[0].is_alive()
        finally:
            gate.set()

    def test_inner_errors_propagate(self):
        service = TimeoutSummarizationService(FakeSummarizer(error=SummarizationError("boom")))
        with pytest.raises(SummarizationError, match="boom"):
            service.generate("prompt")
