"""
SUMMARIZER
==========

Summarization service used by the compactor.

``GeminiSummarizationService``
    One ``generate_content`` call against a Google Gemini model. Requires the
    ``google-genai`` package. The API key is read from ``GEMINI_API_KEY`` /
    ``GOOGLE_API_KEY`` or, failing that, from ``apikeys/api_gemini.key``.

``TimeoutSummarizationService``
    Wraps any service with a hard wall-clock timeout so a hung call cannot
    stall the synchronous compaction path. On expiry the daemon worker
    thread is abandoned; its eventual result is discarded and it does not
    block process exit.

Usage::

    service = TimeoutSummarizationService(
        GeminiSummarizationService(model="gemini-2.0-flash"),
        timeout_seconds=30,
    )
    result = service.generate("Compress the following conversation ...")
    print(result.text, result.usage.prompt_tokens)
"""

import logging
import os
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


# ============================================================================
# EXCEPTIONS
# ============================================================================

class SummarizationError(Exception):
    """The summarization call failed (network, quota, malformed response)."""


class SummarizationTimeout(SummarizationError):
    """The summarization call did not finish within its timeout."""

    def __init__(self, message: str, timeout_seconds: float = None):
        self.timeout_seconds = timeout_seconds
        super().__init__(message)


class EmptySummaryError(SummarizationError):
    """The service answered but produced no text."""


# ============================================================================
# RESULT TYPES
# ============================================================================

@dataclass
class Usage:
    """Billed token counts reported by the service. None when not reported."""
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
        }


@dataclass
class SummarizationResult:
    text: str
    usage: Usage = field(default_factory=Usage)
    model: Optional[str] = None


class SummarizationService(ABC):
    """Opaque text-in, text-out summarizer."""

    model: Optional[str] = None

    @abstractmethod
    def generate(self, prompt: str) -> SummarizationResult:
        """Run one summarization call. Raises SummarizationError on failure."""


# ============================================================================
# GEMINI
# ============================================================================

# Resolve apikeys dir relative to project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_API_KEY_PATH = _PROJECT_ROOT / "apikeys" / "api_gemini.key"


def _resolve_api_key(api_key: Optional[str], apikeys_dir: Optional[str]) -> str:
    if api_key:
        return api_key

    for var in ("GEMINI_API_KEY", "GOOGLE_API_KEY"):
        value = os.environ.get(var)
        if value:
            return value

    key_path = Path(apikeys_dir) / "api_gemini.key" if apikeys_dir else _API_KEY_PATH
    if key_path.exists():
        value = key_path.read_text().strip()
        if value:
            return value

    raise SummarizationError(
        f"Gemini API key not found. Set GEMINI_API_KEY or create {key_path}."
    )


class GeminiSummarizationService(SummarizationService):
    """Summarize with a Gemini model through ``google-genai``."""

    DEFAULT_MODEL = "gemini-2.0-flash"

    def __init__(
        self,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        apikeys_dir: Optional[str] = None,
        temperature: float = 0.3,
        client: Any = None,
    ):
        """
        Args:
            model: Gemini model name (default: WORKER_FLASH env or gemini-2.0-flash)
            api_key: Explicit API key; otherwise resolved lazily on first call
            apikeys_dir: Directory holding api_gemini.key
            temperature: Sampling temperature for summaries
            client: Pre-built ``genai.Client`` (tests, shared clients)
        """
        self.model = model or os.environ.get("WORKER_FLASH") or self.DEFAULT_MODEL
        self.temperature = temperature
        self._api_key = api_key
        self._apikeys_dir = apikeys_dir
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            try:
                from google import genai
            except ImportError as e:
                raise SummarizationError(
                    "google-genai package not installed. Run: pip install google-genai"
                ) from e
            self._client = genai.Client(api_key=_resolve_api_key(self._api_key, self._apikeys_dir))
        return self._client

    def generate(self, prompt: str) -> SummarizationResult:
        client = self._get_client()

        try:
            from google.genai import types
            config = types.GenerateContentConfig(temperature=self.temperature)
            response = client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            )
        except SummarizationError:
            raise
        except Exception as e:
            raise SummarizationError(f"Gemini summarization failed: {e}") from e

        try:
            text = response.text or ""
        except (AttributeError, ValueError) as e:
            raise SummarizationError(f"Malformed Gemini response: {e}") from e

        metadata = getattr(response, "usage_metadata", None)
        usage = Usage(
            prompt_tokens=getattr(metadata, "prompt_token_count", None),
            completion_tokens=getattr(metadata, "candidates_token_count", None),
        )
        return SummarizationResult(text=text.strip(), usage=usage, model=self.model)


# ============================================================================
# TIMEOUT WRAPPER
# ============================================================================

class TimeoutSummarizationService(SummarizationService):
    """
    Enforce a hard timeout on another summarization service.

    Each call runs on its own daemon thread. A call that overruns is left
    to finish in the background and its result is dropped; being a daemon,
    it never holds up interpreter exit.
    """

    DEFAULT_TIMEOUT_SECONDS = 30.0

    def __init__(self, inner: SummarizationService, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
        self.inner = inner
        self.timeout_seconds = timeout_seconds
        self.model = getattr(inner, "model", None)

    def generate(self, prompt: str) -> SummarizationResult:
        outcome: dict = {}

        def _run():
            try:
                outcome["result"] = self.inner.generate(prompt)
            except Exception as e:
                outcome["error"] = e

        worker = threading.Thread(target=_run, daemon=True, name="context-summarizer")
        worker.start()
        worker.join(self.timeout_seconds)

        if worker.is_alive():
            logger.warning("Summarization call abandoned after %ss", self.timeout_seconds)
            raise SummarizationTimeout(
                f"Summarization did not finish within {self.timeout_seconds}s",
                timeout_seconds=self.timeout_seconds,
            )
        if "error" in outcome:
            raise outcome["error"]
        if "result" not in outcome:
            raise SummarizationError("Summarization worker exited without a result")
        return outcome["result"]
