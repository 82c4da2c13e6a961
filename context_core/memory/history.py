"""
HISTORY_STORE
=============

Raw chat history, owned by the chat pipeline. contextCore only reads it
(``get_recent``); ``append`` and ``clear`` exist for the pipeline itself.

Storage (JsonHistoryStore): ``data/contextCore/HISTORY/chat_{chat_id}.json``

Chat JSON contains:
- ``chat_id``, ``created_at``, ``updated_at``
- ``messages``: array of serialized Messages, oldest first
"""

import json
import logging
import os
import re
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List

from ..context.messages import Message, utc_now_iso

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class HistoryStore(ABC):
    """Read access to a chat's raw turns."""

    @abstractmethod
    def get_recent(self, chat_id: str, limit: int) -> List[Message]:
        """Last ``limit`` messages of a chat, oldest first."""


class JsonHistoryStore(HistoryStore):
    """One JSON file per chat."""

    def __init__(self, history_dir: str):
        self.history_dir = Path(history_dir)
        self.history_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

    def _chat_path(self, chat_id: str) -> Path:
        return self.history_dir / f"chat_{_UNSAFE_CHARS.sub('_', chat_id)}.json"

    def _load(self, chat_id: str) -> Dict[str, Any]:
        path = self._chat_path(chat_id)
        if not path.exists():
            return {"chat_id": chat_id, "created_at": None, "updated_at": None, "messages": []}
        return json.loads(path.read_text(encoding="utf-8"))

    def _save(self, chat_id: str, data: Dict[str, Any]) -> None:
        path = self._chat_path(chat_id)
        fd, tmp_path = tempfile.mkstemp(dir=self.history_dir, prefix=".chat_", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def append(self, chat_id: str, message: Message) -> None:
        with self._lock:
            data = self._load(chat_id)
            now = utc_now_iso()
            if not data.get("created_at"):
                data["created_at"] = now
            data["updated_at"] = now
            data["messages"].append(message.to_dict())
            self._save(chat_id, data)

    def get_recent(self, chat_id: str, limit: int) -> List[Message]:
        if limit <= 0:
            return []
        with self._lock:
            data = self._load(chat_id)
        return [Message.from_dict(m) for m in data["messages"][-limit:]]

    def count(self, chat_id: str) -> int:
        with self._lock:
            return len(self._load(chat_id)["messages"])

    def clear(self, chat_id: str) -> None:
        with self._lock:
            path = self._chat_path(chat_id)
            if path.exists():
                path.unlink()
        logger.info("Cleared history for chat=%s", chat_id)
