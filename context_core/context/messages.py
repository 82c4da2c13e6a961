"""
CONTEXT_MESSAGES
================

Message and context-entry types.

A Message is one immutable chat turn produced by the chat pipeline. Its
content is a sequence of parts, each a tagged variant:

    text               TextPart(text)
    media              MediaPart(mime_type, data)
    function_call      FunctionCallPart(name, args)
    function_response  FunctionResponsePart(name, response)

The window assembler returns ContextEntry values: a DigestEntry for the
latest summary (at most one, always first) followed by MessageEntry values
for the raw tail. Serialized entries carry ``kind`` so downstream consumers
can tell the digest apart from a genuine turn.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


# ============================================================================
# CONTENT PARTS
# ============================================================================

@dataclass(frozen=True)
class TextPart:
    text: str
    kind: ClassVar[str] = "text"

    def render(self) -> str:
        return self.text

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "text": self.text}


@dataclass(frozen=True)
class MediaPart:
    """Inline media or a reference to it. ``data`` is base64 or a URI."""
    mime_type: str
    data: str = ""
    kind: ClassVar[str] = "media"

    def render(self) -> str:
        return f"[media: {self.mime_type}]"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "mime_type": self.mime_type, "data": self.data}


@dataclass(frozen=True)
class FunctionCallPart:
    name: str
    args: Dict[str, Any] = field(default_factory=dict)
    kind: ClassVar[str] = "function_call"

    def render(self) -> str:
        return f"[function call: {self.name}({json.dumps(self.args, sort_keys=True, default=str)})]"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "name": self.name, "args": self.args}


@dataclass(frozen=True)
class FunctionResponsePart:
    name: str
    response: Dict[str, Any] = field(default_factory=dict)
    kind: ClassVar[str] = "function_response"

    def render(self) -> str:
        return f"[function response: {self.name}]"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "name": self.name, "response": self.response}


Part = Union[TextPart, MediaPart, FunctionCallPart, FunctionResponsePart]


def part_from_dict(data: Dict[str, Any]) -> Part:
    """Build a content part from its serialized form. Raises ValueError on unknown kinds."""
    kind = data.get("kind")
    if kind == TextPart.kind:
        return TextPart(text=data.get("text", ""))
    if kind == MediaPart.kind:
        return MediaPart(mime_type=data.get("mime_type", "application/octet-stream"),
                         data=data.get("data", ""))
    if kind == FunctionCallPart.kind:
        return FunctionCallPart(name=data.get("name", ""), args=data.get("args") or {})
    if kind == FunctionResponsePart.kind:
        return FunctionResponsePart(name=data.get("name", ""), response=data.get("response") or {})
    raise ValueError(f"Unknown content part kind: {kind!r}")


# ============================================================================
# MESSAGE
# ============================================================================

@dataclass(frozen=True)
class Message:
    """One chat turn. Never mutated by contextCore."""
    role: Role
    content: Tuple[Part, ...]
    timestamp: Optional[str] = None
    source: str = "system"

    @classmethod
    def text(cls, role: Union[str, Role], text: str,
             timestamp: Optional[str] = None, source: str = "system") -> "Message":
        """Convenience constructor for a single text part."""
        return cls(role=Role(role), content=(TextPart(text),), timestamp=timestamp, source=source)

    @property
    def text_content(self) -> str:
        return " ".join(p.render() for p in self.content)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "role": self.role.value,
            "content": [p.to_dict() for p in self.content],
            "timestamp": self.timestamp,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        content = data.get("content", [])
        if isinstance(content, str):
            parts: Tuple[Part, ...] = (TextPart(content),)
        else:
            parts = tuple(part_from_dict(p) for p in content)
        return cls(
            role=Role(data.get("role", "user")),
            content=parts,
            timestamp=data.get("timestamp"),
            source=data.get("source", "system"),
        )


# ============================================================================
# CONTEXT ENTRIES
# ============================================================================

DIGEST_HEADER = (
    "IMPORTANT CONTEXT SUMMARY:\n"
    "The following is a compressed summary of our earlier conversation. "
    "Use it to maintain continuity.\n"
    "--------------------------------------------------"
)
DIGEST_FOOTER = "--------------------------------------------------"


@dataclass(frozen=True)
class DigestEntry:
    """Synthetic entry carrying the latest summary of a chat."""
    summary_id: str
    content: str
    range_start: str
    range_end: str
    kind: ClassVar[str] = "digest"
    is_digest: ClassVar[bool] = True

    @property
    def role(self) -> Role:
        # Injected as a user turn so the consuming model attends to it.
        return Role.USER

    @property
    def text(self) -> str:
        return f"{DIGEST_HEADER}\n{self.content}\n{DIGEST_FOOTER}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "role": self.role.value,
            "text": self.text,
            "summary_id": self.summary_id,
            "range_start": self.range_start,
            "range_end": self.range_end,
        }


@dataclass(frozen=True)
class MessageEntry:
    """A genuine conversational turn from the raw tail."""
    message: Message
    kind: ClassVar[str] = "message"
    is_digest: ClassVar[bool] = False

    @property
    def role(self) -> Role:
        return self.message.role

    @property
    def text(self) -> str:
        return self.message.text_content

    def to_dict(self) -> Dict[str, Any]:
        data = {"kind": self.kind}
        data.update(self.message.to_dict())
        return data


ContextEntry = Union[DigestEntry, MessageEntry]


def window_to_dicts(window: List[ContextEntry]) -> List[Dict[str, Any]]:
    return [entry.to_dict() for entry in window]
