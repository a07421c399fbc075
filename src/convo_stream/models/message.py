"""
Transcript message model.
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel


class MessageKind(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    ERROR = "error"
    SYSTEM = "system"


def flatten_text(envelope: Optional[dict[str, Any]]) -> str:
    """Concatenate the ``text`` blocks of an envelope's message content."""
    if not isinstance(envelope, dict):
        return ""
    body = envelope.get("message")
    if not isinstance(body, dict):
        return ""
    content = body.get("content")
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return ""
    parts = []
    for block in content:
        if isinstance(block, dict) and block.get("type") == "text" and isinstance(block.get("text"), str):
            parts.append(block["text"])
    return "".join(parts)


class Message(BaseModel):
    kind: MessageKind
    text: str = ""
    envelope: Optional[dict[str, Any]] = None  # structured protocol only

    @classmethod
    def from_envelope(cls, kind: MessageKind, envelope: dict[str, Any]) -> "Message":
        return cls(kind=kind, text=flatten_text(envelope), envelope=envelope)

    def content_blocks(self) -> list[Any]:
        if not self.envelope:
            return []
        body = self.envelope.get("message")
        if isinstance(body, dict) and isinstance(body.get("content"), list):
            return body["content"]
        return []
