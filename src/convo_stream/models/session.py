"""
Session transcript and state machine.

The flags move together through three states:

- IDLE: not busy, not loading, no error
- ACTIVE: busy; loading until the first content arrives
- ERRORED: error set, not busy, not loading

Only ``begin_exchange`` leaves ERRORED.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, PrivateAttr

from convo_stream.models.message import Message, MessageKind


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SessionStatus(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    ERRORED = "errored"


class SessionState(BaseModel):
    messages: list[Message] = Field(default_factory=list)
    busy: bool = False
    loading: bool = False
    error: Optional[str] = None
    session_id: Optional[str] = None
    last_modified: datetime = Field(default_factory=_now)
    thinking: bool = False
    slash_commands: list[str] = Field(default_factory=list)

    # Index into ``messages`` of the assistant message still being streamed.
    _current: Optional[int] = PrivateAttr(default=None)

    @property
    def status(self) -> SessionStatus:
        if self.error is not None and not self.busy:
            return SessionStatus.ERRORED
        if self.busy:
            return SessionStatus.ACTIVE
        return SessionStatus.IDLE

    @property
    def current_message(self) -> Optional[Message]:
        if self._current is None:
            return None
        return self.messages[self._current]

    def snapshot(self) -> list[Message]:
        return list(self.messages)

    def begin_exchange(self) -> None:
        self.busy = True
        self.loading = True
        self.error = None
        self.thinking = False
        self._current = None

    def add_message(self, message: Message) -> Message:
        self.messages.append(message)
        return message

    def open_assistant_message(self, message: Message) -> Message:
        """Append ``message`` and make it the one later deltas update."""
        self.messages.append(message)
        self._current = len(self.messages) - 1
        return message

    def mark_streaming(self) -> None:
        self.loading = False

    def freeze_current(self) -> None:
        self._current = None

    def finish(self) -> None:
        self.busy = False
        self.loading = False
        self.thinking = False
        self.freeze_current()
        self.touch()

    def fail(self, error: str) -> Message:
        message = self.add_message(Message(kind=MessageKind.ERROR, text=error))
        self.error = error
        self.busy = False
        self.loading = False
        self.thinking = False
        self.freeze_current()
        return message

    def touch(self) -> None:
        self.last_modified = _now()
