"""
Notification dispatcher with a single replaceable observer slot.

Every notify_* call reads the slot once. If nothing is attached, or the
observer was detached a moment ago, the call does nothing. Observers may
implement any subset of the SessionObserver callbacks.
"""

import logging
from typing import Any, Optional, Protocol

from convo_stream.models.message import Message

logger = logging.getLogger(__name__)


class SessionObserver(Protocol):
    def on_message_update(self, messages: list[Message]) -> None: ...

    def on_state_change(self, busy: bool, loading: bool, error: Optional[str]) -> None: ...

    def on_session_id_received(self, session_id: str) -> None: ...

    def on_thinking_status_changed(self, is_thinking: bool) -> None: ...

    def on_slash_commands_received(self, commands: list[str]) -> None: ...


class CallbackDispatcher:
    def __init__(self, observer: Optional[SessionObserver] = None):
        self._observer = observer

    @property
    def attached(self) -> bool:
        return self._observer is not None

    def attach(self, observer: Optional[SessionObserver]) -> None:
        """Attach an observer, replacing any current one. None detaches."""
        self._observer = observer

    def detach(self) -> None:
        self._observer = None

    def _deliver(self, callback: str, *args: Any) -> None:
        observer = self._observer
        if observer is None:
            return
        handler = getattr(observer, callback, None)
        if handler is None:
            return
        try:
            handler(*args)
        except Exception:
            logger.exception("Observer callback %s failed", callback)

    def notify_message_update(self, messages: list[Message]) -> None:
        self._deliver("on_message_update", list(messages))

    def notify_state_change(self, busy: bool, loading: bool, error: Optional[str]) -> None:
        self._deliver("on_state_change", busy, loading, error)

    def notify_session_id_received(self, session_id: str) -> None:
        self._deliver("on_session_id_received", session_id)

    def notify_thinking_status_changed(self, is_thinking: bool) -> None:
        self._deliver("on_thinking_status_changed", is_thinking)

    def notify_slash_commands_received(self, commands: list[str]) -> None:
        self._deliver("on_slash_commands_received", list(commands))
