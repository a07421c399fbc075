"""
Adapter contract and the terminal transitions both adapters share.
"""

from typing import Any, Optional, Protocol

from convo_stream.dispatcher import CallbackDispatcher
from convo_stream.models.session import SessionState


class StreamAdapter(Protocol):
    state: SessionState
    dispatcher: CallbackDispatcher

    def reset(self) -> None:
        """Drop the accumulator. Called only when a new exchange starts."""
        ...

    def on_event(self, event_type: str, payload: Any) -> None: ...

    def on_error(self, message: str) -> None: ...

    def on_complete(self, result: Optional[Any] = None) -> None: ...


def notify_state(state: SessionState, dispatcher: CallbackDispatcher) -> None:
    dispatcher.notify_state_change(state.busy, state.loading, state.error)


def enter_streaming(state: SessionState, dispatcher: CallbackDispatcher) -> None:
    """First content of an exchange clears ``loading`` and tells the observer."""
    if state.loading:
        state.mark_streaming()
        notify_state(state, dispatcher)


def complete_exchange(state: SessionState, dispatcher: CallbackDispatcher) -> None:
    state.finish()
    notify_state(state, dispatcher)


def fail_exchange(state: SessionState, dispatcher: CallbackDispatcher, message: str) -> None:
    state.fail(message)
    dispatcher.notify_message_update(state.messages)
    notify_state(state, dispatcher)
