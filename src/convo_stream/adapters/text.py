"""
Simple-text protocol adapter.

The backend sends ``content_delta`` events whose payload is a text fragment,
then ``message_end``. Fragments are joined into one growing string that
replaces the current assistant message's text on every delta.
"""

import logging
from typing import Any, Optional

from convo_stream.adapters.base import complete_exchange, enter_streaming, fail_exchange
from convo_stream.dispatcher import CallbackDispatcher
from convo_stream.errors import MalformedEnvelope
from convo_stream.models.events import TextEvent
from convo_stream.models.message import Message, MessageKind
from convo_stream.models.session import SessionState

logger = logging.getLogger(__name__)


class TextStreamAdapter:
    def __init__(self, state: SessionState, dispatcher: CallbackDispatcher):
        self.state = state
        self.dispatcher = dispatcher
        self._parts: list[str] = []

    def reset(self) -> None:
        self._parts = []

    def on_event(self, event_type: str, payload: Any) -> None:
        try:
            if event_type == TextEvent.CONTENT_DELTA:
                self._handle_delta(payload)
            elif event_type == TextEvent.MESSAGE_END:
                self._handle_message_end()
            else:
                logger.debug("Ignoring unknown event type %r", event_type)
        except MalformedEnvelope as e:
            self.on_error(str(e))

    def on_error(self, message: str) -> None:
        self._parts = []
        fail_exchange(self.state, self.dispatcher, message)

    def on_complete(self, result: Optional[Any] = None) -> None:
        self._parts = []
        complete_exchange(self.state, self.dispatcher)

    def _handle_delta(self, payload: Any) -> None:
        if payload is None:
            payload = ""
        if not isinstance(payload, str):
            raise MalformedEnvelope(f"content_delta payload must be text, got {type(payload).__name__}")

        enter_streaming(self.state, self.dispatcher)
        self._parts.append(payload)
        text = "".join(self._parts)

        current = self.state.current_message
        if current is None:
            self.state.open_assistant_message(Message(kind=MessageKind.ASSISTANT, text=text))
        else:
            current.text = text
        self.dispatcher.notify_message_update(self.state.messages)

    def _handle_message_end(self) -> None:
        logger.debug("Text stream message end received")
        self._parts = []
        complete_exchange(self.state, self.dispatcher)
