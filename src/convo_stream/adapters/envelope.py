"""
Structured protocol adapter.

Each ``assistant`` event carries a full envelope::

    {"type": "assistant", "session_id": ...,
     "message": {"id": ..., "stop_reason": ..., "usage": {...},
                 "content": [{"type": "tool_use", "id": "toolu_1", ...}, ...]}}

Successive envelopes may repeat blocks seen earlier with revised fields, for
example a tool invocation later reported with its result. They are folded
together with merge_envelopes so an earlier tool step is never wiped out by
a later delta. Payloads may be dicts or JSON text.
"""

import json
import logging
from typing import Any, Mapping, Optional

from convo_stream.adapters.base import complete_exchange, enter_streaming, fail_exchange
from convo_stream.dispatcher import CallbackDispatcher
from convo_stream.errors import MalformedEnvelope
from convo_stream.merge import merge_envelopes
from convo_stream.models.events import SYSTEM_INIT_SUBTYPE, EnvelopeEvent
from convo_stream.models.message import Message, MessageKind, flatten_text
from convo_stream.models.session import SessionState

logger = logging.getLogger(__name__)


def decode_envelope(payload: Any) -> dict[str, Any]:
    """Accept a mapping or JSON object text. Anything else is malformed."""
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except ValueError as e:
            raise MalformedEnvelope(f"Envelope is not valid JSON: {e}")
    if not isinstance(payload, Mapping):
        raise MalformedEnvelope(f"Envelope must be an object, got {type(payload).__name__}")
    return dict(payload)


def _result_fields(payload: Any) -> Optional[dict[str, Any]]:
    """Completion payloads are opaque unless they hold a result object."""
    if isinstance(payload, Mapping):
        return dict(payload)
    if isinstance(payload, (str, bytes)):
        try:
            return decode_envelope(payload)
        except MalformedEnvelope:
            return None
    return None


class EnvelopeStreamAdapter:
    def __init__(self, state: SessionState, dispatcher: CallbackDispatcher):
        self.state = state
        self.dispatcher = dispatcher
        self._envelope: Optional[dict[str, Any]] = None

    def reset(self) -> None:
        self._envelope = None

    def on_event(self, event_type: str, payload: Any) -> None:
        try:
            if event_type == EnvelopeEvent.ASSISTANT:
                self._handle_assistant(decode_envelope(payload))
            elif event_type == EnvelopeEvent.SYSTEM:
                self._handle_system(decode_envelope(payload))
            elif event_type == EnvelopeEvent.THINKING:
                self._handle_thinking(payload)
            elif event_type == EnvelopeEvent.SESSION_ID:
                self._handle_session_id(payload)
            elif event_type in (EnvelopeEvent.MESSAGE_END, EnvelopeEvent.RESULT):
                self._handle_end(payload)
            else:
                logger.debug("Ignoring unknown event type %r", event_type)
        except MalformedEnvelope as e:
            self.on_error(str(e))

    def on_error(self, message: str) -> None:
        self._envelope = None
        fail_exchange(self.state, self.dispatcher, message)

    def on_complete(self, result: Optional[Any] = None) -> None:
        self._envelope = None
        complete_exchange(self.state, self.dispatcher)

    def _handle_assistant(self, envelope: dict[str, Any]) -> None:
        merged = merge_envelopes(self._envelope, envelope)
        self._envelope = merged
        enter_streaming(self.state, self.dispatcher)

        current = self.state.current_message
        if current is None:
            self.state.open_assistant_message(Message.from_envelope(MessageKind.ASSISTANT, merged))
        else:
            # Replace, never mutate: readers may still hold the previous tree.
            current.envelope = merged
            current.text = flatten_text(merged)
        self.dispatcher.notify_message_update(self.state.messages)
        self._report_session_id(envelope.get("session_id"))

    def _handle_system(self, envelope: dict[str, Any]) -> None:
        if envelope.get("subtype") != SYSTEM_INIT_SUBTYPE:
            logger.debug("Ignoring system envelope subtype %r", envelope.get("subtype"))
            return
        self._report_session_id(envelope.get("session_id"))
        commands = envelope.get("slash_commands")
        if isinstance(commands, list):
            self.state.slash_commands = [str(c) for c in commands]
            self.dispatcher.notify_slash_commands_received(self.state.slash_commands)

    def _handle_thinking(self, payload: Any) -> None:
        if isinstance(payload, Mapping):
            payload = payload.get("thinking")
        is_thinking = bool(payload)
        if is_thinking != self.state.thinking:
            self.state.thinking = is_thinking
            self.dispatcher.notify_thinking_status_changed(is_thinking)

    def _handle_session_id(self, payload: Any) -> None:
        if isinstance(payload, Mapping):
            payload = payload.get("session_id")
        self._report_session_id(payload)

    def _handle_end(self, payload: Any) -> None:
        result = _result_fields(payload)
        if result is not None:
            self._report_session_id(result.get("session_id"))
            if result.get("is_error"):
                self.on_error(str(result.get("result") or "Backend reported an error"))
                return
        self.on_complete(payload)

    def _report_session_id(self, session_id: Any) -> None:
        if not session_id or str(session_id) == self.state.session_id:
            return
        self.state.session_id = str(session_id)
        self.dispatcher.notify_session_id_received(self.state.session_id)
