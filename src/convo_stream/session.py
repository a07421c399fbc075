"""
Chat session: one transcript, one dispatcher, one adapter.

A session processes its events strictly in order from a single owner.
Sessions share nothing, so several may run side by side.
"""

import asyncio
import logging
from typing import Any, AsyncIterable, Optional

from convo_stream.adapters.base import StreamAdapter, notify_state
from convo_stream.adapters.envelope import EnvelopeStreamAdapter
from convo_stream.adapters.text import TextStreamAdapter
from convo_stream.dispatcher import CallbackDispatcher, SessionObserver
from convo_stream.errors import TransportFailure
from convo_stream.models.message import Message, MessageKind
from convo_stream.models.session import SessionState

logger = logging.getLogger(__name__)

PROTOCOLS = ("text", "envelope")


def create_adapter(protocol: str, state: SessionState, dispatcher: CallbackDispatcher) -> StreamAdapter:
    if protocol == "text":
        return TextStreamAdapter(state, dispatcher)
    if protocol == "envelope":
        return EnvelopeStreamAdapter(state, dispatcher)
    raise ValueError(f"Unknown protocol {protocol!r}, expected one of {', '.join(PROTOCOLS)}")


class ChatSession:
    def __init__(
        self,
        protocol: str = "envelope",
        observer: Optional[SessionObserver] = None,
        session_id: Optional[str] = None,
    ):
        self.state = SessionState(session_id=session_id)
        self.dispatcher = CallbackDispatcher(observer)
        self.adapter = create_adapter(protocol, self.state, self.dispatcher)
        self.protocol = protocol

    @property
    def messages(self) -> list[Message]:
        return self.state.snapshot()

    def attach(self, observer: Optional[SessionObserver]) -> None:
        self.dispatcher.attach(observer)

    def detach(self) -> None:
        """Stop notifying. Events keep updating state but reach no one."""
        self.dispatcher.detach()

    def begin_exchange(self, prompt: Optional[str] = None) -> None:
        """Enter ACTIVE: clear any error and start a fresh assistant message."""
        logger.debug("Starting exchange (session=%s)", self.state.session_id)
        self.state.begin_exchange()
        self.adapter.reset()
        if prompt:
            self.state.add_message(Message(kind=MessageKind.USER, text=prompt))
            self.dispatcher.notify_message_update(self.state.messages)
        notify_state(self.state, self.dispatcher)

    def on_event(self, event_type: str, payload: Any) -> None:
        self.adapter.on_event(event_type, payload)

    def on_error(self, message: str) -> None:
        self.adapter.on_error(message)

    def on_complete(self, result: Optional[Any] = None) -> None:
        self.adapter.on_complete(result)

    async def run(
        self,
        source: AsyncIterable[tuple[str, Any]],
        prompt: Optional[str] = None,
        *,
        start: bool = True,
    ) -> SessionState:
        """Drain ``source`` into the adapter as one exchange.

        The exchange completes when the source is exhausted. An exception from
        the source becomes a TransportFailure on the transcript instead of
        propagating. Cancellation still propagates, after the busy and
        loading flags are cleared.
        """
        if start:
            self.begin_exchange(prompt)
        try:
            async for event_type, payload in source:
                self.adapter.on_event(event_type, payload)
        except asyncio.CancelledError:
            self.state.finish()
            notify_state(self.state, self.dispatcher)
            raise
        except Exception as e:
            failure = TransportFailure(str(e) or type(e).__name__)
            logger.warning("Event source failed: %s", failure)
            self.adapter.on_error(str(failure))
        else:
            if self.state.busy:
                self.adapter.on_complete(None)
        return self.state

