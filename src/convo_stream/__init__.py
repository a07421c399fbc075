"""
convo-stream — streaming transcript engine for conversational AI backends.

Folds streamed deltas into a stable transcript and tracks the
idle/busy/loading/error state of each session.
"""

import logging

from convo_stream.dispatcher import CallbackDispatcher, SessionObserver
from convo_stream.errors import ConfigError, ConvoStreamError, MalformedEnvelope, TransportFailure
from convo_stream.merge import content_block_key, merge_content, merge_envelopes
from convo_stream.models.events import EnvelopeEvent, TextEvent
from convo_stream.models.message import Message, MessageKind
from convo_stream.models.session import SessionState, SessionStatus
from convo_stream.session import ChatSession, create_adapter

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "CallbackDispatcher",
    "SessionObserver",
    "ConvoStreamError",
    "TransportFailure",
    "MalformedEnvelope",
    "ConfigError",
    "content_block_key",
    "merge_content",
    "merge_envelopes",
    "EnvelopeEvent",
    "TextEvent",
    "Message",
    "MessageKind",
    "SessionState",
    "SessionStatus",
    "ChatSession",
    "create_adapter",
]
