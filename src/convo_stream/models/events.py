"""
Event types consumed by the protocol adapters.
"""


class TextEvent:
    """Simple-text protocol: bare text fragments."""
    CONTENT_DELTA = "content_delta"
    MESSAGE_END = "message_end"


class EnvelopeEvent:
    """Structured protocol: each content event carries a full envelope."""
    ASSISTANT = "assistant"
    SYSTEM = "system"
    THINKING = "thinking"
    SESSION_ID = "session_id"
    MESSAGE_END = "message_end"
    RESULT = "result"


# Replay files mark the out-of-band error callback with this record type.
ERROR_RECORD = "error"

SYSTEM_INIT_SUBTYPE = "init"
