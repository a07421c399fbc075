"""
convo-stream error types.
"""

from typing import Any, Optional


class ConvoStreamError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class TransportFailure(ConvoStreamError):
    """The event source reported an error. Recovered by starting a new exchange."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("transport_failure", message, details)


class MalformedEnvelope(ConvoStreamError):
    """An envelope or payload is not an object where one is required."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("malformed_envelope", message, details)


class ConfigError(ConvoStreamError):
    def __init__(self, message: str):
        super().__init__("config_error", message)
