"""
Exception hierarchy for home-sentry.

Decoding failures are reported to the caller and never fatal: the router
logs them and moves on to the next message.
"""


class SentryError(Exception):
    """Base class for all home-sentry errors."""


class MalformedTopic(SentryError, ValueError):
    """A bus topic could not be decoded into a device identity."""

    def __init__(self, topic: str, reason: str = "unrecognized topic") -> None:
        self.topic = topic
        self.reason = reason
        super().__init__(f"Malformed topic '{topic}': {reason}")


class MalformedPayload(SentryError, ValueError):
    """A sensor payload could not be parsed into a reading."""

    def __init__(self, payload: str, reason: str) -> None:
        self.payload = payload
        self.reason = reason
        super().__init__(f"Malformed payload '{payload}': {reason}")


class TransportFault(SentryError):
    """The bus connection was lost; wraps the transport's own error."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Transport connection lost: {cause}")
