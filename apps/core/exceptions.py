"""
Channel error taxonomy.

TransportFailure is raised whenever the broker cannot be reached or rejects
an operation. DeserializationFailure marks a payload that cannot be applied;
such messages are left unacknowledged so the broker's redelivery or
dead-letter policy decides their fate.
"""


class ChannelError(Exception):
    """Base class for all channel errors."""


class TransportFailure(ChannelError):
    """A send, receive or delete on a channel failed."""

    def __init__(self, channel: str, operation: str, cause: Exception = None):
        self.channel = channel
        self.operation = operation
        self.cause = cause
        message = f"{operation} on channel '{channel}' failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class DeserializationFailure(ChannelError):
    """A message body could not be decoded into the expected payload."""

    def __init__(self, reason: str, body: str = ""):
        self.reason = reason
        self.body = body
        super().__init__(reason)
