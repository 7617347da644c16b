"""
ChannelTransport - Abstraction layer for one-directional message channels.

Every component that talks to a queue receives a ChannelTransport at
construction time. The concrete backend is chosen once, at the process
entry point, from the CHANNEL_BACKEND setting.

Usage:
    from apps.core.channels import build_transport

    transport = build_transport()
    transport.send("new-todo", {"id": None, "content": "buy milk"})

    for message in transport.receive_many("new-todo"):
        handle(message.payload())
        transport.delete("new-todo", message)

Environment Configuration:
    CHANNEL_BACKEND=local   # In-process queues (development, tests)
    CHANNEL_BACKEND=sqs     # AWS SQS via boto3 (production)
    CHANNEL_BACKEND=kombu   # Celery broker via kombu (Redis fallback)
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from django.conf import settings

from .exceptions import DeserializationFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChannelMessage:
    """A message received from a channel, not yet acknowledged."""
    message_id: str
    body: str
    receipt: Any = None
    receive_count: int = 1

    def payload(self) -> Any:
        """Decode the JSON body. Raises DeserializationFailure."""
        try:
            return json.loads(self.body)
        except (TypeError, ValueError) as e:
            raise DeserializationFailure(f"Message {self.message_id} is not valid JSON: {e}", self.body)


MessageHandler = Callable[[ChannelMessage], None]


def encode_payload(payload: Any) -> str:
    """Serialize a payload for the wire."""
    return json.dumps(payload, separators=(",", ":"))


class ChannelTransport(ABC):
    """
    Abstract interface for at-least-once message channels.

    Implementations:
    - LocalChannelTransport: in-memory queues for development/testing
    - SQSChannelTransport: AWS SQS for production
    - KombuChannelTransport: Celery broker (Redis) as fallback

    Delivery is at-least-once: a received message is redelivered unless it
    is deleted. No ordering is guaranteed across separate sends.
    """

    def __init__(self):
        self._handlers: Dict[str, MessageHandler] = {}

    @abstractmethod
    def send(self, channel: str, payload: Any) -> str:
        """
        Send one message.

        Args:
            channel: Logical channel name
            payload: JSON-serializable body

        Returns:
            Broker message id
        """
        pass

    @abstractmethod
    def receive_many(
        self,
        channel: str,
        max_messages: int = 10,
        wait_seconds: int = 0,
    ) -> List[ChannelMessage]:
        """
        Receive up to max_messages currently available messages.

        Returns an empty list when the channel is empty after wait_seconds.
        """
        pass

    @abstractmethod
    def delete(self, channel: str, message: ChannelMessage) -> None:
        """Acknowledge a message so it is never redelivered."""
        pass

    def subscribe(self, channel: str, handler: MessageHandler) -> None:
        """Register the handler that consumes a channel."""
        if channel in self._handlers:
            logger.warning(f"Replacing handler for channel '{channel}'")
        self._handlers[channel] = handler
        logger.info(f"Subscribed {getattr(handler, '__qualname__', handler)} to channel '{channel}'")

    def handler_for(self, channel: str) -> Optional[MessageHandler]:
        return self._handlers.get(channel)


def build_transport(backend: str = None) -> ChannelTransport:
    """Build a transport for the configured CHANNEL_BACKEND."""
    backend = backend or getattr(settings, 'CHANNEL_BACKEND', 'local')

    if backend == 'local':
        from apps.core.backends.local_backend import LocalChannelTransport
        return LocalChannelTransport(
            visibility_timeout=getattr(settings, 'CHANNEL_VISIBILITY_TIMEOUT', 30),
        )
    elif backend == 'sqs':
        from apps.core.backends.sqs_backend import SQSChannelTransport
        return SQSChannelTransport(
            region_name=getattr(settings, 'AWS_REGION', 'ap-southeast-1'),
            endpoint_url=getattr(settings, 'SQS_ENDPOINT_URL', None),
        )
    elif backend == 'kombu':
        from apps.core.backends.kombu_backend import KombuChannelTransport
        return KombuChannelTransport(settings.CELERY_BROKER_URL)
    else:
        raise ValueError(f"Unknown CHANNEL_BACKEND: {backend}")
