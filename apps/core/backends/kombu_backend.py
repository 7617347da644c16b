"""
Kombu Channel Backend - Message channels on the Celery broker.

This backend reuses the Celery infrastructure (Redis) through kombu, the
messaging library Celery is built on. Serves as a fallback option if SQS
is not available.

Usage:
    Set CHANNEL_BACKEND=kombu in your .env file.
    Requires the broker at CELERY_BROKER_URL to be running.
    Use memory:// for tests.
"""

import uuid
import logging
import threading
from typing import Any, Dict, List

from kombu import Connection

from apps.core.channels import ChannelMessage, ChannelTransport
from apps.core.exceptions import TransportFailure

logger = logging.getLogger(__name__)


class KombuChannelTransport(ChannelTransport):
    """
    Channels backed by kombu SimpleQueues.

    Unacknowledged messages are returned to the queue by the broker when the
    consumer's channel closes (or after the Redis visibility timeout).
    """

    def __init__(self, broker_url: str, transport_options: Dict[str, Any] = None):
        super().__init__()
        self._connection = Connection(broker_url, transport_options=transport_options or {})
        self._queues = {}
        self._lock = threading.Lock()

    @property
    def _errors(self):
        return self._connection.connection_errors + self._connection.channel_errors

    def _queue(self, channel: str):
        with self._lock:
            if channel not in self._queues:
                self._queues[channel] = self._connection.SimpleQueue(channel)
            return self._queues[channel]

    def send(self, channel: str, payload: Any) -> str:
        message_id = str(uuid.uuid4())
        try:
            self._queue(channel).put(
                payload,
                serializer='json',
                headers={'message_id': message_id},
            )
        except self._errors as e:
            logger.exception(f"[KOMBU] Failed to send to '{channel}': {e}")
            raise TransportFailure(channel, "send", e) from e

        logger.info(f"[KOMBU] Sent message {message_id} to '{channel}'")
        return message_id

    def receive_many(
        self,
        channel: str,
        max_messages: int = 10,
        wait_seconds: int = 0,
    ) -> List[ChannelMessage]:
        queue = self._queue(channel)
        received = []
        try:
            while len(received) < max_messages:
                block = not received and wait_seconds > 0
                try:
                    raw = queue.get(block=block, timeout=wait_seconds if block else None)
                except queue.Empty:
                    break
                body = raw.body
                if isinstance(body, bytes):
                    body = body.decode('utf-8')
                headers = raw.headers or {}
                received.append(ChannelMessage(
                    message_id=headers.get('message_id') or str(raw.delivery_tag),
                    body=body,
                    receipt=raw,
                    receive_count=2 if raw.delivery_info.get('redelivered') else 1,
                ))
        except self._errors as e:
            logger.exception(f"[KOMBU] Failed to receive from '{channel}': {e}")
            raise TransportFailure(channel, "receive", e) from e

        return received

    def delete(self, channel: str, message: ChannelMessage) -> None:
        try:
            message.receipt.ack()
        except self._errors as e:
            logger.exception(f"[KOMBU] Failed to ack message {message.message_id} on '{channel}': {e}")
            raise TransportFailure(channel, "delete", e) from e

    def close(self) -> None:
        with self._lock:
            for queue in self._queues.values():
                queue.close()
            self._queues.clear()
        self._connection.release()
