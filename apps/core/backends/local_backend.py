"""
Local Channel Backend - In-process queues for development.

This backend keeps every channel in memory inside the current process.
No Redis, SQS, or external dependencies required.

Received messages stay in flight until deleted. Once the visibility
timeout elapses they become receivable again, which mirrors the
at-least-once behaviour of SQS.

Usage:
    Set CHANNEL_BACKEND=local in your .env file.
"""

import time
import uuid
import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, List

from apps.core.channels import ChannelMessage, ChannelTransport, encode_payload

logger = logging.getLogger(__name__)


@dataclass
class _Envelope:
    message_id: str
    body: str
    receive_count: int = 0
    visible_at: float = 0.0


class LocalChannelTransport(ChannelTransport):
    """
    Thread-safe in-memory channels.

    This is ideal for:
    - Local development without Docker/Redis
    - Unit testing with immediate delivery
    - Debugging listener logic

    Note: Both services must share the same process (and the same
    transport instance) to see each other's messages.
    """

    def __init__(self, visibility_timeout: float = 30):
        super().__init__()
        self.visibility_timeout = visibility_timeout
        self._pending: Dict[str, Deque[_Envelope]] = {}
        self._in_flight: Dict[str, Dict[str, _Envelope]] = {}
        self._condition = threading.Condition()

    def send(self, channel: str, payload: Any) -> str:
        envelope = _Envelope(message_id=str(uuid.uuid4()), body=encode_payload(payload))
        with self._condition:
            self._pending.setdefault(channel, deque()).append(envelope)
            self._condition.notify_all()
        logger.debug(f"[LOCAL] Sent message {envelope.message_id} to '{channel}'")
        return envelope.message_id

    def receive_many(
        self,
        channel: str,
        max_messages: int = 10,
        wait_seconds: int = 0,
    ) -> List[ChannelMessage]:
        deadline = time.monotonic() + wait_seconds
        with self._condition:
            while True:
                self._restore_expired(channel)
                pending = self._pending.get(channel)
                if pending:
                    break
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return []
                self._condition.wait(remaining)

            in_flight = self._in_flight.setdefault(channel, {})
            received = []
            while pending and len(received) < max_messages:
                envelope = pending.popleft()
                envelope.receive_count += 1
                envelope.visible_at = time.monotonic() + self.visibility_timeout
                receipt = str(uuid.uuid4())
                in_flight[receipt] = envelope
                received.append(ChannelMessage(
                    message_id=envelope.message_id,
                    body=envelope.body,
                    receipt=receipt,
                    receive_count=envelope.receive_count,
                ))
        logger.debug(f"[LOCAL] Received {len(received)} message(s) from '{channel}'")
        return received

    def delete(self, channel: str, message: ChannelMessage) -> None:
        with self._condition:
            envelope = self._in_flight.get(channel, {}).pop(message.receipt, None)
        if envelope is None:
            logger.warning(
                f"[LOCAL] Receipt for message {message.message_id} on '{channel}' "
                f"expired or was already used"
            )

    def pending_count(self, channel: str) -> int:
        """Messages waiting to be received, including expired in-flight ones."""
        with self._condition:
            self._restore_expired(channel)
            return len(self._pending.get(channel, ()))

    def in_flight_count(self, channel: str) -> int:
        with self._condition:
            return len(self._in_flight.get(channel, {}))

    def _restore_expired(self, channel: str) -> None:
        # Caller holds the lock.
        in_flight = self._in_flight.get(channel)
        if not in_flight:
            return
        now = time.monotonic()
        expired = [receipt for receipt, env in in_flight.items() if env.visible_at <= now]
        if not expired:
            return
        pending = self._pending.setdefault(channel, deque())
        for receipt in expired:
            pending.append(in_flight.pop(receipt))
        logger.info(f"[LOCAL] Redelivering {len(expired)} unacknowledged message(s) on '{channel}'")
