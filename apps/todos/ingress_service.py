"""
Ingress Listener - applies new-item messages to the Item Store.

Registration is explicit: subscribe() binds handle_message to the new-item
channel on the injected transport. Runtimes then feed messages in through
poll_once() (management command, Celery beat) or handle_message() directly
(SQS-triggered Lambda).
"""
import logging
import threading
from dataclasses import dataclass, field
from typing import List

from django.conf import settings

from apps.core.channels import ChannelMessage, ChannelTransport
from apps.core.exceptions import DeserializationFailure
from .dtos import ItemDTO
from .services import ItemStore
from .snapshot_service import SnapshotPublisher

logger = logging.getLogger(__name__)


@dataclass
class PollResult:
    """Outcome of one batch."""
    applied: List[ItemDTO] = field(default_factory=list)
    rejected: List[str] = field(default_factory=list)

    @property
    def received(self) -> int:
        return len(self.applied) + len(self.rejected)


class IngressListener:

    def __init__(
        self,
        store: ItemStore,
        publisher: SnapshotPublisher,
        transport: ChannelTransport,
        channel: str = None,
    ):
        self.store = store
        self.publisher = publisher
        self.transport = transport
        self.channel = channel or settings.TODO_NEW_ITEM_CHANNEL

    def subscribe(self) -> "IngressListener":
        self.transport.subscribe(self.channel, self.handle_message)
        return self

    def handle_message(self, message: ChannelMessage) -> ItemDTO:
        """
        Apply one new-item message and re-publish the snapshot.

        Raises DeserializationFailure before touching the store when the
        payload is malformed.
        """
        payload = ItemDTO.from_payload(message.payload())
        if payload.id is not None:
            logger.warning(f"Ignoring client-supplied id {payload.id} on message {message.message_id}")

        item = self.store.add(payload.content)
        logger.info(f"Applied message {message.message_id} as item {item.id}")
        self.publisher.publish_snapshot()
        return item

    def poll_once(self, max_messages: int = 10, wait_seconds: int = 0) -> PollResult:
        """
        Receive one batch and process it message by message.

        Applied messages are deleted. Malformed ones stay on the queue for
        the broker's redelivery / dead-letter policy.
        """
        result = PollResult()
        handler = self.transport.handler_for(self.channel) or self.handle_message
        messages = self.transport.receive_many(self.channel, max_messages, wait_seconds)

        for message in messages:
            try:
                item = handler(message)
            except DeserializationFailure as e:
                logger.warning(
                    f"Rejected message {message.message_id} "
                    f"(receive_count={message.receive_count}): {e}"
                )
                result.rejected.append(message.message_id)
                continue
            self.transport.delete(self.channel, message)
            result.applied.append(item)

        if messages:
            logger.info(f"Ingress batch: {len(result.applied)} applied, {len(result.rejected)} rejected")
        return result

    def run_forever(self, stop_event: threading.Event, wait_seconds: int = 20, idle_sleep: float = 1.0):
        """Poll until stop_event is set."""
        logger.info(f"Ingress listener started on '{self.channel}'")
        while not stop_event.is_set():
            result = self.poll_once(wait_seconds=wait_seconds)
            if result.received == 0 and wait_seconds == 0:
                stop_event.wait(idle_sleep)
        logger.info("Ingress listener stopped")


def build_ingress_listener(transport: ChannelTransport, store: ItemStore = None) -> IngressListener:
    """Compose store, publisher and listener, and register the subscription."""
    from .services import build_item_store
    store = store or build_item_store()
    publisher = SnapshotPublisher(store, transport)
    return IngressListener(store, publisher, transport).subscribe()
