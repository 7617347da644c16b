"""
Snapshot publishing.

After every mutation the full item list is sent as one message on the
snapshot channel. Each snapshot carries the entire state, so a reader that
keeps only the last message it receives always lands on a consistent view,
even with duplicated or reordered deliveries.
"""
import logging

from django.conf import settings

from apps.core.channels import ChannelTransport
from .dtos import snapshot_payload
from .services import ItemStore

logger = logging.getLogger(__name__)


class SnapshotPublisher:

    def __init__(self, store: ItemStore, transport: ChannelTransport, channel: str = None):
        self.store = store
        self.transport = transport
        self.channel = channel or settings.TODO_SNAPSHOT_CHANNEL

    def publish_snapshot(self) -> str:
        """
        Send the current item list as one snapshot message.

        Returns the broker message id. TransportFailure propagates to the
        caller; nothing is retried here.
        """
        return self.publish_items(self.store.list())

    def publish_items(self, items) -> str:
        """Send an already-read full listing of the store as the snapshot."""
        message_id = self.transport.send(self.channel, snapshot_payload(items))
        logger.info(f"Published snapshot of {len(items)} item(s) to '{self.channel}' (id={message_id})")
        return message_id
