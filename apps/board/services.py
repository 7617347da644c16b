"""
Front-side channel services.

SnapshotReader turns the snapshot channel into display state.
SubmissionRelay places user submissions on the new-item channel.
Neither touches the Item Store; the channels are the only link to the
back service.
"""
import logging
from typing import List, Optional

from django.conf import settings

from apps.core.channels import ChannelTransport
from apps.core.exceptions import DeserializationFailure
from apps.todos.dtos import ItemDTO, parse_snapshot

logger = logging.getLogger(__name__)


class SnapshotReader:

    def __init__(self, transport: ChannelTransport, channel: str = None, batch_size: int = 10):
        self.transport = transport
        self.channel = channel or settings.TODO_SNAPSHOT_CHANNEL
        self.batch_size = batch_size

    def refresh(self) -> List[ItemDTO]:
        """
        Drain every available snapshot and return the last one received.

        No pending snapshot means an empty list, not the previous state.
        Malformed snapshots are skipped and left unacknowledged.
        """
        latest: Optional[List[ItemDTO]] = None
        seen = set()
        drained = 0

        while True:
            messages = self.transport.receive_many(self.channel, self.batch_size)
            fresh = [m for m in messages if m.message_id not in seen]
            # A batch of nothing but redelivered messages ends the drain, even
            # if valid snapshots are queued behind them; the next refresh
            # picks those up.
            if not fresh:
                break
            for message in fresh:
                seen.add(message.message_id)
                try:
                    items = parse_snapshot(message.payload())
                except DeserializationFailure as e:
                    logger.warning(f"Skipping malformed snapshot {message.message_id}: {e}")
                    continue
                self.transport.delete(self.channel, message)
                latest = items
                drained += 1

        if drained > 1:
            logger.info(f"Drained {drained} snapshots from '{self.channel}', keeping the last")
        return latest if latest is not None else []


class SubmissionRelay:

    def __init__(self, transport: ChannelTransport, channel: str = None):
        self.transport = transport
        self.channel = channel or settings.TODO_NEW_ITEM_CHANNEL

    def submit(self, content: str) -> str:
        """
        Send content as a new-item message and return immediately.

        The item shows up on the page only after the back service has
        applied it and a later refresh picks up the resulting snapshot.
        """
        if content is None or not content.strip():
            raise ValueError("Item content must not be blank")
        message_id = self.transport.send(self.channel, ItemDTO(id=None, content=content).to_payload())
        logger.info(f"Relayed submission to '{self.channel}' (id={message_id})")
        return message_id
