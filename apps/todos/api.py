"""
Todos API endpoints (back service).

Read-only view of the authoritative store plus an on-demand snapshot
re-publish. New items arrive through the new-item channel, not HTTP.
"""
import logging
from typing import List

from django.http import HttpRequest
from ninja import Router
from ninja.errors import HttpError

from apps.core.exceptions import TransportFailure
from apps.core.wiring import get_transport
from .dtos import ItemOut, PublishOut
from .services import build_item_store
from .snapshot_service import SnapshotPublisher

logger = logging.getLogger(__name__)

router = Router(tags=["Todos"])


@router.get("", response=List[ItemOut])
def list_items(request: HttpRequest):
    """List every stored item in insertion order."""
    return [item.to_payload() for item in build_item_store().list()]


@router.post("/publish", response=PublishOut)
def publish_snapshot(request: HttpRequest):
    """Re-publish the full item list on the snapshot channel."""
    store = build_item_store()
    publisher = SnapshotPublisher(store, get_transport())
    try:
        items = store.list()
        message_id = publisher.publish_items(items)
    except TransportFailure as e:
        raise HttpError(503, str(e))
    return {"message_id": message_id, "item_count": len(items)}
