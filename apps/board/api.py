"""
Board API endpoints (front service).

JSON counterparts of the todo page: read the latest snapshot, or relay a
new item to the back service.
"""
from typing import List

from django.http import HttpRequest
from ninja import Router, Schema
from ninja.errors import HttpError

from apps.core.exceptions import TransportFailure
from apps.core.wiring import get_transport
from apps.todos.dtos import ItemIn, ItemOut
from .services import SnapshotReader, SubmissionRelay

router = Router(tags=["Board"])


class SubmittedOut(Schema):
    message_id: str


@router.get("/items", response=List[ItemOut])
def refresh_items(request: HttpRequest):
    """
    Drain pending snapshots and return the latest item list.
    Returns [] when no snapshot is pending.
    """
    try:
        items = SnapshotReader(get_transport()).refresh()
    except TransportFailure as e:
        raise HttpError(503, str(e))
    return [item.to_payload() for item in items]


@router.post("/items", response={202: SubmittedOut})
def submit_item(request: HttpRequest, payload: ItemIn):
    """Queue a new item for the back service."""
    try:
        message_id = SubmissionRelay(get_transport()).submit(payload.content)
    except ValueError as e:
        raise HttpError(400, str(e))
    except TransportFailure as e:
        raise HttpError(503, str(e))
    return 202, {"message_id": message_id}
