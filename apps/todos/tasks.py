"""Celery tasks for Todos app."""
from celery import shared_task

from apps.core.wiring import get_transport
from .ingress_service import build_ingress_listener
from .services import build_item_store
from .snapshot_service import SnapshotPublisher


@shared_task
def drain_new_items(max_messages: int = 10):
    """
    Run periodically to apply pending new-item messages.
    Scheduled by Celery beat every INGRESS_POLL_SECONDS.

    Returns a summary for logging.
    """
    listener = build_ingress_listener(get_transport())
    result = listener.poll_once(max_messages=max_messages)
    return f"Applied {len(result.applied)} item(s), rejected {len(result.rejected)}"


@shared_task
def publish_snapshot():
    """Re-publish the current snapshot on demand."""
    publisher = SnapshotPublisher(build_item_store(), get_transport())
    message_id = publisher.publish_snapshot()
    return f"Published snapshot {message_id}"
