"""
Lambda Handlers - Entry points for AWS Lambda functions.

This module provides Lambda handlers for:
1. New-item ingress - SQS event source on the new-item queue (back)
2. Scheduled snapshot re-publish - EventBridge trigger (back)
3. Django web + API (via Mangum) - HTTP requests through API Gateway (front)

The handlers use Django's setup to access models and services.
"""

import os
import json
import logging

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

import django
django.setup()

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


def _record_to_message(record):
    from apps.core.channels import ChannelMessage
    return ChannelMessage(
        message_id=record['messageId'],
        body=record['body'],
        receipt=record.get('receiptHandle'),
        receive_count=int(record.get('attributes', {}).get('ApproximateReceiveCount', 1)),
    )


def new_item_handler(event, context):
    """
    AWS Lambda handler for new-item SQS messages.

    Applies each record to the Item Store and re-publishes the snapshot.
    Malformed records are reported in batchItemFailures so SQS redelivers
    (and eventually dead-letters) only those; the rest are deleted by the
    event source mapping. Any other failure (e.g. the snapshot publish)
    stops the batch: the failing record and everything after it are
    reported, records applied before it are not.
    Requires ReportBatchItemFailures on the mapping.

    Event structure:
    {
        "Records": [
            {
                "messageId": "...",
                "receiptHandle": "...",
                "body": "{\"id\": null, \"content\": \"buy milk\"}"
            }
        ]
    }
    """
    from apps.core.exceptions import DeserializationFailure
    from apps.core.wiring import get_transport
    from apps.todos.ingress_service import build_ingress_listener

    listener = build_ingress_listener(get_transport())
    handler = listener.transport.handler_for(listener.channel)

    processed = 0
    failures = []

    records = event.get('Records', [])
    for index, record in enumerate(records):
        message = _record_to_message(record)
        try:
            item = handler(message)
            logger.info(f"Applied record {message.message_id} as item {item.id}")
            processed += 1
        except DeserializationFailure as e:
            logger.warning(f"Rejected record {message.message_id}: {e}")
            failures.append({'itemIdentifier': message.message_id})
        except Exception as e:
            # Records already applied stay acknowledged; this one and the
            # rest of the batch go back to SQS.
            logger.exception(f"Failed to apply record {message.message_id}: {e}")
            failures.extend(
                {'itemIdentifier': remaining['messageId']} for remaining in records[index:]
            )
            break

    return {
        'batchItemFailures': failures,
        'processed': processed,
    }


def scheduled_publish_snapshot(event, context):
    """
    EventBridge scheduled handler: re-publish the current snapshot.

    Lets a front service that started after the last mutation catch up.
    """
    from apps.core.wiring import get_transport
    from apps.todos.services import build_item_store
    from apps.todos.snapshot_service import SnapshotPublisher

    logger.info("Running scheduled publish_snapshot")
    message_id = SnapshotPublisher(build_item_store(), get_transport()).publish_snapshot()

    return {
        'statusCode': 200,
        'body': json.dumps({
            'message_id': message_id
        })
    }


# =============================================================================
# Django Web Handler (Mangum)
# =============================================================================

_asgi_handler = None


def api_handler(event, context):
    """
    AWS Lambda handler for HTTP requests via API Gateway.

    Uses Mangum to wrap Django's ASGI application.
    """
    global _asgi_handler

    if _asgi_handler is None:
        from mangum import Mangum
        from config.asgi import application
        _asgi_handler = Mangum(application, lifespan="off")

    return _asgi_handler(event, context)
