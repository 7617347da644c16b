"""Tests for the SQS and EventBridge Lambda entry points."""
import json

from django.test import TestCase

from apps.core.backends.local_backend import LocalChannelTransport
from apps.core.exceptions import TransportFailure
from apps.core.wiring import reset_transport, set_transport
from apps.todos.models import Item


class FlakySnapshotTransport(LocalChannelTransport):
    """Publishes the first snapshot, then loses the broker."""

    def __init__(self):
        super().__init__()
        self.snapshot_sends = 0

    def send(self, channel, payload):
        if channel == "get-todos":
            self.snapshot_sends += 1
            if self.snapshot_sends > 1:
                raise TransportFailure(channel, "send", ConnectionError("broker unavailable"))
        return super().send(channel, payload)


def sqs_event(*bodies):
    return {
        "Records": [
            {"messageId": f"m-{n}", "receiptHandle": f"rh-{n}", "body": body}
            for n, body in enumerate(bodies)
        ]
    }


class NewItemHandlerTest(TestCase):

    def setUp(self):
        self.transport = LocalChannelTransport()
        set_transport(self.transport)

    def tearDown(self):
        reset_transport()

    def test_applies_records_and_publishes_snapshots(self):
        from lambda_handlers import new_item_handler

        response = new_item_handler(sqs_event(
            '{"id":null,"content":"buy milk"}',
            '{"id":null,"content":"call mom"}',
        ), None)

        self.assertEqual(response, {"batchItemFailures": [], "processed": 2})
        self.assertEqual(list(Item.objects.values_list("content", flat=True)), ["buy milk", "call mom"])
        snapshots = self.transport.receive_many("get-todos")
        self.assertEqual([len(s.payload()) for s in snapshots], [1, 2])

    def test_reports_malformed_records_as_batch_failures(self):
        from lambda_handlers import new_item_handler

        response = new_item_handler(sqs_event('{"content":"ok"}', "<xml/>"), None)

        self.assertEqual(response["batchItemFailures"], [{"itemIdentifier": "m-1"}])
        self.assertEqual(response["processed"], 1)
        self.assertEqual(Item.objects.count(), 1)

    def test_publish_failure_returns_failed_and_unprocessed_records(self):
        from lambda_handlers import new_item_handler
        set_transport(FlakySnapshotTransport())

        response = new_item_handler(sqs_event(
            '{"content":"a"}',
            '{"content":"b"}',
            '{"content":"c"}',
        ), None)

        self.assertEqual(response["processed"], 1)
        self.assertEqual(response["batchItemFailures"], [
            {"itemIdentifier": "m-1"},
            {"itemIdentifier": "m-2"},
        ])
        self.assertEqual(list(Item.objects.values_list("content", flat=True)), ["a", "b"])

    def test_scheduled_publish_snapshot(self):
        from lambda_handlers import scheduled_publish_snapshot
        Item.objects.create(content="buy milk")

        response = scheduled_publish_snapshot({}, None)

        self.assertEqual(response["statusCode"], 200)
        body = json.loads(response["body"])
        snapshot = self.transport.receive_many("get-todos")[0]
        self.assertEqual(snapshot.message_id, body["message_id"])
        self.assertEqual(snapshot.payload()[0]["content"], "buy milk")
