"""
Tests for the Ingress Listener.

Covers:
1. handle_message() applies the item and re-publishes the snapshot
2. poll_once() acknowledges applied messages only
3. Malformed messages are left for redelivery
4. Transport failures surface to the caller
"""
import threading
from unittest import mock

from django.core.management import call_command
from django.test import SimpleTestCase, TestCase, override_settings

from apps.core.backends.local_backend import LocalChannelTransport
from apps.core.channels import ChannelMessage
from apps.core.exceptions import DeserializationFailure, TransportFailure
from apps.core.wiring import reset_transport, set_transport
from apps.todos.ingress_service import IngressListener, build_ingress_listener
from apps.todos.models import Item
from apps.todos.services import MemoryItemStore, reset_item_store
from apps.todos.snapshot_service import SnapshotPublisher
from apps.todos.tasks import drain_new_items


class BrokenSnapshotTransport(LocalChannelTransport):
    """Delivers new items but cannot publish snapshots."""

    def send(self, channel, payload):
        if channel == "get-todos":
            raise TransportFailure(channel, "send", ConnectionError("broker unavailable"))
        return super().send(channel, payload)


def make_listener(transport, store=None):
    store = store or MemoryItemStore()
    return IngressListener(store, SnapshotPublisher(store, transport), transport).subscribe()


class IngressListenerTest(SimpleTestCase):

    def setUp(self):
        self.transport = LocalChannelTransport(visibility_timeout=0)
        self.store = MemoryItemStore()
        self.listener = make_listener(self.transport, self.store)

    def test_subscribe_registers_handle_message(self):
        self.assertEqual(self.transport.handler_for("new-todo"), self.listener.handle_message)

    def test_handle_message_adds_and_publishes(self):
        message = ChannelMessage(message_id="m-1", body='{"id":null,"content":"call mom"}')

        item = self.listener.handle_message(message)

        self.assertEqual(item.content, "call mom")
        self.assertEqual(self.store.list(), [item])
        snapshot = self.transport.receive_many("get-todos")
        self.assertEqual(snapshot[0].payload(), [{"id": 1, "content": "call mom"}])

    def test_client_supplied_id_is_ignored(self):
        self.store.add("buy milk")
        message = ChannelMessage(message_id="m-1", body='{"id":77,"content":"call mom"}')

        item = self.listener.handle_message(message)

        self.assertEqual(item.id, 2)

    def test_malformed_message_does_not_touch_store(self):
        message = ChannelMessage(message_id="m-1", body='{"title":"wrong field"}')

        with self.assertRaises(DeserializationFailure):
            self.listener.handle_message(message)
        self.assertEqual(self.store.list(), [])
        self.assertEqual(self.transport.receive_many("get-todos"), [])

    def test_poll_once_processes_in_order_and_acknowledges(self):
        self.transport.send("new-todo", {"id": None, "content": "buy milk"})
        self.transport.send("new-todo", {"id": None, "content": "call mom"})

        result = self.listener.poll_once()

        self.assertEqual([i.content for i in result.applied], ["buy milk", "call mom"])
        self.assertEqual(result.rejected, [])
        self.assertEqual(self.transport.receive_many("new-todo"), [])
        self.assertEqual(len(self.transport.receive_many("get-todos")), 2)

    def test_poll_once_leaves_malformed_message_for_redelivery(self):
        bad_id = self.transport.send("new-todo", "not an item")
        self.transport.send("new-todo", {"content": "buy milk"})

        result = self.listener.poll_once()

        self.assertEqual(result.rejected, [bad_id])
        self.assertEqual(len(result.applied), 1)
        redelivered = self.transport.receive_many("new-todo")
        self.assertEqual([m.message_id for m in redelivered], [bad_id])
        self.assertEqual(redelivered[0].receive_count, 2)

    def test_poll_once_empty_channel(self):
        result = self.listener.poll_once()

        self.assertEqual(result.received, 0)

    def test_publish_failure_surfaces_and_keeps_message(self):
        transport = BrokenSnapshotTransport(visibility_timeout=0)
        listener = make_listener(transport)
        transport.send("new-todo", {"content": "buy milk"})

        with self.assertRaises(TransportFailure):
            listener.poll_once()
        self.assertEqual(len(transport.receive_many("new-todo")), 1)

    def test_run_forever_stops_on_event(self):
        stop_event = threading.Event()
        self.transport.send("new-todo", {"content": "buy milk"})

        def poll_then_stop(*args, **kwargs):
            result = IngressListener.poll_once(self.listener, *args, **kwargs)
            stop_event.set()
            return result

        with mock.patch.object(self.listener, "poll_once", side_effect=poll_then_stop):
            self.listener.run_forever(stop_event, wait_seconds=0, idle_sleep=0)

        self.assertEqual(len(self.store.list()), 1)


class IngressRuntimeTest(TestCase):
    """The Celery task and management command wire the listener to the database store."""

    def setUp(self):
        self.transport = LocalChannelTransport()
        set_transport(self.transport)

    def tearDown(self):
        reset_transport()

    def test_build_ingress_listener_uses_database_store(self):
        listener = build_ingress_listener(self.transport)
        self.transport.send("new-todo", {"content": "buy milk"})

        listener.poll_once()

        self.assertEqual(list(Item.objects.values_list("content", flat=True)), ["buy milk"])

    def test_drain_new_items_task(self):
        self.transport.send("new-todo", {"content": "buy milk"})
        self.transport.send("new-todo", [])

        summary = drain_new_items()

        self.assertEqual(summary, "Applied 1 item(s), rejected 1")
        self.assertEqual(Item.objects.count(), 1)

    def test_run_ingress_command_once(self):
        self.transport.send("new-todo", {"content": "call mom"})

        call_command("run_ingress", "--once", "--wait-seconds", "0")

        self.assertTrue(Item.objects.filter(content="call mom").exists())
        self.assertEqual(len(self.transport.receive_many("get-todos")), 1)


@override_settings(ITEM_STORE_BACKEND='memory')
class MemoryStoreRuntimeTest(SimpleTestCase):
    """Successive task runs keep applying to the same in-process store."""

    def setUp(self):
        reset_item_store()
        self.transport = LocalChannelTransport()
        set_transport(self.transport)

    def tearDown(self):
        reset_transport()
        reset_item_store()

    def test_drain_new_items_twice_accumulates_items(self):
        self.transport.send("new-todo", {"content": "buy milk"})
        drain_new_items()
        self.transport.send("new-todo", {"content": "call mom"})
        drain_new_items()

        snapshots = self.transport.receive_many("get-todos")
        self.assertEqual(len(snapshots), 2)
        self.assertEqual(snapshots[-1].payload(), [
            {"id": 1, "content": "buy milk"},
            {"id": 2, "content": "call mom"},
        ])
