import signal
import threading

from django.core.management.base import BaseCommand

from apps.core.wiring import get_transport
from apps.todos.ingress_service import build_ingress_listener


class Command(BaseCommand):
    help = 'Consumes the new-item channel and applies items to the store'

    def add_arguments(self, parser):
        parser.add_argument(
            '--once',
            action='store_true',
            help='Process a single batch and exit',
        )
        parser.add_argument(
            '--wait-seconds',
            type=int,
            default=20,
            help='Long-poll wait per receive (0 disables long polling)',
        )
        parser.add_argument(
            '--max-messages',
            type=int,
            default=10,
            help='Batch size per receive',
        )

    def handle(self, *args, **options):
        listener = build_ingress_listener(get_transport())

        if options['once']:
            result = listener.poll_once(
                max_messages=options['max_messages'],
                wait_seconds=options['wait_seconds'],
            )
            self.stdout.write(self.style.SUCCESS(
                f'Applied {len(result.applied)} item(s), rejected {len(result.rejected)}'
            ))
            return

        stop_event = threading.Event()
        signal.signal(signal.SIGINT, lambda *_: stop_event.set())
        signal.signal(signal.SIGTERM, lambda *_: stop_event.set())

        self.stdout.write(f'Listening on {listener.channel} (Ctrl+C to stop)')
        listener.run_forever(stop_event, wait_seconds=options['wait_seconds'])
        self.stdout.write(self.style.WARNING('Stopped'))
