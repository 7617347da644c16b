"""
Celery configuration for the Todo Relay project.
"""
import os
from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('config')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()

# Celery Beat Schedule
app.conf.beat_schedule = {
    'drain-new-items': {
        'task': 'apps.todos.tasks.drain_new_items',
        'schedule': float(os.getenv('INGRESS_POLL_SECONDS', '5')),
    },
}
