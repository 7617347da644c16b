"""
ASGI config for the Todo Relay project.

Runs under Uvicorn/Daphne, or on AWS Lambda through Mangum
(see lambda_handlers.api_handler).
"""
import os

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

from django.core.asgi import get_asgi_application

# Initialize at container startup, not on the first request
application = get_asgi_application()
