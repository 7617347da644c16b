"""
Core app - Shared messaging abstractions.

This app provides platform-agnostic interfaces for:
- Message channels (ChannelTransport)
- The channel error taxonomy (TransportFailure, DeserializationFailure)

These abstractions allow switching between:
- Local development (in-process queues)
- AWS SQS (production)
- Celery broker via kombu (fallback)
"""
