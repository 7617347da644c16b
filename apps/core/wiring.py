"""
Process-level composition root.

Entry points (views, Lambda handlers, Celery tasks, management commands)
call get_transport() once and pass the result into the components they
build. Components never look the transport up themselves.
"""
import logging

from .channels import ChannelTransport, build_transport

logger = logging.getLogger(__name__)

_transport = None


def get_transport() -> ChannelTransport:
    """Return this process's transport, building it on first use."""
    global _transport
    if _transport is None:
        _transport = build_transport()
        logger.info(f"Channel transport ready: {type(_transport).__name__}")
    return _transport


def set_transport(transport: ChannelTransport) -> None:
    """Install a transport explicitly (tests, embedded runners)."""
    global _transport
    _transport = transport


def reset_transport() -> None:
    global _transport
    _transport = None
