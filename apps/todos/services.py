"""
Item Store - the authoritative todo collection.

Two implementations share the add/list contract:
- DatabaseItemStore: Django ORM (default)
- MemoryItemStore: process-local list, for embedded runs and tests

All mutations are linearizable: identifiers come from the database
sequence inside a transaction, or from a counter guarded by a lock.
"""
import logging
import threading
from abc import ABC, abstractmethod
from typing import List

from django.db import transaction

from .dtos import ItemDTO
from .models import Item

logger = logging.getLogger(__name__)


def _to_dto(item: Item) -> ItemDTO:
    return ItemDTO(id=item.id, content=item.content)


class ItemStore(ABC):

    @abstractmethod
    def add(self, content: str) -> ItemDTO:
        """Append a new item with a freshly assigned identifier."""
        pass

    @abstractmethod
    def list(self) -> List[ItemDTO]:
        """All items in insertion order."""
        pass


class DatabaseItemStore(ItemStore):

    def add(self, content: str) -> ItemDTO:
        with transaction.atomic():
            item = Item.objects.create(content=content)
        logger.info(f"Stored item {item.id}")
        return _to_dto(item)

    def list(self) -> List[ItemDTO]:
        return [_to_dto(item) for item in Item.objects.order_by('id')]


class MemoryItemStore(ItemStore):

    def __init__(self):
        self._items: List[ItemDTO] = []
        self._lock = threading.Lock()

    def add(self, content: str) -> ItemDTO:
        with self._lock:
            item = ItemDTO(id=len(self._items) + 1, content=content)
            self._items.append(item)
        logger.info(f"Stored item {item.id} (memory)")
        return item

    def list(self) -> List[ItemDTO]:
        with self._lock:
            return list(self._items)


_memory_store = None


def build_item_store(backend: str = None) -> ItemStore:
    """
    Build the store selected by ITEM_STORE_BACKEND.

    The memory store is the authoritative collection for the whole process,
    so every call returns the same instance.
    """
    global _memory_store
    from django.conf import settings
    backend = backend or getattr(settings, 'ITEM_STORE_BACKEND', 'database')

    if backend == 'database':
        return DatabaseItemStore()
    elif backend == 'memory':
        if _memory_store is None:
            _memory_store = MemoryItemStore()
        return _memory_store
    else:
        raise ValueError(f"Unknown ITEM_STORE_BACKEND: {backend}")


def reset_item_store() -> None:
    """Drop the process memory store (tests, embedded runners)."""
    global _memory_store
    _memory_store = None
