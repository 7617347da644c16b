from dataclasses import dataclass
from typing import Any, List, Optional

from ninja import Schema

from apps.core.exceptions import DeserializationFailure


@dataclass(frozen=True)
class ItemDTO:
    """Data Transfer Object for Item - the shape that travels on channels."""
    id: Optional[int]
    content: str

    def to_payload(self) -> dict:
        return {"id": self.id, "content": self.content}

    @classmethod
    def from_payload(cls, payload: Any) -> "ItemDTO":
        """
        Build an ItemDTO from a decoded message body.
        Raises DeserializationFailure when the shape is wrong.
        """
        if not isinstance(payload, dict):
            raise DeserializationFailure(f"Item payload must be an object, got {type(payload).__name__}")
        content = payload.get("content")
        if not isinstance(content, str):
            raise DeserializationFailure("Item payload is missing string 'content'")
        item_id = payload.get("id")
        if item_id is not None and (isinstance(item_id, bool) or not isinstance(item_id, int)):
            raise DeserializationFailure(f"Item payload has invalid 'id': {item_id!r}")
        return cls(id=item_id, content=content)


def snapshot_payload(items: List[ItemDTO]) -> list:
    """Serialize a full item list as one snapshot body."""
    return [item.to_payload() for item in items]


def parse_snapshot(payload: Any) -> List[ItemDTO]:
    """Decode a snapshot body. Raises DeserializationFailure."""
    if not isinstance(payload, list):
        raise DeserializationFailure(f"Snapshot payload must be a list, got {type(payload).__name__}")
    return [ItemDTO.from_payload(entry) for entry in payload]


class ItemIn(Schema):
    content: str


class ItemOut(Schema):
    id: Optional[int] = None
    content: str


class PublishOut(Schema):
    message_id: str
    item_count: int
