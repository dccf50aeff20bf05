from datetime import datetime, timezone
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId

from .exceptions import BadRequest


def utcnow() -> datetime:
    # BSON dates keep millisecond precision
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def to_object_id(value: str) -> ObjectId:
    """Parse a path id, raising BadRequest for anything that is not an ObjectId."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise BadRequest("Invalid ID format", {"id": value})


def serialize_document(doc: dict[str, Any]) -> dict[str, Any]:
    """Return a JSON friendly copy of a stored document with ``_id`` as ``id``."""
    out = {k: v for k, v in doc.items() if k != "_id"}
    if "_id" in doc:
        out["id"] = str(doc["_id"])
    return out
