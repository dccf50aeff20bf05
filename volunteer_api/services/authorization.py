"""Resource ownership checks.

Every owner-protected mutation goes through ``load_owned``, which applies
the checks in a fixed order: identity, id format, existence, ownership.
A record that does not exist is reported as missing even to callers who
would not own it, so a 403 always means "exists, not yours".
"""
from typing import Any, Optional

from pymongo.collection import Collection

from ..exceptions import Forbidden, NotFound, Unauthorized
from ..logging_conf import get_logger
from ..utils import to_object_id

logger = get_logger(__name__)


def same_identity(a: Optional[str], b: Optional[str]) -> bool:
    if not a or not b:
        return False
    return a.strip().lower() == b.strip().lower()


def require_identity(identity: Optional[str]) -> str:
    if not identity:
        raise Unauthorized()
    return identity


def check_owner(record: dict[str, Any], owner_field: str, identity: str, resource: str) -> None:
    if not same_identity(record.get(owner_field), identity):
        logger.warning(
            "Ownership check failed",
            extra={"resource": resource, "resource_id": str(record.get("_id")), "identity": identity},
        )
        raise Forbidden(f"Forbidden: You do not own this {resource.lower()}")


def load_owned(
    collection: Collection,
    resource_id: str,
    owner_field: str,
    identity: Optional[str],
    resource: str,
) -> dict[str, Any]:
    """Fetch a record the caller is allowed to mutate, or raise."""
    identity = require_identity(identity)
    oid = to_object_id(resource_id)
    record = collection.find_one({"_id": oid})
    if record is None:
        raise NotFound(resource, resource_id)
    check_owner(record, owner_field, identity, resource)
    return record


def claim_matches(claimed: Optional[str], identity: str, field: str) -> None:
    """Reject a body field that names someone other than the token holder."""
    if claimed and not same_identity(claimed, identity):
        raise Forbidden(f"Forbidden: {field} does not match the signed-in user")
