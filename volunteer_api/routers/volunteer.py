import re
from typing import List

from fastapi import APIRouter, Depends, Query, status
from pymongo import ReturnDocument

from ..db import ConnectionManager, get_store
from ..exceptions import BadRequest, NotFound
from ..logging_conf import get_logger
from ..schemas import (
    ApplicationOut,
    CountResult,
    InsertResult,
    VolunteerPostCreate,
    VolunteerPostOut,
    VolunteerPostUpdate,
)
from ..services.auth_service import get_current_email
from ..services.authorization import claim_matches, load_owned
from ..utils import serialize_document, to_object_id, utcnow

logger = get_logger(__name__)

router = APIRouter(prefix="/volunteer", tags=["volunteer"])

RESOURCE = "Volunteer post"


@router.get("", response_model=List[VolunteerPostOut], response_model_exclude_unset=True)
def list_posts(
    category: str | None = Query(default=None),
    search: str | None = Query(default=None),
    organizerEmail: str | None = Query(default=None),
    store: ConnectionManager = Depends(get_store),
):
    q = {}
    if category:
        q["category"] = {"$regex": f"^{re.escape(category.strip())}$", "$options": "i"}
    if search:
        q["title"] = {"$regex": re.escape(search.strip()), "$options": "i"}
    if organizerEmail:
        q["organizerEmail"] = organizerEmail.strip().lower()

    return [serialize_document(doc) for doc in store.volunteers.find(q).sort("createdAt", -1)]


@router.get("/{post_id}", response_model=VolunteerPostOut, response_model_exclude_unset=True)
def get_post(post_id: str, store: ConnectionManager = Depends(get_store)):
    doc = store.volunteers.find_one({"_id": to_object_id(post_id)})
    if doc is None:
        raise NotFound(RESOURCE, post_id)
    return serialize_document(doc)


@router.post("", response_model=InsertResult, status_code=status.HTTP_201_CREATED)
def create_post(
    data: VolunteerPostCreate,
    store: ConnectionManager = Depends(get_store),
    email: str = Depends(get_current_email),
):
    claim_matches(data.organizerEmail, email, "organizerEmail")

    now = utcnow()
    doc = data.model_dump(exclude_unset=True)
    doc.setdefault("volunteersNeeded", 0)
    doc.update({"organizerEmail": email, "createdAt": now, "updatedAt": now})

    result = store.volunteers.insert_one(doc)
    logger.info("Volunteer post created", extra={"post_id": str(result.inserted_id), "organizer": email})
    return {"acknowledged": result.acknowledged, "insertedId": str(result.inserted_id)}


@router.put("/{post_id}")
def update_post(
    post_id: str,
    data: VolunteerPostUpdate,
    store: ConnectionManager = Depends(get_store),
    email: str = Depends(get_current_email),
):
    record = load_owned(store.volunteers, post_id, "organizerEmail", email, RESOURCE)

    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise BadRequest("No fields to update")
    changes["updatedAt"] = utcnow()

    result = store.volunteers.update_one({"_id": record["_id"]}, {"$set": changes})
    return {"message": "Volunteer post updated successfully", "modifiedCount": result.modified_count}


@router.delete("/{post_id}")
def delete_post(
    post_id: str,
    store: ConnectionManager = Depends(get_store),
    email: str = Depends(get_current_email),
):
    record = load_owned(store.volunteers, post_id, "organizerEmail", email, RESOURCE)

    result = store.volunteers.delete_one({"_id": record["_id"]})
    if result.deleted_count == 0:
        # removed between the ownership check and the delete
        raise NotFound(RESOURCE, post_id)
    logger.info("Volunteer post deleted", extra={"post_id": post_id, "organizer": email})
    return {"message": "Volunteer post deleted successfully"}


def _adjust_count(store: ConnectionManager, post_id: str, delta: int) -> dict:
    oid = to_object_id(post_id)
    query = {"_id": oid}
    if delta < 0:
        # the guard makes the decrement atomic: it never crosses zero
        query["volunteersNeeded"] = {"$gte": -delta}

    doc = store.volunteers.find_one_and_update(
        query,
        {"$inc": {"volunteersNeeded": delta}, "$set": {"updatedAt": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if doc is None:
        if store.volunteers.find_one({"_id": oid}, {"_id": 1}) is None:
            raise NotFound(RESOURCE, post_id)
        raise BadRequest("No more volunteers needed", {"post_id": post_id})
    return {"id": str(doc["_id"]), "volunteersNeeded": doc["volunteersNeeded"]}


@router.patch("/{post_id}/decrease", response_model=CountResult)
def decrease_volunteers(post_id: str, store: ConnectionManager = Depends(get_store)):
    return _adjust_count(store, post_id, -1)


@router.patch("/{post_id}/increase", response_model=CountResult)
def increase_volunteers(post_id: str, store: ConnectionManager = Depends(get_store)):
    return _adjust_count(store, post_id, 1)


@router.get("/{post_id}/applications", response_model=List[ApplicationOut], response_model_exclude_unset=True)
def list_post_applications(
    post_id: str,
    store: ConnectionManager = Depends(get_store),
    email: str = Depends(get_current_email),
):
    record = load_owned(store.volunteers, post_id, "organizerEmail", email, RESOURCE)
    cursor = store.applications.find({"volunteerPostId": str(record["_id"])}).sort("createdAt", 1)
    return [serialize_document(doc) for doc in cursor]
