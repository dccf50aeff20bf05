from typing import List

from bson import ObjectId
from fastapi import APIRouter, Depends, status

from ..db import ConnectionManager, get_store
from ..exceptions import NotFound
from ..logging_conf import get_logger
from ..schemas import ApplicationCreate, ApplicationOut, ApplicationStatusUpdate, Message
from ..services.auth_service import get_current_email
from ..services.authorization import check_owner, claim_matches, load_owned
from ..utils import serialize_document, to_object_id, utcnow

logger = get_logger(__name__)

router = APIRouter(prefix="/applications", tags=["applications"])

RESOURCE = "Application"


@router.post("", response_model=ApplicationOut, response_model_exclude_unset=True, status_code=status.HTTP_201_CREATED)
def create_application(
    data: ApplicationCreate,
    store: ConnectionManager = Depends(get_store),
    email: str = Depends(get_current_email),
):
    claim_matches(data.userEmail, email, "userEmail")

    now = utcnow()
    doc = data.model_dump(exclude_unset=True, exclude={"userEmail"})
    doc.update({"userEmail": email, "status": "requested", "createdAt": now, "updatedAt": now})

    result = store.applications.insert_one(doc)
    logger.info(
        "Application submitted",
        extra={"application_id": str(result.inserted_id), "volunteer_post_id": data.volunteerPostId},
    )
    return serialize_document({**doc, "_id": result.inserted_id})


@router.get("", response_model=List[ApplicationOut], response_model_exclude_unset=True)
def list_my_applications(
    store: ConnectionManager = Depends(get_store),
    email: str = Depends(get_current_email),
):
    # the token claim is the only filter; query parameters are ignored
    cursor = store.applications.find({"userEmail": email}).sort("createdAt", -1)
    return [serialize_document(doc) for doc in cursor]


@router.get("/{application_id}", response_model=ApplicationOut, response_model_exclude_unset=True)
def get_application(
    application_id: str,
    store: ConnectionManager = Depends(get_store),
    email: str = Depends(get_current_email),
):
    record = load_owned(store.applications, application_id, "userEmail", email, RESOURCE)
    return serialize_document(record)


@router.patch("/{application_id}/status", response_model=ApplicationOut, response_model_exclude_unset=True)
def update_application_status(
    application_id: str,
    data: ApplicationStatusUpdate,
    store: ConnectionManager = Depends(get_store),
    email: str = Depends(get_current_email),
):
    """Approve or reject an application. Only the organizer of the post may do this."""
    record = store.applications.find_one({"_id": to_object_id(application_id)})
    if record is None:
        raise NotFound(RESOURCE, application_id)

    post_id = record.get("volunteerPostId")
    # references are not validated on create, so a dangling one is just missing
    post = store.volunteers.find_one({"_id": ObjectId(post_id)}) if ObjectId.is_valid(post_id) else None
    if post is None:
        raise NotFound("Volunteer post", post_id)
    check_owner(post, "organizerEmail", email, "Volunteer post")

    changes = {"status": data.status, "updatedAt": utcnow()}
    store.applications.update_one({"_id": record["_id"]}, {"$set": changes})
    record.update(changes)
    logger.info("Application status changed", extra={"application_id": application_id, "status": data.status})
    return serialize_document(record)


@router.delete("/{application_id}", response_model=Message)
def delete_application(
    application_id: str,
    store: ConnectionManager = Depends(get_store),
    email: str = Depends(get_current_email),
):
    record = load_owned(store.applications, application_id, "userEmail", email, RESOURCE)

    result = store.applications.delete_one({"_id": record["_id"]})
    if result.deleted_count == 0:
        raise NotFound(RESOURCE, application_id)
    return {"message": "Application deleted successfully"}
