from fastapi import APIRouter, Depends
from pymongo import ReturnDocument

from ..db import ConnectionManager, get_store
from ..exceptions import NotFound
from ..schemas import UserOut, UserUpsert
from ..services.auth_service import get_current_email
from ..services.authorization import claim_matches
from ..utils import serialize_document, utcnow

router = APIRouter(prefix="/users", tags=["users"])


def _find_user(store: ConnectionManager, email: str) -> dict:
    doc = store.users.find_one({"email": email})
    if doc is None:
        raise NotFound("User", email)
    return serialize_document(doc)


@router.post("", response_model=UserOut, response_model_exclude_unset=True)
def upsert_user(
    data: UserUpsert,
    store: ConnectionManager = Depends(get_store),
    email: str = Depends(get_current_email),
):
    now = utcnow()
    doc = store.users.find_one_and_update(
        {"email": email},
        {
            "$set": {**data.model_dump(exclude_unset=True), "updatedAt": now},
            "$setOnInsert": {"createdAt": now},
        },
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return serialize_document(doc)


@router.get("/me", response_model=UserOut, response_model_exclude_unset=True)
def get_me(store: ConnectionManager = Depends(get_store), email: str = Depends(get_current_email)):
    return _find_user(store, email)


@router.get("/{user_email}", response_model=UserOut, response_model_exclude_unset=True)
def get_user(
    user_email: str,
    store: ConnectionManager = Depends(get_store),
    email: str = Depends(get_current_email),
):
    # a path email is a claim like any other; it has to match the token
    claim_matches(user_email, email, "email")
    return _find_user(store, email)
