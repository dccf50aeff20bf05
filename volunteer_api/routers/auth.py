from fastapi import APIRouter, Depends, Response

from ..config import Settings
from ..exceptions import BadRequest
from ..logging_conf import get_logger
from ..schemas import TokenRequest
from ..services.auth_service import (
    clear_session_cookie,
    create_access_token,
    get_current_claims,
    get_settings,
    set_session_cookie,
)

logger = get_logger(__name__)

router = APIRouter(tags=["auth"])


@router.post("/jwt")
def issue_token(body: TokenRequest, response: Response, settings: Settings = Depends(get_settings)):
    if not body.email:
        raise BadRequest("Email is required")

    token = create_access_token(body.email, settings)
    set_session_cookie(response, token, settings)
    logger.info("Issued session token", extra={"email": body.email})
    return {"success": True}


@router.post("/logout")
def logout(response: Response, settings: Settings = Depends(get_settings)):
    clear_session_cookie(response, settings)
    return {"success": True}


@router.get("/protected")
def protected(claims: dict = Depends(get_current_claims)):
    return {"message": "Access granted!", "user": claims}
