from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from ..config import Settings
from ..exceptions import Forbidden, Unauthorized
from ..logging_conf import get_logger

logger = get_logger(__name__)

# auto_error=False: a missing header falls through to the cookie
bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def create_access_token(email: str, settings: Settings, minutes: int | None = None) -> str:
    """Return a signed JWT carrying the caller's ``email`` claim."""
    exp_minutes = minutes if minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    now = datetime.now(timezone.utc)
    payload = {
        "email": email,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=exp_minutes)).timestamp()),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> dict:
    """Decode and validate a JWT; anything that fails verification is Forbidden."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        raise Forbidden("Forbidden: Token expired")
    except JWTError as e:
        logger.warning("Token verification failed: %s", e)
        raise Forbidden("Forbidden: Invalid token")

    if not payload.get("email"):
        raise Forbidden("Forbidden: Invalid token payload")
    return payload


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    samesite = settings.COOKIE_SAMESITE.lower()
    response.set_cookie(
        key=settings.COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        # browsers drop SameSite=None cookies that are not Secure
        secure=settings.COOKIE_SECURE or samesite == "none",
        samesite=samesite,
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    samesite = settings.COOKIE_SAMESITE.lower()
    response.delete_cookie(
        key=settings.COOKIE_NAME,
        httponly=True,
        secure=settings.COOKIE_SECURE or samesite == "none",
        samesite=samesite,
    )


def _extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials], settings: Settings) -> Optional[str]:
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.COOKIE_NAME)


def get_current_claims(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> dict:
    token = _extract_token(request, credentials, settings)
    if not token:
        raise Unauthorized("Unauthorized: No token")
    return decode_access_token(token, settings)


def get_current_email(claims: dict = Depends(get_current_claims)) -> str:
    """The caller identity. Only ever taken from a verified token."""
    return claims["email"].lower()
