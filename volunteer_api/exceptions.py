"""Error taxonomy for the API.

Every error carries an HTTP status and a stable ``message`` that is returned
to the client as ``{"error": message}``. The handlers that render them are
registered in ``main.create_app``.
"""
from typing import Any, Dict, Optional


class ApiError(Exception):
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        # logged server side, never returned
        self.context = context or {}
        super().__init__(self.message)


class BadRequest(ApiError):
    status_code = 400
    default_message = "Bad request"


class Unauthorized(ApiError):
    status_code = 401
    default_message = "Unauthorized: No token"


class Forbidden(ApiError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(ApiError):
    status_code = 404
    default_message = "Not found"

    def __init__(self, resource: str = "Resource", resource_id: Optional[str] = None):
        context = {"resource": resource}
        if resource_id:
            context["resource_id"] = resource_id
        super().__init__(f"{resource} not found", context)


class PayloadTooLarge(ApiError):
    status_code = 413
    default_message = "Request body too large"


class InternalError(ApiError):
    status_code = 500
    default_message = "Internal server error"


class ServiceUnavailable(ApiError):
    status_code = 503
    default_message = "Database not connected"


class StoreConnectionError(ConnectionError):
    """The document store could not be reached."""
