from typing import List

from starlette.datastructures import Headers
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .exceptions import ApiError, BadRequest, PayloadTooLarge
from .logging_conf import get_logger

logger = get_logger(__name__)


class BodySizeLimitMiddleware:
    """Reject request bodies larger than ``max_bytes`` with 413.

    A declared Content-Length is checked before the app runs. A body sent
    without one (chunked transfer) is read up to the limit first and then
    replayed to the app, so nothing past the limit is ever parsed.
    """

    def __init__(self, app: ASGIApp, max_bytes: int) -> None:
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        length = Headers(scope=scope).get("content-length")
        if length is not None:
            if not length.isdigit():
                await self._reject(BadRequest("Invalid Content-Length"), scope, receive, send)
            elif int(length) > self.max_bytes:
                await self._reject(PayloadTooLarge(), scope, receive, send)
            else:
                await self.app(scope, receive, send)
            return

        buffered: List[Message] = []
        size = 0
        while True:
            message = await receive()
            buffered.append(message)
            if message["type"] != "http.request":
                break
            size += len(message.get("body", b""))
            if size > self.max_bytes:
                await self._reject(PayloadTooLarge(), scope, receive, send)
                return
            if not message.get("more_body", False):
                break

        async def replay() -> Message:
            if buffered:
                return buffered.pop(0)
            return await receive()

        await self.app(scope, replay, send)

    async def _reject(self, error: ApiError, scope: Scope, receive: Receive, send: Send) -> None:
        logger.warning(error.message, extra={"path": scope.get("path"), "limit": self.max_bytes})
        response = JSONResponse(status_code=error.status_code, content={"error": error.message})
        await response(scope, receive, send)
