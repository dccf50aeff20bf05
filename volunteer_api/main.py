import time
import traceback
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, settings as default_settings
from .db import ConnectionManager
from .exceptions import ApiError, InternalError, StoreConnectionError
from .logging_conf import get_logger, setup_logging
from .middleware import BodySizeLimitMiddleware
from .routers import applications, auth, health, users, volunteer

logger = get_logger("volunteer_api")


def _error_body(message: str, settings: Settings, exc: BaseException | None = None) -> dict:
    body = {"error": message}
    if exc is not None and not settings.is_production:
        body["traceback"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return body


def _cors_headers(request: Request, settings: Settings) -> dict:
    # the catch-all handler answers outside CORSMiddleware
    origin = request.headers.get("origin")
    if origin is None or origin.rstrip("/") not in settings.CORS_ORIGINS:
        return {}
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Credentials": "true",
        "Vary": "Origin",
    }


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError):
        if exc.status_code >= 500:
            logger.error("%s: %s", type(exc).__name__, exc.message, extra={"context": exc.context})
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)

    @app.exception_handler(PyMongoError)
    async def handle_store_error(request: Request, exc: PyMongoError):
        logger.exception("Database operation failed", extra={"path": request.url.path})
        return JSONResponse(status_code=500, content=_error_body(InternalError("Database operation failed").message, settings, exc))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error", extra={"path": request.url.path})
        return JSONResponse(
            status_code=500,
            content=_error_body(InternalError.default_message, settings, exc),
            headers=_cors_headers(request, settings),
        )


def add_middleware(app: FastAPI, settings: Settings) -> None:
    allowed_origins = set(settings.CORS_ORIGINS)

    # innermost first: add_middleware wraps what is already there
    app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.MAX_BODY_BYTES)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    @app.middleware("http")
    async def enforce_origin_allow_list(request: Request, call_next):
        # requests without an Origin (curl, server to server) always pass
        origin = request.headers.get("origin")
        if origin is not None and origin.rstrip("/") not in allowed_origins:
            logger.warning("CORS blocked origin", extra={"origin": origin, "path": request.url.path})
            return JSONResponse(
                status_code=403,
                content={"error": "CORS policy: This origin is not allowed."},
            )
        return await call_next(request)

    @app.middleware("http")
    async def request_logger(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        request.state.request_id = request_id
        start = time.perf_counter()
        logger.info(
            "request.start",
            extra={"method": request.method, "path": request.url.path, "request_id": request_id},
        )
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        response.headers["X-Request-ID"] = request_id
        logger.info(
            "request.end",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "elapsed_ms": round(elapsed_ms, 2),
                "request_id": request_id,
            },
        )
        return response


def create_app(settings: Settings | None = None, connection: ConnectionManager | None = None) -> FastAPI:
    settings = settings or default_settings
    setup_logging(settings.LOG_LEVEL)
    connection = connection or ConnectionManager(settings)
    if settings.is_production and settings.SECRET_KEY == "secret":
        logger.warning("SECRET_KEY is not set; session tokens use the default key")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.CONNECT_ON_STARTUP:
            try:
                await run_in_threadpool(connection.ensure_ready)
            except StoreConnectionError as e:
                # keep serving; data routes answer 503 until a restart
                logger.error("Starting without a database: %s", e)
        yield
        connection.close()

    app = FastAPI(title="Volunteer API", lifespan=lifespan)
    app.state.settings = settings
    app.state.connection = connection

    register_exception_handlers(app, settings)
    add_middleware(app, settings)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(volunteer.router)
    app.include_router(applications.router)
    app.include_router(users.router)
    return app


app = create_app()
