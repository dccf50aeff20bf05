import enum
import logging
import threading
from typing import Callable, Optional

from fastapi import Request
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from .config import Settings
from .exceptions import ServiceUnavailable, StoreConnectionError
from .logging_conf import get_logger

logger = get_logger(__name__)

VOLUNTEER = "volunteer"
APPLICATIONS = "applications"
USERS = "users"


class ConnectionState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    CONNECTING = "connecting"
    READY = "ready"
    FAILED = "failed"


class ConnectionManager:
    """Owns the single MongoDB client shared by every request.

    ``ensure_ready()`` connects once, retrying a bounded number of times;
    afterwards the manager is either READY for good or FAILED for good.
    Collection handles are assigned once under the lock and only read after.
    """

    def __init__(self, settings: Settings, client_factory: Callable[..., MongoClient] = MongoClient):
        self.settings = settings
        self._client_factory = client_factory
        self._lock = threading.Lock()
        self._state = ConnectionState.UNINITIALIZED
        self._client: Optional[MongoClient] = None
        self._collections: dict[str, Collection] = {}
        self.last_error: Optional[BaseException] = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is ConnectionState.READY

    def ensure_ready(self) -> None:
        if self._state is ConnectionState.READY:
            return
        with self._lock:
            if self._state is ConnectionState.READY:
                return
            if self._state is ConnectionState.FAILED:
                raise StoreConnectionError("Database connection failed") from self.last_error

            self._state = ConnectionState.CONNECTING
            logger.info("Connecting to MongoDB", extra={"db_name": self.settings.DB_NAME})
            try:
                client = self._retrying()(self._connect)
            except Exception as e:
                # anything short of a live client is terminal
                self._state = ConnectionState.FAILED
                self.last_error = e
                logger.error("Failed to connect to MongoDB: %s", e)
                raise StoreConnectionError(f"Database connection failed: {e}") from e

            db = client[self.settings.DB_NAME]
            self._collections = {
                VOLUNTEER: db[VOLUNTEER],
                APPLICATIONS: db[APPLICATIONS],
                USERS: db[USERS],
            }
            self._client = client
            self._state = ConnectionState.READY
            logger.info("MongoDB connected", extra={"db_name": self.settings.DB_NAME})

    def _retrying(self) -> Retrying:
        return Retrying(
            retry=retry_if_exception_type(PyMongoError),
            stop=stop_after_attempt(max(1, self.settings.DB_CONNECT_ATTEMPTS)),
            wait=wait_exponential(
                multiplier=self.settings.DB_RETRY_MIN_WAIT,
                max=self.settings.DB_RETRY_MAX_WAIT,
            )
            + wait_random(0, self.settings.DB_RETRY_JITTER),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def _connect(self) -> MongoClient:
        client = self._client_factory(
            self.settings.MONGO_URI,
            serverSelectionTimeoutMS=self.settings.SERVER_SELECTION_TIMEOUT_MS,
            tz_aware=True,
        )
        try:
            client.admin.command("ping")
        except PyMongoError:
            client.close()
            raise
        return client

    def collection(self, name: str) -> Collection:
        if not self.is_ready:
            raise ServiceUnavailable()
        return self._collections[name]

    @property
    def volunteers(self) -> Collection:
        return self.collection(VOLUNTEER)

    @property
    def applications(self) -> Collection:
        return self.collection(APPLICATIONS)

    @property
    def users(self) -> Collection:
        return self.collection(USERS)

    def close(self) -> None:
        with self._lock:
            if self._client is not None:
                self._client.close()
                logger.info("MongoDB connection closed")


def get_connection(request: Request) -> ConnectionManager:
    return request.app.state.connection


def get_store(request: Request) -> ConnectionManager:
    """Readiness gate: hand the manager to a route only once it is connected."""
    conn = get_connection(request)
    try:
        conn.ensure_ready()
    except StoreConnectionError:
        raise ServiceUnavailable("Database not connected", {"state": conn.state.value})
    return conn
