"""MongoDB connection handling and FastAPI dependencies.

The process holds a single :class:`MongoConnection`. It opens the client
lazily on first use and caches the resulting ``Database`` handle. Callers
that arrive while the first attempt is still running wait on that same
attempt instead of opening their own client. A failed attempt is not
cached: the next caller starts over.
"""

import logging
import threading
from concurrent.futures import Future
from typing import Callable, Optional
from urllib.parse import urlsplit

from fastapi import Depends, HTTPException
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from .config import settings
from .errors import DatabaseUnavailableError
from .models import COURSE_COLLECTION, STUDENT_COLLECTION

logger = logging.getLogger("student_records.database")

UNINITIALIZED = "uninitialized"
CONNECTING = "connecting"
CONNECTED = "connected"
FAILED = "failed"


class MongoConnection:
    """Lazily connected, shared handle to the document store."""

    def __init__(
        self,
        uri: str,
        db_name: str,
        client_factory: Callable[..., MongoClient] = MongoClient,
        timeout_ms: int = 5000,
    ):
        self.uri = uri
        self.db_name = db_name
        self.timeout_ms = timeout_ms
        self._client_factory = client_factory
        self._lock = threading.Lock()
        self._client: Optional[MongoClient] = None
        self._database: Optional[Database] = None
        self._pending: Optional[Future] = None
        self.state = UNINITIALIZED

    @property
    def is_connected(self) -> bool:
        return self.state == CONNECTED and self._database is not None

    @property
    def host(self) -> str:
        if not self.uri:
            return "N/A"
        try:
            return urlsplit(self.uri).hostname or "N/A"
        except ValueError:
            return "N/A"

    def connect(self) -> Database:
        """Return the cached database, connecting first if needed.

        Raises `DatabaseUnavailableError` if the URI is missing or the
        server cannot be reached.
        """
        with self._lock:
            if self._database is not None:
                return self._database
            pending = self._pending
            owner = pending is None
            if owner:
                pending = self._pending = Future()
                self.state = CONNECTING
        if not owner:
            return pending.result()

        try:
            client, database = self._open()
        except Exception as exc:
            with self._lock:
                self._pending = None
                self.state = FAILED
            pending.set_exception(exc)
            raise
        with self._lock:
            self._client = client
            self._database = database
            self._pending = None
            self.state = CONNECTED
        pending.set_result(database)
        logger.info("mongo_connected host=%s db=%s", self.host, self.db_name)
        return database

    def _open(self):
        if not self.uri:
            raise DatabaseUnavailableError("MONGO_URI is not configured")
        client = None
        try:
            client = self._client_factory(self.uri, serverSelectionTimeoutMS=self.timeout_ms)
            client.admin.command("ping")
            database = client[self.db_name]
            ensure_indexes(database)
        except PyMongoError as exc:
            logger.error("mongo_connect_failed host=%s error=%s", self.host, exc)
            if client is not None:
                client.close()
            raise DatabaseUnavailableError(f"Could not connect to MongoDB: {exc}") from exc
        return client, database

    def close(self) -> None:
        with self._lock:
            client = self._client
            self._client = None
            self._database = None
            self.state = UNINITIALIZED
        if client is not None:
            client.close()


def ensure_indexes(database: Database) -> None:
    """Create the unique indexes backing email and course-name uniqueness."""
    database[STUDENT_COLLECTION].create_index([("email", ASCENDING)], unique=True)
    database[COURSE_COLLECTION].create_index([("name", ASCENDING)], unique=True)


connection = MongoConnection(
    settings.MONGO_URI,
    settings.MONGO_DB_NAME,
    timeout_ms=settings.MONGO_TIMEOUT_MS,
)


def get_connection() -> MongoConnection:
    """Return the process-wide connection (overridable in tests)."""
    return connection


def get_database(conn: MongoConnection = Depends(get_connection)) -> Database:
    """FastAPI dependency yielding a ready `Database` or failing with 503."""
    try:
        return conn.connect()
    except DatabaseUnavailableError as exc:
        logger.error("database_unavailable %s", exc)
        raise HTTPException(status_code=503, detail="Database unavailable")
