"""
Connection resolution.

A single SQLAlchemy engine is shared by every tool invocation. It is owned by
a ConnectionCache whose only mutators, ``get_or_create`` and ``replace``, run
entirely under one lock, engine establishment included.
"""

import threading
from collections.abc import Callable

import sqlalchemy
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from mysqlgate.config import MySQLSettings
from mysqlgate.dsn import build_descriptor, parse_dsn
from mysqlgate.errors import ConnectionFailed, MissingConnectionInfo, driver_message
from mysqlgate.models import ConnectionDescriptor
from mysqlgate.utils.logger import get_logger

logger = get_logger(__name__)

EngineFactory = Callable[[ConnectionDescriptor], Engine]


def configured_descriptor(settings: MySQLSettings) -> ConnectionDescriptor:
    """
    Resolve the descriptor from configuration alone.

    A configured DSN wins over structured parameters; structured parameters
    need at least a host and a user.

    Raises:
        MissingConnectionInfo: If neither is usable.
    """
    if settings.dsn.strip():
        return parse_dsn(settings.dsn, source="config")

    if not settings.host or not settings.user:
        raise MissingConnectionInfo(
            "MySQL connection information is required. Please provide a valid DSN "
            "parameter or configure MySQL connection in config file"
        )
    return build_descriptor(settings)


def create_engine_for(descriptor: ConnectionDescriptor) -> Engine:
    """Create an engine and open one connection to prove it works."""
    engine = None
    try:
        engine = sqlalchemy.create_engine(descriptor.url, pool_pre_ping=True)
        with engine.connect():
            pass
    except (SQLAlchemyError, TypeError, ValueError) as e:
        if engine is not None:
            engine.dispose()
        raise ConnectionFailed(
            f"failed to establish database connection: {driver_message(e)}"
        ) from e
    return engine


class ConnectionCache:
    """Lock-guarded holder of the process-wide engine."""

    def __init__(self, engine_factory: EngineFactory | None = None):
        self._engine_factory = engine_factory or create_engine_for
        self._lock = threading.Lock()
        self._engine: Engine | None = None
        self._descriptor: ConnectionDescriptor | None = None

    @property
    def descriptor(self) -> ConnectionDescriptor | None:
        with self._lock:
            return self._descriptor

    def get_or_create(self, settings: MySQLSettings) -> Engine:
        """Return the cached engine, establishing it from settings if absent."""
        with self._lock:
            if self._engine is not None:
                return self._engine

            descriptor = configured_descriptor(settings)
            logger.info(f"Connecting to {descriptor.masked()} (source: {descriptor.source})")
            self._engine = self._engine_factory(descriptor)
            self._descriptor = descriptor
            return self._engine

    def replace(self, descriptor: ConnectionDescriptor) -> Engine:
        """Discard the cached engine and establish a new one from ``descriptor``.

        The old engine is dropped before connecting, so a failed connection
        leaves the cache empty rather than pointing at the previous database.
        """
        with self._lock:
            self._discard()
            logger.info(f"Switching connection to {descriptor.masked()} (source: {descriptor.source})")
            self._engine = self._engine_factory(descriptor)
            self._descriptor = descriptor
            return self._engine

    def clear(self) -> None:
        with self._lock:
            self._discard()

    def _discard(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._descriptor = None


class ConnectionResolver:
    """
    Picks the connection for one invocation.

    Precedence: per-call DSN, then the cached engine, then the configured
    DSN, then structured host/user/password/port/database settings.
    """

    def __init__(self, settings: MySQLSettings, cache: ConnectionCache | None = None):
        self.settings = settings
        self.cache = cache or ConnectionCache()

    def resolve(self, dsn: str = "") -> Engine:
        if dsn and dsn.strip():
            return self.cache.replace(parse_dsn(dsn, source="tool"))
        return self.cache.get_or_create(self.settings)
