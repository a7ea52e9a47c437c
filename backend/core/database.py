from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from models import Base

logger = logging.getLogger(__name__)


def _sqlite_on_connect(dbapi_connection, connection_record) -> None:  # pragma: no cover
    """Per-connection pragmas: FK enforcement (delete rules depend on it) and WAL."""
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
    finally:
        cursor.close()


class DatabaseManager:
    """Owns the async engine and session factory for one database.

    One instance is built at startup and shared by every request; the
    engine's connection pool is the only resource requests contend for.
    Works against the embedded sqlite3 file and MySQL alike.
    """

    def __init__(self, database_url: str, echo: bool = False) -> None:
        self._url = make_url(database_url)
        self._echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def is_sqlite(self) -> bool:
        return self._url.get_backend_name() == "sqlite"

    @property
    def engine(self) -> Optional[AsyncEngine]:
        return self._engine

    def _engine_options(self) -> Dict[str, Any]:
        if self.is_sqlite:
            return {}
        # MySQL drops idle connections on its own schedule.
        return {"pool_pre_ping": True, "pool_recycle": 3600}

    async def init(self) -> None:
        """Create the engine and session factory; calling it twice is a no-op."""
        if self._engine is not None:
            return

        logger.info(
            "Connecting to %s database %s",
            self._url.get_backend_name(),
            self._url.render_as_string(hide_password=True),
        )
        self._engine = create_async_engine(self._url, echo=self._echo, **self._engine_options())
        if self.is_sqlite:
            event.listen(self._engine.sync_engine, "connect", _sqlite_on_connect)

        self._sessionmaker = async_sessionmaker(
            self._engine,
            expire_on_commit=False,
            class_=AsyncSession,
        )

    async def create_schema(self) -> None:
        """Create missing tables. Existing tables and columns are left untouched.

        Raises:
            OperationalError: when the database cannot be reached.
        """
        if self._engine is None:
            raise RuntimeError("DatabaseManager is not initialized. Call init() first.")
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except OperationalError:
            logger.error("Could not create schema on %s", self._url.render_as_string(hide_password=True))
            raise
        logger.info("Database schema is up to date (%d tables)", len(Base.metadata.tables))

    async def dispose(self) -> None:
        """Close pooled connections and forget the engine."""
        if self._engine is None:
            return
        logger.info("Closing database connections")
        await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield a session that commits when the block exits cleanly.

        Any exception rolls the whole unit of work back, so a failed request
        leaves no partial rows behind.
        """
        if self._sessionmaker is None:
            raise RuntimeError("DatabaseManager is not initialized. Call init() first.")

        async with self._sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
