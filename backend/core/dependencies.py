from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from .database import DatabaseManager


def get_database_manager(request: Request) -> DatabaseManager:
    """Return the DatabaseManager the application was started with."""
    manager = getattr(request.app.state, "database", None)
    if manager is None:
        raise RuntimeError("DatabaseManager is not initialized.")
    return manager


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding an AsyncSession from the DatabaseManager."""
    manager = get_database_manager(request)
    async with manager.session() as session:
        yield session
