import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx
from fastapi import FastAPI

from auth import DiscoveryError, OIDCVerifier
from core.config import Settings, get_settings
from core.database import DatabaseManager
from core.logging import setup_logging
from routes import (
    OPEN_BY_ID_ROUTES,
    build_entity_routers,
    register_exception_handlers,
    system_router,
)

logger = logging.getLogger(__name__)

DISCOVERY_TIMEOUT_SECONDS = 10.0


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the shared database manager and token verifier, then tear them down.

    Either one may already be on ``app.state`` (tests inject both); only what
    is built here is disposed here. Failing OIDC discovery aborts startup.
    """
    settings: Settings = app.state.settings
    owned_database: Optional[DatabaseManager] = None
    owned_client: Optional[httpx.AsyncClient] = None

    if app.state.database is None:
        owned_database = DatabaseManager(
            settings.resolved_database_url(), echo=settings.log_persistence
        )
        await owned_database.init()
        await owned_database.create_schema()
        app.state.database = owned_database

    try:
        if app.state.verifier is None:
            owned_client = httpx.AsyncClient(timeout=DISCOVERY_TIMEOUT_SECONDS)
            try:
                app.state.verifier = await OIDCVerifier.discover(
                    settings.oidc_issuer_url, settings.oidc_client_id, owned_client
                )
            except DiscoveryError:
                logger.error("OIDC discovery failed for %s", settings.oidc_issuer_url)
                raise

        logger.info("Application startup complete")
        yield
    finally:
        if owned_client is not None:
            await owned_client.aclose()
        if owned_database is not None:
            await owned_database.dispose()
            app.state.database = None
        logger.info("Application shutdown complete")


def create_app(
    settings: Optional[Settings] = None,
    *,
    database: Optional[DatabaseManager] = None,
    verifier: Optional[OIDCVerifier] = None,
) -> FastAPI:
    """Assemble the application.

    ``database`` and ``verifier`` are normally built during startup; passing
    them in skips that step.
    """
    settings = settings or get_settings()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.verifier = verifier

    register_exception_handlers(app)
    app.include_router(system_router)
    for router in build_entity_routers(settings.auth_protect_all_routes):
        app.include_router(router)

    if not settings.auth_protect_all_routes:
        # GET and DELETE by id stay open by default; see DESIGN.md before changing it.
        logger.warning(
            "Routes served without bearer authentication: %s (set AUTH_PROTECT_ALL_ROUTES=true to protect them)",
            ", ".join(OPEN_BY_ID_ROUTES),
        )
    return app


settings = get_settings()
setup_logging(settings)
app = create_app(settings)
