"""
Server entrypoint: configure logging and run uvicorn with the app.

- Listens on BIND_ADDRESS (host:port).
- Closes idle keep-alive connections after IDLE_TIMEOUT_SECONDS.
- On SIGINT/SIGTERM stops accepting connections and waits up to
  SHUTDOWN_GRACE_SECONDS for in-flight requests before closing the rest.

Run from the backend dir: python backend_entry.py
  python backend_entry.py --create-schema   -> create missing tables and exit (no uvicorn)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# When run as a script, ensure backend dir is on path so "from main import app" works
_backend_dir = Path(__file__).resolve().parent
if str(_backend_dir) not in sys.path:
    sys.path.insert(0, str(_backend_dir))


def _run_create_schema() -> int:
    """Create missing tables for the configured database; exit. No uvicorn."""

    async def _run() -> int:
        from core.config import get_settings
        from core.database import DatabaseManager

        settings = get_settings()
        database = DatabaseManager(settings.resolved_database_url(), echo=settings.log_persistence)
        await database.init()
        try:
            await database.create_schema()
        finally:
            await database.dispose()
        return 0

    return asyncio.run(_run())


def main() -> int:
    parser = argparse.ArgumentParser(description="PAC backend: run the HTTP server")
    parser.add_argument("--create-schema", action="store_true", help="Create missing tables and exit (no server)")
    args, _ = parser.parse_known_args()

    from core.config import get_settings
    from core.logging import setup_logging

    settings = get_settings()
    setup_logging(settings)
    logger = logging.getLogger(__name__)

    if args.create_schema:
        return _run_create_schema()

    host, port = settings.bind_host_port()
    logger.info("Starting server on %s:%s", host, port)

    from main import app
    import uvicorn

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=settings.log_level.lower(),
        timeout_keep_alive=settings.idle_timeout_seconds,
        timeout_graceful_shutdown=settings.shutdown_grace_seconds,
    )
    logger.info("Server stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
