import logging

from .config import Settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Libraries that log every request they make at INFO.
_CHATTY_LOGGERS = ("httpx", "httpcore")


def setup_logging(settings: Settings) -> None:
    """Configure root logging from LOG_LEVEL.

    Uvicorn's loggers follow the same level. SQL statements are only logged
    when LOG_PERSISTENCE is enabled; JWKS and discovery HTTP calls only at DEBUG.
    """
    level = logging.getLevelName(settings.log_level.upper())
    unknown_level = not isinstance(level, int)
    if unknown_level:
        level = logging.INFO

    logging.basicConfig(level=level, format=LOG_FORMAT)

    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(logger_name).setLevel(level)

    if level > logging.DEBUG:
        for logger_name in _CHATTY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    # With LOG_PERSISTENCE the engine is created with echo=True and logs on its own.
    if not settings.log_persistence:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    if unknown_level:
        logging.getLogger(__name__).warning("Unknown LOG_LEVEL %r, using INFO", settings.log_level)
