import logging
import sys

from core.environment import settings


LOG_FORMAT = (
    "%(asctime)s [%(levelname)s] [%(name)s] [%(filename)s] [%(funcName)s]: %(message)s"
)


def configure_uvicorn_logger():
    for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        logging.getLogger(name).handlers.clear()
        get_logger(name)


def log_level() -> int:
    """`LOG_LEVEL` when set, otherwise INFO in production/staging and DEBUG elsewhere."""
    if settings.LOG_LEVEL:
        return logging.getLevelName(settings.LOG_LEVEL.upper())
    if settings.ENVIRONMENT.lower() in ["production", "staging"]:
        return logging.INFO
    return logging.DEBUG


def get_logger(name: str = "tabulary_app"):
    logger = logging.getLogger(name)
    logger.setLevel(log_level())

    if logger.handlers:
        return logger

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(stream_handler)
    logger.propagate = False
    return logger


app_logger = get_logger()


__all__ = ["app_logger", "configure_uvicorn_logger", "get_logger"]
