import logging

from .config import settings


def configure_logging():
    """Configure root logging once for the API process.

    Format is level, logger name and message. Handlers already installed by
    uvicorn or pytest are left alone.
    """
    if logging.getLogger().handlers:
        return
    fmt = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=fmt)


def get_logger(name: str):
    configure_logging()
    return logging.getLogger(name)
