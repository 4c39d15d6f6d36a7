# app/core/logging_config.py
import logging

from app.core.config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = LOG_LEVEL) -> None:
    """
    Configure the root logger once at startup.
    Module loggers (`logging.getLogger(__name__)`) inherit from it.
    """
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level.upper())
        return
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
