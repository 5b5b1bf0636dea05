"""Logging setup for the API process"""

import logging
import sys
from typing import List, Optional

from docpricing.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers keep these levels whatever LOG_LEVEL says
LIBRARY_LEVELS = {
    "uvicorn": logging.INFO,
    "sqlalchemy.engine": logging.WARNING,
}

_installed: List[logging.Handler] = []


def _build_handlers() -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.LOG_FILE:
        handlers.append(logging.FileHandler(settings.LOG_FILE))
    return handlers


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure the root logger from settings

    Calling it again replaces the handlers installed by the previous call.

    Args:
        level: Level name overriding ``LOG_LEVEL``
    """
    log_level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    root = logging.getLogger()

    while _installed:
        handler = _installed.pop()
        root.removeHandler(handler)
        handler.close()

    for handler in _build_handlers():
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        root.addHandler(handler)
        _installed.append(handler)
    root.setLevel(log_level)

    # The engine logs every recompute at DEBUG
    logging.getLogger("docpricing.pricing").setLevel(max(log_level, logging.INFO))
    for name, library_level in LIBRARY_LEVELS.items():
        logging.getLogger(name).setLevel(library_level)
