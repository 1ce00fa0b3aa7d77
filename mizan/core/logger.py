"""
Logging setup.

Modules either use the shared ``logger`` or create their own with
``setup_logger(__name__)``.
"""

import logging
import sys

from mizan.core.config import get_settings

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logger(name: str) -> logging.Logger:
    """
    Create (or fetch) a configured logger.

    Args:
        name: Logger name, usually the module's __name__

    Returns:
        Logger writing to stderr at the configured LOG_LEVEL
    """
    log = logging.getLogger(name)
    if not log.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT))
        log.addHandler(handler)
        log.propagate = False
    log.setLevel(get_settings().LOG_LEVEL.upper())
    return log


logger = setup_logger("mizan")
