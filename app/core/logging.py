"""Logging for the PayBridge integration service.

Every module logs under the ``paybridge`` namespace, so vendor and store
activity can be filtered per module while sharing one stdout handler.
"""

import logging
import sys

# Third-party loggers that would otherwise log every vendor request at INFO
_CHATTY_LIBRARIES = ("httpx", "httpcore")


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure the ``paybridge`` logger once at application start-up.

    httpx and httpcore are held at WARNING unless ``level`` is DEBUG.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL (case-insensitive).
            Unrecognized names fall back to INFO.

    Returns:
        The ``paybridge`` logger.
    """
    log_format = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"
    resolved = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger("paybridge")
    logger.setLevel(resolved)

    # Prevent duplicate handlers if called multiple times
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(log_format, datefmt=date_format))
        logger.addHandler(handler)

    logger.propagate = False

    library_level = logging.DEBUG if resolved <= logging.DEBUG else logging.WARNING
    for name in _CHATTY_LIBRARIES:
        logging.getLogger(name).setLevel(library_level)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Child of the ``paybridge`` logger for one module.

    Usage:
        logger = get_logger(__name__)
        logger.info("Synced %d %s transactions", count, platform_id)
    """
    return logging.getLogger(f"paybridge.{name}")
