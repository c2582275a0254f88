"""Debug logging switch for the SDK's ``toucan_sdk`` logger tree."""

import logging
import sys

LOGGER_NAME = "toucan_sdk"
DEBUG_PREFIX = "[toucan-sdk]"

_handler: logging.Handler | None = None


def enable_debug_logging() -> logging.Handler:
    """Send SDK debug output to stderr.

    Idempotent: the handler is attached to the ``toucan_sdk`` logger once.
    """
    global _handler
    logger = logging.getLogger(LOGGER_NAME)
    if _handler is None:
        _handler = logging.StreamHandler(sys.stderr)
        _handler.setFormatter(logging.Formatter(f"{DEBUG_PREFIX} %(name)s: %(message)s"))
        logger.addHandler(_handler)
    logger.setLevel(logging.DEBUG)
    return _handler
