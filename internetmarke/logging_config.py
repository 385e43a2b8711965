"""JSON logging setup for the ``internetmarke`` logger tree."""

import logging
from typing import Optional

from pythonjsonlogger import jsonlogger

from internetmarke.gateway.logging_filters import CorrelationIdFilter

LOGGER_NAME = "internetmarke"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(correlation_id)s"


def configure_logging(level: int = logging.INFO, handler: Optional[logging.Handler] = None) -> logging.Logger:
    """Install a JSON handler on the package logger.

    Calling it again does not stack handlers: an existing handler is kept
    and only the level is updated.

    Args:
        level: Minimum level for the package logger.
        handler: Handler to use instead of a stderr ``StreamHandler``.

    Returns:
        logging.Logger: The configured ``internetmarke`` logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        h = handler or logging.StreamHandler()
        h.setFormatter(jsonlogger.JsonFormatter(LOG_FORMAT))
        h.addFilter(CorrelationIdFilter())
        logger.addHandler(h)
    logger.setLevel(level)
    return logger
