"""Logging setup with an extra TRACE level for rendered SQL."""

import logging
from typing import Union

TRACE = 5

logging.addLevelName(TRACE, "TRACE")

logger = logging.getLogger(__name__)


def trace(logger: logging.Logger, message: str) -> None:
    """Log a message at TRACE level."""
    if logger.isEnabledFor(TRACE):
        logger.log(TRACE, message)


def configure_logging(level: Union[str, int] = "INFO") -> None:
    """Configure root logging in the service's format.

    Unknown level names fall back to INFO with a warning.
    """
    unknown = None
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        if not isinstance(resolved, int):
            unknown, resolved = level, logging.INFO
        level = resolved
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    if unknown is not None:
        logger.warning(f"Unknown log level {unknown!r}, using INFO")
