"""Logging setup for the command-line tools."""

from typing import Optional
import logging
import os

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"
LEVEL_ENV_VAR = "EVOARENA_LOG_LEVEL"


def configure_logging(level: Optional[str] = None, format: str = DEFAULT_FORMAT,
                      datefmt: str = DEFAULT_DATEFMT) -> str:
    """Configure root logging.

    Args:
        level: Explicit level name. Falls back to ``EVOARENA_LOG_LEVEL``, then INFO.
        format: Log format string
        datefmt: Date format string

    Returns:
        The resolved level name
    """
    raw_level = level if level is not None else os.getenv(LEVEL_ENV_VAR)
    resolved_level = (raw_level or "INFO").upper()
    logging.basicConfig(level=resolved_level, format=format, datefmt=datefmt)
    logging.getLogger().setLevel(resolved_level)
    return resolved_level
