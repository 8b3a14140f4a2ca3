"""Logging configuration for the ledgerline package.

Library modules only call ``logging.getLogger(__name__)``; handlers are
attached once, by the CLI, through ``configure_logging``.
"""

import logging
import os
import sys
from typing import IO, Optional, Union

_PKG_LOGGER_NAME = "ledgerline"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_handler: Optional[logging.Handler] = None

# Silent unless an application configures logging
logging.getLogger(_PKG_LOGGER_NAME).addHandler(logging.NullHandler())


def parse_level(level: Union[int, str, None]) -> int:
    """Turn a level name or number into a logging level.

    None falls back to LEDGERLINE_LOG_LEVEL, then WARNING.
    """
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        level = level.strip().upper()
        if level.isdigit():
            return int(level)
        numeric = getattr(logging, level, None)
        if isinstance(numeric, int):
            return numeric
        raise ValueError(f"Unknown log level '{level}'")
    env_val = os.getenv("LEDGERLINE_LOG_LEVEL")
    if env_val:
        return parse_level(env_val)
    return logging.WARNING


def configure_logging(
    level: Union[int, str, None] = None,
    fmt: Optional[str] = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Attach a single stream handler to the package logger.

    Calling it again replaces the handler, so the level can be changed.
    """
    global _handler
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _handler is not None:
        logger.removeHandler(_handler)

    numeric = parse_level(level)
    _handler = logging.StreamHandler(stream)
    _handler.setLevel(numeric)
    _handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))
    logger.addHandler(_handler)
    logger.setLevel(numeric)
    logger.propagate = False
