"""Mini README: Application-wide logging helpers for the tree survey toolkit.

Structure:
    * get_logger - factory that configures structured logging for modules.
    * configure_root_logger - installs the root handler and adjusts its level.

Usage:
    Modules import ``get_logger`` to create contextual loggers. The handler
    is attached exactly once, so reloading modules in development never
    duplicates output; later calls only change the level (the CLI and web
    interface pass the level from settings).
"""

from __future__ import annotations

import logging
from typing import Optional, Union

_LOGGER_INITIALISED = False


def configure_root_logger(level: Optional[Union[int, str]] = None) -> None:
    """Attach the timestamped root handler once and apply ``level`` if given."""

    global _LOGGER_INITIALISED
    root_logger = logging.getLogger()

    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        level = resolved if isinstance(resolved, int) else logging.INFO

    if _LOGGER_INITIALISED:
        if level is not None:
            root_logger.setLevel(level)
        return

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    root_logger.setLevel(logging.INFO if level is None else level)
    root_logger.addHandler(handler)
    _LOGGER_INITIALISED = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a module-specific logger ensuring baseline configuration."""

    configure_root_logger()
    return logging.getLogger(name)
