"""
Logging setup shared by every package.

Modules obtain loggers with::

    from utils.log import get_logger
    logger = get_logger(__name__)

Configuration happens once, at the entrypoint (``manage.py`` or the app
factory), through ``configure_logging``.
"""
from __future__ import annotations

import logging
import sys


DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"


def configure_logging(level=logging.INFO, fmt: str = DEFAULT_FORMAT, stream=sys.stdout) -> None:
    """
    Configure the root logging handler.

    Safe to call multiple times; a second call only changes the level.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter(fmt))
        root.addHandler(handler)

    root.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Return a logger; does not configure anything."""
    return logging.getLogger(name)
