"""Project-wide logger factory.

Every module does ``log = get_logger(__name__)``. The first call wires a
single stream handler onto the ``sysbus_toolkit`` logger; later calls only
hand out children of it.
"""
from __future__ import annotations

import logging
import os
import sys
import threading

ROOT_LOGGER_NAME = "sysbus_toolkit"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LOCK = threading.Lock()
_CONFIGURED = False


def configure(level: str | int | None = None) -> logging.Logger:
    """Attach the stream handler (once) and set the level.

    *level* defaults to ``$SYSBUS_LOG_LEVEL`` or ``INFO``.
    """
    global _CONFIGURED

    root = logging.getLogger(ROOT_LOGGER_NAME)
    if level is None:
        level = os.getenv("SYSBUS_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = level.upper()

    with _LOCK:
        if not _CONFIGURED:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
            root.addHandler(handler)
            root.propagate = False
            _CONFIGURED = True
        root.setLevel(level)
    return root


def get_logger(name: str) -> logging.Logger:
    if not _CONFIGURED:
        configure()
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
