"""Shared helpers."""

import logging
from typing import Optional

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_ROOT = "mergetrack"


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Get a logger below the ``mergetrack`` namespace.

    A stream handler is attached once to the package root logger, so
    calling this from every module does not duplicate output.

    Args:
        name: Logger name. Prefixed with ``mergetrack.`` if not already.
        level: Optional level name (e.g. ``"DEBUG"``) applied to the root.

    Returns:
        Configured logger.
    """
    root = logging.getLogger(_ROOT)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
        root.setLevel(logging.INFO)
    if level is not None:
        root.setLevel(level.upper())

    if name != _ROOT and not name.startswith(_ROOT + "."):
        name = f"{_ROOT}.{name}"
    return logging.getLogger(name)
