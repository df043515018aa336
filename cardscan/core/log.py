"""
Logging setup for the CLI tools. Library modules only call logging.getLogger.
"""

from __future__ import annotations
import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int = "INFO", logfile: Optional[str] = None) -> logging.Logger:
    """Log to stderr and, if logfile is given, to that file as well."""
    root = logging.getLogger()
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    root.setLevel(level)

    fmt = logging.Formatter(LOG_FORMAT)
    for h in list(root.handlers):
        root.removeHandler(h)

    stream = logging.StreamHandler()
    stream.setFormatter(fmt)
    root.addHandler(stream)

    if logfile:
        d = os.path.dirname(logfile)
        if d:
            os.makedirs(d, exist_ok=True)
        fh = logging.FileHandler(logfile)
        fh.setFormatter(fmt)
        root.addHandler(fh)
        root.info("[logging] Writing debug output to: %s", logfile)
    return root
