"""
Logging setup for the API process.

Modules log through `logging.getLogger(__name__)`; this installs the single
console handler they all share.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _log_unhandled(exc_type, exc_value, exc_traceback) -> None:
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return
    logging.getLogger().critical("Unhandled exception", exc_info=(exc_type, exc_value, exc_traceback))


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging once; later calls only adjust the level."""

    root = logging.getLogger()
    root.setLevel((level or "INFO").upper())

    if not any(getattr(h, "_warranty_console", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._warranty_console = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    sys.excepthook = _log_unhandled
