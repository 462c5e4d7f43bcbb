# src/remotescan/logging.py
"""
Logging helpers for remotescan.

Library code never configures handlers; it only asks for namespaced loggers.
The CLI (or the embedding host) decides where records go.

Verbose mode:
    REMOTESCAN_VERBOSE=1 lowers the package logger to DEBUG, which surfaces
    dropped-attribute notices and cost-estimate details.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

_ROOT = "remotescan"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger under the ``remotescan`` namespace."""
    if not name or name == _ROOT:
        logger = logging.getLogger(_ROOT)
    elif name.startswith(_ROOT + "."):
        logger = logging.getLogger(name)
    else:
        logger = logging.getLogger(f"{_ROOT}.{name}")

    if os.getenv("REMOTESCAN_VERBOSE"):
        logging.getLogger(_ROOT).setLevel(logging.DEBUG)
    return logger


def log_exception(logger: logging.Logger, message: str, exc: BaseException) -> None:
    """
    Log an exception that is being handled.

    The traceback is only attached in verbose mode; otherwise a single line
    with the exception type and message is enough.
    """
    if os.getenv("REMOTESCAN_VERBOSE"):
        logger.debug("%s: %s", message, exc, exc_info=exc)
    else:
        logger.debug("%s: %s: %s", message, type(exc).__name__, exc)


class _StderrHandler(logging.StreamHandler):
    """Writes to whatever sys.stderr is at emit time (it may be swapped)."""

    def __init__(self) -> None:
        super().__init__(sys.stderr)

    @property
    def stream(self):  # type: ignore[override]
        return sys.stderr

    @stream.setter
    def stream(self, value) -> None:
        pass


def configure_cli_logging(verbose: bool = False) -> None:
    """Attach a stderr handler for CLI runs (idempotent)."""
    root = logging.getLogger(_ROOT)
    if not any(isinstance(h, _StderrHandler) for h in root.handlers):
        handler = _StderrHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
