"""Logging setup for the dealerdesk package."""

from __future__ import annotations

import logging

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a single stream handler to the ``dealerdesk`` logger.

    Safe to call more than once; the handler is only installed the first time.
    """
    root = logging.getLogger("dealerdesk")
    root.setLevel(level.upper())
    if not any(getattr(h, "_dealerdesk", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._dealerdesk = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    return root
