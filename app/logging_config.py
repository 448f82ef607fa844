"""
Structured logging configuration for the entire application.
Call setup_logging() once at startup (main.py).
"""

import logging
import sys


def setup_logging(level: str = "INFO"):
    """Configure stdout logging for the 'app' namespace. Safe to call twice."""
    root = logging.getLogger("app")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    if any(getattr(h, "_app_handler", False) for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    ))
    handler._app_handler = True
    root.addHandler(handler)
