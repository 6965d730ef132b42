"""
Logging setup.

Modules log through ``logging.getLogger(__name__)``; this only installs the
root handler and level once, from the app factory.
"""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install basic console logging unless a handler already exists (pytest, uvicorn)."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    else:
        root.setLevel(level)
