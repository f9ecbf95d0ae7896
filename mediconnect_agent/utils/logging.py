"""
Logging setup.
"""

import logging
from typing import Optional

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_configured = False


def configure_logging(level: str = "INFO") -> None:
    """Configure the root handler once."""
    global _configured
    if _configured:
        logging.getLogger().setLevel(level.upper())
        return
    logging.basicConfig(level=level.upper(), format=_FORMAT)
    _configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger under the ``mediconnect`` namespace."""
    if not name:
        return logging.getLogger("mediconnect")
    if not name.startswith("mediconnect"):
        name = f"mediconnect.{name}"
    return logging.getLogger(name)
