"""
Message processing module.
"""

from .service import MessageProcessor

__all__ = ["MessageProcessor"]
