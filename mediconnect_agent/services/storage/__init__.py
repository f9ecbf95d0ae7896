"""
Datastore module.
"""

from .database import Database, new_id, now_iso

__all__ = ["Database", "new_id", "now_iso"]
