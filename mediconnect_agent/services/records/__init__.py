"""
Medical record access module.
"""

from .service import RecordAccessService

__all__ = ["RecordAccessService"]
