"""
API handlers.
"""

from .health import HealthHandler
from .jobs import JobsHandler

__all__ = ["HealthHandler", "JobsHandler"]
