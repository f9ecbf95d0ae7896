"""
Utility modules for the MediConnect agent.
"""

from .date import LocalClock, format_display_date, format_time_12h, resolve_date
from .logging import configure_logging, get_logger
from .phone import PhoneNumberParser
from .rows import first_related

__all__ = [
    "LocalClock",
    "format_display_date",
    "format_time_12h",
    "resolve_date",
    "configure_logging",
    "get_logger",
    "PhoneNumberParser",
    "first_related",
]
