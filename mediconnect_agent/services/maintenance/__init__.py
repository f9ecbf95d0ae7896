"""
Scheduled maintenance jobs.
"""

from .reminders import ReminderService, ReminderStats
from .slots import SlotGenerationStats, SlotGenerator, generate_time_slots

__all__ = [
    "ReminderService",
    "ReminderStats",
    "SlotGenerationStats",
    "SlotGenerator",
    "generate_time_slots",
]
