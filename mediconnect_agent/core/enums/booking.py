"""
Booking-related enums.
"""

from enum import Enum
from typing import Optional


class AppointmentStatus(str, Enum):
    """Appointment lifecycle status."""

    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    IN_CONSULTATION = "in_consultation"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @property
    def is_terminal(self) -> bool:
        return self in (self.COMPLETED, self.CANCELLED, self.NO_SHOW)

    @classmethod
    def active(cls) -> tuple:
        """Statuses of appointments still waiting to be seen."""
        return (cls.CONFIRMED, cls.CHECKED_IN, cls.IN_CONSULTATION)


class BookingSource(str, Enum):
    """Channel an appointment was booked through."""

    WHATSAPP = "whatsapp"
    WALK_IN = "walk_in"
    PHONE = "phone"
    RECEPTIONIST = "receptionist"


class CancelledBy(str, Enum):
    """Actor cancelling an appointment."""

    PATIENT = "patient"
    HOSPITAL = "hospital"


class PromotionLevel(str, Enum):
    """Hospital visibility boost used for search ranking."""

    PROMOTED = "promoted"
    PREMIUM = "premium"

    @classmethod
    def from_string(cls, value: Optional[str]) -> Optional["PromotionLevel"]:
        if not value:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None
