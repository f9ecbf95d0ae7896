"""
Conversation-related enums.
"""

from enum import Enum


class ConversationState(str, Enum):
    """States of the per-phone dialogue state machine."""

    IDLE = "idle"
    REGISTRATION_NAME = "registration_name"
    REGISTRATION_AGE = "registration_age"
    REGISTRATION_LANGUAGE = "registration_language"
    REGISTRATION_LOCATION = "registration_location"
    SELECTING_DOCTOR = "selecting_doctor"
    SELECTING_SLOT = "selecting_slot"
    CONFIRMING_BOOKING = "confirming_booking"
    SELECTING_RECORD = "selecting_record"
    SELECTING_APPOINTMENT_TO_CANCEL = "selecting_appointment_to_cancel"
    # Declared for the profile editing flow; nothing transitions into it yet.
    UPDATING_PROFILE = "updating_profile"

    @property
    def is_registration(self) -> bool:
        return self.value.startswith("registration")

    @classmethod
    def from_string(cls, value: str) -> "ConversationState":
        """Convert a stored value to a state, falling back to idle."""
        try:
            return cls(value)
        except ValueError:
            return cls.IDLE


class IntentType(str, Enum):
    """Intent categories produced by the intent extractor."""

    FIND_DOCTOR = "find_doctor"
    BOOK_APPOINTMENT = "book_appointment"
    VIEW_RECORDS = "view_records"
    CANCEL_APPOINTMENT = "cancel_appointment"
    CHECK_QUEUE = "check_queue"
    CHECK_STATUS = "check_status"
    VIEW_APPOINTMENTS = "view_appointments"
    UPDATE_PROFILE = "update_profile"
    ADD_FAMILY = "add_family"
    FAVORITES = "favorites"
    HELP = "help"
    GREETING = "greeting"
    YES = "yes"
    NO = "no"
    NUMBER = "number"
    CANCEL_FLOW = "cancel_flow"
    UNCLEAR = "unclear"


class MessageDirection(str, Enum):
    """Direction of a logged WhatsApp message."""

    INBOUND = "inbound"
    OUTBOUND = "outbound"
