"""
Custom exceptions for the MediConnect agent.
"""

from .booking import BookingFlowError, SlotUnavailableError
from .conversation import ConversationConflictError, ConversationStateError
from .external import ExternalAPIError, IntentExtractionError, WhatsAppAPIError
from .patient import PatientLookupError

__all__ = [
    "BookingFlowError",
    "SlotUnavailableError",
    "ConversationStateError",
    "ConversationConflictError",
    "ExternalAPIError",
    "IntentExtractionError",
    "WhatsAppAPIError",
    "PatientLookupError",
]
