"""
Enums for the MediConnect agent.
"""

from .booking import AppointmentStatus, BookingSource, CancelledBy, PromotionLevel
from .conversation import ConversationState, IntentType, MessageDirection
from .language import Language

__all__ = [
    "AppointmentStatus",
    "BookingSource",
    "CancelledBy",
    "PromotionLevel",
    "ConversationState",
    "IntentType",
    "MessageDirection",
    "Language",
]
