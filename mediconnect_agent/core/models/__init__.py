"""
Core data models for the MediConnect agent.
"""

from .booking import (
    AppointmentSummary,
    BookingResult,
    CancellationResult,
    ConsultationInfo,
    QueueStatus,
)
from .conversation import Conversation, ConversationContext, IncomingMessage
from .doctor import DoctorSearchResult, HospitalSummary, SearchCriteria, SlotOption
from .intent import ExtractedIntent
from .record import RecordAccessGrant, RecordSummary
from .user import GeocodeResult, NewUser, User

__all__ = [
    "AppointmentSummary",
    "BookingResult",
    "CancellationResult",
    "ConsultationInfo",
    "QueueStatus",
    "Conversation",
    "ConversationContext",
    "IncomingMessage",
    "DoctorSearchResult",
    "HospitalSummary",
    "SearchCriteria",
    "SlotOption",
    "ExtractedIntent",
    "RecordAccessGrant",
    "RecordSummary",
    "GeocodeResult",
    "NewUser",
    "User",
]
