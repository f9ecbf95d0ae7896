"""
Service layer for the MediConnect agent.
"""

from .booking import BookingService
from .container import Services, build_services
from .conversation import ConversationLocks, ConversationStore
from .external import WhatsAppSender
from .intent import IntentExtractor
from .patient import PatientService
from .processor import MessageProcessor
from .search import DoctorSearchService

__all__ = [
    "BookingService",
    "Services",
    "build_services",
    "ConversationLocks",
    "ConversationStore",
    "WhatsAppSender",
    "IntentExtractor",
    "PatientService",
    "MessageProcessor",
    "DoctorSearchService",
]
