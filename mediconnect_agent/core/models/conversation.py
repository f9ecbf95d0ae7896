"""
Conversation data models.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from ..enums import ConversationState, IntentType
from .booking import AppointmentSummary
from .doctor import DoctorSearchResult, SlotOption
from .intent import ExtractedIntent
from .record import RecordSummary


class ConversationContext(BaseModel):
    """In-progress flow data persisted with the conversation."""

    model_config = ConfigDict(extra="ignore")

    # Search & booking
    search_results: Optional[List[DoctorSearchResult]] = None
    search_params: Optional[ExtractedIntent] = None
    selected_doctor: Optional[DoctorSearchResult] = None
    available_slots: Optional[List[SlotOption]] = None
    selected_slot: Optional[SlotOption] = None

    # Records & cancellation
    records: Optional[List[RecordSummary]] = None
    upcoming_appointments: Optional[List[AppointmentSummary]] = None

    # Registration
    name: Optional[str] = None
    age: Optional[int] = None
    language: Optional[str] = None

    def is_cancellation_flow(self) -> bool:
        """True for contexts written by the old overloaded doctor-selection flow."""
        return bool(
            self.search_params is not None
            and self.search_params.intent == IntentType.CANCEL_APPOINTMENT
        )

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)


class Conversation(BaseModel):
    """Per-phone dialogue session."""

    model_config = ConfigDict(extra="ignore")

    id: str
    phone: str
    user_id: Optional[str] = None
    state: ConversationState = ConversationState.IDLE
    context: ConversationContext = Field(default_factory=ConversationContext)
    last_message_at: datetime
    version: int = 0


class IncomingMessage(BaseModel):
    """Inbound WhatsApp message as delivered by the webhook."""

    model_config = ConfigDict(extra="forbid")

    sender: str
    body: str = ""
    message_sid: Optional[str] = None
    num_media: int = 0
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None
