"""
Tests for core models.
"""

import pytest
from pydantic import ValidationError

from mediconnect_agent.core.enums import (
    AppointmentStatus,
    ConversationState,
    IntentType,
    Language,
    PromotionLevel,
)
from mediconnect_agent.core.models import (
    AppointmentSummary,
    ConversationContext,
    DoctorSearchResult,
    ExtractedIntent,
    IncomingMessage,
)


class TestDoctorSearchResult:
    """Test DoctorSearchResult model."""

    def test_hospital_from_object(self):
        """Test a joined hospital given as a mapping."""
        doctor = DoctorSearchResult.from_row({
            "id": "d1", "name": "Rao", "specialization": "Cardiologist",
            "hospital": {"id": "h1", "name": "Apollo", "is_promoted": 1, "promotion_level": "Premium"},
        })
        assert doctor.hospital.promotion_level == PromotionLevel.PREMIUM
        assert doctor.hospital.is_promoted is True
        assert doctor.hospital_name == "Apollo"

    def test_hospital_from_list(self):
        """Test a joined hospital given as a one-element list."""
        doctor = DoctorSearchResult.from_row({
            "id": "d1", "name": "Rao", "specialization": "Cardiologist",
            "hospital": [{"id": "h1", "name": "Apollo", "promotion_level": "gold"}],
        })
        assert doctor.hospital.name == "Apollo"
        assert doctor.hospital.promotion_level is None

    def test_missing_hospital(self):
        """Test an empty join leaves no hospital."""
        doctor = DoctorSearchResult.from_row({
            "id": "d1", "name": "Rao", "specialization": "Cardiologist", "hospital": [],
        })
        assert doctor.hospital is None
        assert doctor.hospital_name == ""


class TestAppointmentSummary:
    """Test AppointmentSummary model."""

    def test_flattens_joined_rows(self):
        summary = AppointmentSummary.from_row({
            "id": "a1", "appointment_date": "2026-10-20", "appointment_time": "10:00",
            "status": "confirmed",
            "doctor": [{"id": "d1", "name": "Rao", "specialization": "ENT"}],
            "hospital": {"name": "City General", "address": "Road 1"},
        })
        assert summary.doctor_name == "Rao"
        assert summary.doctor_id == "d1"
        assert summary.hospital_address == "Road 1"


class TestConversationContext:
    """Test ConversationContext model."""

    def test_json_omits_empty_fields(self):
        ctx = ConversationContext(name="Ravi")
        assert ctx.to_json() == '{"name":"Ravi"}'

    def test_round_trips_nested_search_params(self):
        ctx = ConversationContext(
            search_params=ExtractedIntent(intent=IntentType.FIND_DOCTOR, specialty="ENT")
        )
        loaded = ConversationContext.model_validate_json(ctx.to_json())
        assert loaded.search_params.specialty == "ENT"
        assert loaded.is_cancellation_flow() is False

    def test_legacy_cancellation_context(self):
        ctx = ConversationContext(
            search_params=ExtractedIntent(intent=IntentType.CANCEL_APPOINTMENT)
        )
        assert ctx.is_cancellation_flow() is True

    def test_unknown_keys_are_ignored(self):
        ctx = ConversationContext.model_validate({"name": "Ravi", "stale_key": 1})
        assert ctx.name == "Ravi"


class TestIntentAndMessage:
    """Test ExtractedIntent and IncomingMessage."""

    def test_selection_prefers_number(self):
        assert ExtractedIntent(intent=IntentType.NUMBER, number=3, raw_text="2").selection() == 3

    def test_selection_from_text(self):
        assert ExtractedIntent(raw_text=" 2 ").selection() == 2
        assert ExtractedIntent(raw_text="two").selection() is None

    def test_location_pin(self):
        assert IncomingMessage(sender="whatsapp:+91", latitude=1.0, longitude=2.0).has_location
        assert not IncomingMessage(sender="whatsapp:+91", latitude=1.0).has_location

    def test_message_rejects_unknown_fields(self):
        with pytest.raises(ValidationError):
            IncomingMessage(sender="whatsapp:+91", profile="x")


class TestEnums:
    """Test enum helpers."""

    def test_terminal_statuses(self):
        assert AppointmentStatus.COMPLETED.is_terminal
        assert AppointmentStatus.NO_SHOW.is_terminal
        assert not AppointmentStatus.CHECKED_IN.is_terminal

    def test_state_from_string(self):
        assert ConversationState.from_string("selecting_slot") == ConversationState.SELECTING_SLOT
        assert ConversationState.from_string("bogus") == ConversationState.IDLE
        assert ConversationState.REGISTRATION_AGE.is_registration

    def test_language_from_string(self):
        assert Language.from_string(" hindi. ") == Language.HINDI
        assert Language.from_string("Other") is None
        assert Language.is_english(None)
