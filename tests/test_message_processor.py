"""
End-to-end conversations through the message processor.
"""

import json
from datetime import timedelta

import pytest

from mediconnect_agent.core.enums import ConversationState, IntentType
from mediconnect_agent.core.models import (
    AppointmentSummary,
    ConversationContext,
    ExtractedIntent,
    IncomingMessage,
    RecordSummary,
    SlotOption,
)
from mediconnect_agent.utils.date import utc_now

from conftest import TODAY, TOMORROW

NEW_PHONE = "+911234500000"
RAVI = "+919000000001"


CARDIOLOGY = ExtractedIntent(intent=IntentType.FIND_DOCTOR, specialty="cardiologist")
IYER_SLOT = SlotOption(id="s-iyer-1", date=TODAY, time="10:00")

# (phone, linked user, state, context) for every state a conversation can sit in.
MID_FLOW = [
    (NEW_PHONE, None, ConversationState.REGISTRATION_NAME, ConversationContext()),
    (NEW_PHONE, None, ConversationState.REGISTRATION_AGE, ConversationContext(name="Asha")),
    (NEW_PHONE, None, ConversationState.REGISTRATION_LANGUAGE, ConversationContext(name="Asha", age=34)),
    (
        NEW_PHONE, None, ConversationState.REGISTRATION_LOCATION,
        ConversationContext(name="Asha", age=34, language="Hindi"),
    ),
    (RAVI, "u-ravi", ConversationState.SELECTING_DOCTOR, ConversationContext(search_params=CARDIOLOGY)),
    (
        RAVI, "u-ravi", ConversationState.SELECTING_SLOT,
        ConversationContext(search_params=CARDIOLOGY, available_slots=[IYER_SLOT]),
    ),
    (
        RAVI, "u-ravi", ConversationState.CONFIRMING_BOOKING,
        ConversationContext(available_slots=[IYER_SLOT], selected_slot=IYER_SLOT),
    ),
    (
        RAVI, "u-ravi", ConversationState.SELECTING_RECORD,
        ConversationContext(
            records=[RecordSummary(id="r-1", record_type="lab_report", created_at="2026-10-01T10:00:00+00:00")]
        ),
    ),
    (
        RAVI, "u-ravi", ConversationState.SELECTING_APPOINTMENT_TO_CANCEL,
        ConversationContext(
            upcoming_appointments=[
                AppointmentSummary(id="a-1", appointment_date=TOMORROW, appointment_time="10:00", status="confirmed")
            ]
        ),
    ),
]


def msg(body, sender=RAVI, **kwargs):
    return IncomingMessage(sender=f"whatsapp:{sender}", body=body, **kwargs)


async def state_of(store, phone=RAVI):
    return (await store.get(phone)).state


class TestRegistration:
    """First contact from an unknown number."""

    @pytest.mark.asyncio
    async def test_full_registration(self, processor, store, seeded_db):
        reply = await processor.process(msg("Hi", NEW_PHONE))
        assert "Welcome to MediConnect" in reply
        assert await state_of(store, NEW_PHONE) == ConversationState.REGISTRATION_NAME

        reply = await processor.process(msg("Asha", NEW_PHONE))
        assert "*Asha*" in reply
        assert await state_of(store, NEW_PHONE) == ConversationState.REGISTRATION_AGE

        reply = await processor.process(msg("34", NEW_PHONE))
        assert "Which language" in reply
        assert await state_of(store, NEW_PHONE) == ConversationState.REGISTRATION_LANGUAGE

        reply = await processor.process(msg("1", NEW_PHONE))
        assert "share your location" in reply
        assert await state_of(store, NEW_PHONE) == ConversationState.REGISTRATION_LOCATION

        reply = await processor.process(msg("Hyderabad", NEW_PHONE))
        assert "You're all set, *Asha*" in reply

        user = await seeded_db.fetch_one("SELECT * FROM users WHERE phone = ?", (NEW_PHONE,))
        assert user["name"] == "Asha"
        assert user["age"] == 34
        assert user["preferred_language"] == "English"
        assert user["city"] == "Hyderabad"
        assert user["latitude"] == pytest.approx(17.385)
        conversation = await store.get(NEW_PHONE)
        assert conversation.state == ConversationState.IDLE
        assert conversation.user_id == user["id"]
        assert conversation.context == ConversationContext()

    @pytest.mark.asyncio
    async def test_any_first_message_starts_registration(self, processor, fake_intents):
        fake_intents.on("I need a cardiologist", IntentType.FIND_DOCTOR, specialty="cardiologist")
        reply = await processor.process(msg("I need a cardiologist", NEW_PHONE))
        assert "What's your name?" in reply

    @pytest.mark.asyncio
    async def test_invalid_inputs_reprompt_without_transition(self, processor, store):
        await processor.process(msg("hello", NEW_PHONE))

        assert await processor.process(msg("A", NEW_PHONE)) == "Please enter your full name."
        assert await state_of(store, NEW_PHONE) == ConversationState.REGISTRATION_NAME

        await processor.process(msg("Asha", NEW_PHONE))
        for bad in ("abc", "0", "121"):
            assert "valid age" in await processor.process(msg(bad, NEW_PHONE))
        assert await state_of(store, NEW_PHONE) == ConversationState.REGISTRATION_AGE

        await processor.process(msg("34", NEW_PHONE))
        assert await processor.process(msg("5", NEW_PHONE)) == "Please reply with 1, 2, 3, or 4."
        assert await state_of(store, NEW_PHONE) == ConversationState.REGISTRATION_LANGUAGE

    @pytest.mark.asyncio
    async def test_gps_location_and_language_choice(self, processor, seeded_db):
        for body in ("hi", "Lakshmi", "52", "3"):
            await processor.process(msg(body, NEW_PHONE))
        await processor.process(msg("", NEW_PHONE, latitude=12.97, longitude=77.59))

        user = await seeded_db.fetch_one("SELECT * FROM users WHERE phone = ?", (NEW_PHONE,))
        assert user["preferred_language"] == "Telugu"
        assert user["latitude"] == pytest.approx(12.97)
        assert user["city"] is None

    @pytest.mark.asyncio
    async def test_replies_are_translated_after_registering_in_hindi(self, processor, fake_intents):
        for body in ("hi", "Asha", "34", "2", "Pune"):
            await processor.process(msg(body, NEW_PHONE))

        reply = await processor.process(msg("hello", NEW_PHONE))

        assert reply.startswith("[Hindi] ")
        assert fake_intents.translations[-1][1] == "Hindi"


class TestBookingFlow:
    """Search, choose a doctor and slot, confirm."""

    @pytest.mark.asyncio
    async def test_search_to_booking(self, processor, store, seeded_db, fake_intents):
        fake_intents.on("I need a cardiologist", IntentType.FIND_DOCTOR, specialty="cardiologist")

        reply = await processor.process(msg("I need a cardiologist"))
        assert "Found *2 doctors*" in reply
        assert reply.index("Meera Iyer") < reply.index("Arjun Rao")
        assert await state_of(store) == ConversationState.SELECTING_DOCTOR

        reply = await processor.process(msg("1"))
        assert "*Dr. Meera Iyer*" in reply
        assert "Today at 10:00 AM" in reply
        assert await state_of(store) == ConversationState.SELECTING_SLOT

        reply = await processor.process(msg("2"))
        assert "Confirm your booking?" in reply
        assert "Today at 10:30 AM" in reply
        assert await state_of(store) == ConversationState.CONFIRMING_BOOKING

        reply = await processor.process(msg("yes"))
        assert "Appointment Confirmed!" in reply
        conversation = await store.get(RAVI)
        assert conversation.state == ConversationState.IDLE
        assert conversation.context == ConversationContext()

        row = await seeded_db.fetch_one("SELECT * FROM appointments WHERE slot_id = 's-iyer-2'")
        assert row["user_id"] == "u-ravi"
        assert row["confirmation_code"] in reply

    @pytest.mark.asyncio
    async def test_out_of_range_doctor_reprompts(self, processor, store, fake_intents):
        fake_intents.on("cardiologist please", IntentType.FIND_DOCTOR, specialty="cardiologist")
        await processor.process(msg("cardiologist please"))

        reply = await processor.process(msg("7"))

        assert reply == "Please reply with a number between 1 and 2."
        assert await state_of(store) == ConversationState.SELECTING_DOCTOR

    @pytest.mark.asyncio
    async def test_no_results_stays_idle(self, processor, store, fake_intents):
        fake_intents.on("need a neurologist", IntentType.FIND_DOCTOR, specialty="neurologist")
        reply = await processor.process(msg("need a neurologist"))
        assert "couldn't find any doctors" in reply
        assert await state_of(store) == ConversationState.IDLE

    @pytest.mark.asyncio
    async def test_looks_ahead_when_requested_day_is_full(
        self, processor, store, seeded_db, fake_intents
    ):
        await seeded_db.execute(
            "UPDATE appointment_slots SET is_available = 0 WHERE doctor_id = 'd-iyer' AND slot_date = ?",
            (TODAY,),
        )
        fake_intents.on("cardiologist today", IntentType.FIND_DOCTOR, specialty="cardiologist", date="today")
        await processor.process(msg("cardiologist today"))

        # Iyer still ranks first: premium, with tomorrow's slot as next availability.
        reply = await processor.process(msg("1"))

        assert "Tomorrow at 10:00 AM" in reply
        conversation = await store.get(RAVI)
        assert conversation.state == ConversationState.SELECTING_SLOT
        assert [s.date for s in conversation.context.available_slots] == [TOMORROW]

    @pytest.mark.asyncio
    async def test_no_slots_in_window_resets(self, processor, store, seeded_db, fake_intents):
        await seeded_db.execute("UPDATE appointment_slots SET is_available = 0 WHERE doctor_id = 'd-rao'")
        fake_intents.on("cardiologist", IntentType.FIND_DOCTOR, specialty="cardiologist")
        await processor.process(msg("cardiologist"))

        reply = await processor.process(msg("2"))

        assert "no available slots in the next 7 days" in reply
        assert await state_of(store) == ConversationState.IDLE

    @pytest.mark.asyncio
    async def test_confirmation_reprompt_and_decline(self, processor, store, fake_intents):
        fake_intents.on("cardiologist", IntentType.FIND_DOCTOR, specialty="cardiologist")
        for body in ("cardiologist", "1", "1"):
            await processor.process(msg(body))

        assert await processor.process(msg("maybe")) == "Please reply *YES* to confirm or *NO* to cancel."
        assert await state_of(store) == ConversationState.CONFIRMING_BOOKING

        reply = await processor.process(msg("no"))
        assert "Okay, cancelled" in reply
        assert await state_of(store) == ConversationState.IDLE

    @pytest.mark.asyncio
    async def test_slot_taken_before_confirmation(self, processor, store, booking_service, fake_intents):
        fake_intents.on("cardiologist", IntentType.FIND_DOCTOR, specialty="cardiologist")
        for body in ("cardiologist", "1", "1"):
            await processor.process(msg(body))
        await booking_service.book("u-ravi", "d-iyer", "s-iyer-1", TODAY, "10:00")

        reply = await processor.process(msg("yes"))

        assert reply.startswith("❌ Booking failed:")
        assert await state_of(store) == ConversationState.IDLE


class TestGlobalRules:
    """Cancel-anywhere, staleness, error recovery, dedupe."""

    @pytest.mark.asyncio
    async def test_cancel_from_any_state(self, processor, store, fake_intents):
        fake_intents.on("cardiologist", IntentType.FIND_DOCTOR, specialty="cardiologist")
        await processor.process(msg("cardiologist"))
        await processor.process(msg("1"))
        assert await state_of(store) == ConversationState.SELECTING_SLOT

        reply = await processor.process(msg("CANCEL"))

        assert "Back to the main menu" in reply
        conversation = await store.get(RAVI)
        assert conversation.state == ConversationState.IDLE
        assert conversation.context == ConversationContext()

    @pytest.mark.asyncio
    async def test_cancel_flow_intent(self, processor, store, fake_intents):
        fake_intents.on("start over", IntentType.CANCEL_FLOW)
        await processor.process(msg("hi", NEW_PHONE))
        await processor.process(msg("Asha", NEW_PHONE))

        reply = await processor.process(msg("start over", NEW_PHONE))

        assert "Back to the main menu" in reply
        assert await state_of(store, NEW_PHONE) == ConversationState.IDLE

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", ["CANCEL", "start over"])
    @pytest.mark.parametrize(
        "phone,user_id,state,context", MID_FLOW, ids=[entry[2].value for entry in MID_FLOW]
    )
    async def test_cancel_clears_every_flow_state(
        self, processor, store, fake_intents, responses, body, phone, user_id, state, context
    ):
        fake_intents.on("start over", IntentType.CANCEL_FLOW)
        await store.update(await store.get_or_create(phone), state, context, user_id=user_id)

        reply = await processor.process(msg(body, phone))

        assert reply == responses.cancel_flow()
        conversation = await store.get(phone)
        assert conversation.state == ConversationState.IDLE
        assert conversation.context == ConversationContext()

    @pytest.mark.asyncio
    async def test_stale_selection_is_discarded(self, processor, store, seeded_db, fake_intents):
        fake_intents.on("cardiologist", IntentType.FIND_DOCTOR, specialty="cardiologist")
        await processor.process(msg("cardiologist"))
        await processor.process(msg("1"))
        await seeded_db.execute(
            "UPDATE whatsapp_conversations SET last_message_at = ? WHERE phone = ?",
            ((utc_now() - timedelta(minutes=61)).isoformat(), RAVI),
        )

        reply = await processor.process(msg("2"))

        assert "didn't quite understand" in reply
        assert await state_of(store) == ConversationState.IDLE

    @pytest.mark.asyncio
    async def test_exception_resets_conversation(self, processor, store, fake_intents):
        fake_intents.on("cardiologist", IntentType.FIND_DOCTOR, specialty="cardiologist")
        await processor.process(msg("cardiologist"))
        fake_intents.extract_error = RuntimeError("model exploded")

        reply = await processor.process(msg("1"))

        assert "Something went wrong" in reply
        assert await state_of(store) == ConversationState.IDLE

    @pytest.mark.asyncio
    async def test_duplicate_message_sid_is_ignored(self, processor, seeded_db):
        first = await processor.process(msg("hi", message_sid="SM-dup"))
        second = await processor.process(msg("hi", message_sid="SM-dup"))

        assert "health assistant" in first
        assert second is None
        rows = await seeded_db.fetch_all(
            "SELECT id FROM whatsapp_messages WHERE provider_message_id = 'SM-dup'"
        )
        assert len(rows) == 1

    @pytest.mark.asyncio
    async def test_unparseable_sender(self, processor):
        assert await processor.process(IncomingMessage(sender="whatsapp:", body="hi")) is None

    @pytest.mark.asyncio
    async def test_inbound_messages_are_logged(self, processor, seeded_db):
        await processor.process(msg("hello", message_sid="SM-log"))
        row = await seeded_db.fetch_one(
            "SELECT direction, message_text FROM whatsapp_messages WHERE provider_message_id = 'SM-log'"
        )
        assert row == {"direction": "inbound", "message_text": "hello"}


class TestIdleIntents:
    """Single-turn intents and the cancellation and records flows."""

    @pytest.mark.asyncio
    async def test_help_and_unclear(self, processor, fake_intents):
        fake_intents.on("help", IntentType.HELP)
        assert "How can I help?" in await processor.process(msg("help"))
        assert "didn't quite understand" in await processor.process(msg("asdf"))

    @pytest.mark.asyncio
    async def test_queue_status(self, processor, fake_intents, add_appointment):
        await add_appointment(appointment_time="09:30", status="checked_in", user_id="u-meena")
        mine = await add_appointment(appointment_time="10:30")
        fake_intents.on("queue status", IntentType.CHECK_QUEUE)

        reply = await processor.process(msg("queue status"))

        assert "Your appointment: 10:30 AM" in reply
        assert "1 patient ahead" in reply
        assert "Est. wait: 30 mins" in reply
        assert mine

    @pytest.mark.asyncio
    async def test_queue_status_without_appointment(self, processor, fake_intents):
        fake_intents.on("where am i in line", IntentType.CHECK_STATUS)
        reply = await processor.process(msg("where am i in line"))
        assert "don't have any appointments today" in reply

    @pytest.mark.asyncio
    async def test_view_appointments(self, processor, fake_intents, add_appointment):
        await add_appointment(appointment_date=TOMORROW, appointment_time="11:00")
        fake_intents.on("my appointments", IntentType.VIEW_APPOINTMENTS)

        reply = await processor.process(msg("my appointments"))

        assert "1. Tomorrow at 11:00 AM" in reply
        assert "Dr. Meera Iyer @ Apollo Heart Centre" in reply

    @pytest.mark.asyncio
    async def test_cancel_appointment_flow(self, processor, store, seeded_db, fake_intents, add_appointment):
        appointment_id = await add_appointment(
            appointment_date=TOMORROW, appointment_time="10:00", slot_id="s-iyer-4"
        )
        await seeded_db.execute("UPDATE appointment_slots SET is_available = 0 WHERE id = 's-iyer-4'")
        fake_intents.on("cancel my appointment", IntentType.CANCEL_APPOINTMENT)

        reply = await processor.process(msg("cancel my appointment"))
        assert "Reply with number to cancel" in reply
        conversation = await store.get(RAVI)
        assert conversation.state == ConversationState.SELECTING_APPOINTMENT_TO_CANCEL
        assert conversation.context.upcoming_appointments[0].id == appointment_id

        assert "Invalid selection" in await processor.process(msg("4"))

        reply = await processor.process(msg("1"))
        assert "Appointment Cancelled" in reply
        row = await seeded_db.fetch_one("SELECT status FROM appointments WHERE id = ?", (appointment_id,))
        assert row["status"] == "cancelled"
        slot = await seeded_db.fetch_one("SELECT is_available FROM appointment_slots WHERE id = 's-iyer-4'")
        assert slot["is_available"] == 1
        assert await state_of(store) == ConversationState.IDLE

    @pytest.mark.asyncio
    async def test_cancel_too_late_reports_failure(self, processor, store, fake_intents, add_appointment):
        await add_appointment(appointment_date=TODAY, appointment_time="10:00")
        fake_intents.on("cancel my appointment", IntentType.CANCEL_APPOINTMENT)
        await processor.process(msg("cancel my appointment"))

        reply = await processor.process(msg("1"))

        assert reply.startswith("❌ Could not cancel:")
        assert await state_of(store) == ConversationState.IDLE

    @pytest.mark.asyncio
    async def test_nothing_to_cancel(self, processor, store, fake_intents):
        fake_intents.on("cancel my appointment", IntentType.CANCEL_APPOINTMENT)
        reply = await processor.process(msg("cancel my appointment"))
        assert reply == "📅 You have no upcoming appointments to cancel."
        assert await state_of(store) == ConversationState.IDLE

    @pytest.mark.asyncio
    async def test_legacy_cancellation_context_in_doctor_selection(
        self, processor, store, seeded_db, add_appointment
    ):
        appointment_id = await add_appointment(appointment_date=TOMORROW)
        conversation = await store.get_or_create(RAVI)
        await store.update(
            conversation,
            ConversationState.SELECTING_DOCTOR,
            ConversationContext(
                search_results=[],
                search_params=ExtractedIntent(intent=IntentType.CANCEL_APPOINTMENT),
            ),
            user_id="u-ravi",
        )

        reply = await processor.process(msg("1"))

        assert "Appointment Cancelled" in reply
        row = await seeded_db.fetch_one("SELECT status FROM appointments WHERE id = ?", (appointment_id,))
        assert row["status"] == "cancelled"

    @pytest.mark.asyncio
    async def test_records_and_secure_link(self, processor, store, seeded_db, fake_intents):
        await seeded_db.insert(
            "medical_records",
            {
                "id": "r-1", "user_id": "u-ravi", "hospital_id": "h-plain",
                "record_type": "lab_report", "title": "Blood Test",
                "created_at": "2026-10-01T10:00:00+00:00",
            },
        )
        fake_intents.on("my records", IntentType.VIEW_RECORDS)

        reply = await processor.process(msg("my records"))
        assert "Blood Test" in reply
        assert "1 Oct 2026" in reply
        assert await state_of(store) == ConversationState.SELECTING_RECORD

        reply = await processor.process(msg("1"))
        assert "https://app.example.com/view-record?token=" in reply
        assert await state_of(store) == ConversationState.IDLE

        token_row = await seeded_db.fetch_one("SELECT * FROM record_access_tokens WHERE record_id = 'r-1'")
        assert token_row["user_id"] == "u-ravi"
        audit = await seeded_db.fetch_one("SELECT * FROM audit_logs WHERE entity_id = 'r-1'")
        assert audit["action"] == "medical_record.access_requested"
        assert "otp" not in json.loads(audit["metadata"])

    @pytest.mark.asyncio
    async def test_no_records_stays_idle(self, processor, store, fake_intents):
        fake_intents.on("my records", IntentType.VIEW_RECORDS)
        reply = await processor.process(msg("my records"))
        assert "don't have any medical records yet" in reply
        assert await state_of(store) == ConversationState.IDLE
