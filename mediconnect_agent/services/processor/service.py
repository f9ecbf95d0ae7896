"""
Message processor: the per-phone conversation state machine.
"""

from datetime import date, timedelta
from typing import Awaitable, Callable, Dict, List, Optional

from ...core.enums import CancelledBy, ConversationState, IntentType, Language, MessageDirection
from ...core.exceptions import ConversationStateError
from ...core.models import (
    Conversation,
    ConversationContext,
    ExtractedIntent,
    IncomingMessage,
    NewUser,
    SearchCriteria,
    SlotOption,
    User,
)
from ...utils.date import LocalClock, parse_date, resolve_date
from ...utils.logging import get_logger
from ...utils.phone import PhoneNumberParser
from ..booking import BookingService
from ..conversation import ConversationLocks, ConversationStore
from ..intent import IntentExtractor
from ..patient import GeocodingProvider, PatientService
from ..records import RecordAccessService
from ..responses import ResponseGenerator
from ..search import DoctorSearchService

logger = get_logger("processor")

Handler = Callable[[Conversation, IncomingMessage, ExtractedIntent, Optional[User]], Awaitable[str]]

CANCEL_COMMAND = "cancel"


def _pick(items: Optional[List], selection: Optional[int]):
    """1-based selection into ``items``, or None when out of range."""
    if not items or selection is None or selection < 1 or selection > len(items):
        return None
    return items[selection - 1]


class MessageProcessor:
    """
    Routes each inbound message through registration, search, booking,
    cancellation and record flows.

    Messages from one phone number are processed one at a time. ``process`` is
    the only place exceptions are caught: any failure resets the conversation
    to ``idle`` and yields the generic error reply.
    """

    def __init__(
        self,
        store: ConversationStore,
        locks: ConversationLocks,
        intents: IntentExtractor,
        patients: PatientService,
        geocoder: GeocodingProvider,
        search: DoctorSearchService,
        booking: BookingService,
        records: RecordAccessService,
        responses: ResponseGenerator,
        clock: LocalClock,
        slot_lookahead_days: int = 7,
        upcoming_limit: int = 5,
    ):
        self.store = store
        self.locks = locks
        self.intents = intents
        self.patients = patients
        self.geocoder = geocoder
        self.search = search
        self.booking = booking
        self.records = records
        self.responses = responses
        self.clock = clock
        self.slot_lookahead_days = slot_lookahead_days
        self.upcoming_limit = upcoming_limit

        self._handlers: Dict[ConversationState, Handler] = {
            ConversationState.REGISTRATION_NAME: self._handle_registration_name,
            ConversationState.REGISTRATION_AGE: self._handle_registration_age,
            ConversationState.REGISTRATION_LANGUAGE: self._handle_registration_language,
            ConversationState.REGISTRATION_LOCATION: self._handle_registration_location,
            ConversationState.SELECTING_DOCTOR: self._handle_selecting_doctor,
            ConversationState.SELECTING_SLOT: self._handle_selecting_slot,
            ConversationState.CONFIRMING_BOOKING: self._handle_confirming_booking,
            ConversationState.SELECTING_RECORD: self._handle_selecting_record,
            ConversationState.SELECTING_APPOINTMENT_TO_CANCEL: self._handle_cancel_selection,
        }

    async def process(self, message: IncomingMessage) -> Optional[str]:
        """
        Handle one inbound message and return the reply text.

        Returns None when there is nothing to reply to: an unparseable sender
        or a message id that was already processed.
        """
        phone = PhoneNumberParser.from_whatsapp_address(message.sender)
        if not phone:
            logger.warning("ignoring message from unparseable sender %r", message.sender)
            return None

        async with self.locks.hold(phone):
            conversation: Optional[Conversation] = None
            language: Optional[str] = None
            try:
                conversation = await self.store.get_or_create(phone)
                if message.message_sid and await self.store.has_inbound_message(message.message_sid):
                    logger.info("duplicate message %s from %s ignored", message.message_sid, phone)
                    return None

                conversation = await self.store.reset_if_stale(conversation)
                await self.store.log_message(
                    conversation, MessageDirection.INBOUND, message.body, message.message_sid
                )

                user = await self.patients.find_by_phone(phone)
                language = user.preferred_language if user else None
                reply = await self._dispatch(conversation, message, user)
            except Exception:
                logger.exception("message processing failed for %s", phone)
                if conversation is not None:
                    try:
                        await self.store.reset(conversation, force=True)
                    except Exception:
                        logger.exception("could not reset conversation for %s", phone)
                reply = self.responses.error()

            if not Language.is_english(language):
                reply = await self.intents.translate(reply, language)
            return reply

    async def _dispatch(
        self, conversation: Conversation, message: IncomingMessage, user: Optional[User]
    ) -> str:
        state = conversation.state
        if user is None and not state.is_registration:
            await self.store.update(
                conversation, ConversationState.REGISTRATION_NAME, ConversationContext()
            )
            return self.responses.welcome_new_user()

        intent = await self.intents.extract_intent(message.body)

        if message.body.strip().lower() == CANCEL_COMMAND or intent.intent == IntentType.CANCEL_FLOW:
            await self.store.reset(conversation)
            return self.responses.cancel_flow()

        if user is not None and state.is_registration:
            # Already registered; the half-finished registration is moot.
            conversation = await self.store.reset(conversation)
            state = conversation.state

        handler = self._handlers.get(state, self._handle_idle)
        logger.debug("%s in %s -> %s", conversation.phone, state.value, intent.intent.value)
        return await handler(conversation, message, intent, user)

    # Registration

    async def _handle_registration_name(self, conversation, message, intent, user) -> str:
        name = message.body.strip()
        if len(name) < 2:
            return self.responses.invalid_name()
        await self.store.update(
            conversation, ConversationState.REGISTRATION_AGE, ConversationContext(name=name)
        )
        return self.responses.ask_age(name)

    async def _handle_registration_age(self, conversation, message, intent, user) -> str:
        try:
            age = int(message.body.strip())
        except ValueError:
            return self.responses.invalid_age()
        if age < 1 or age > 120:
            return self.responses.invalid_age()

        context = conversation.context.model_copy(update={"age": age})
        await self.store.update(conversation, ConversationState.REGISTRATION_LANGUAGE, context)
        return self.responses.ask_language()

    async def _handle_registration_language(self, conversation, message, intent, user) -> str:
        try:
            choice = int(message.body.strip())
        except ValueError:
            return self.responses.invalid_language()
        language = _pick(Language.registration_choices(), choice)
        if language is None:
            return self.responses.invalid_language()

        context = conversation.context.model_copy(update={"language": language.value})
        await self.store.update(conversation, ConversationState.REGISTRATION_LOCATION, context)
        return self.responses.ask_location()

    async def _handle_registration_location(self, conversation, message, intent, user) -> str:
        context = conversation.context
        if not context.name:
            raise ConversationStateError("registration reached location without a name")

        if message.has_location:
            city = message.body.strip() or None
            latitude, longitude = message.latitude, message.longitude
        else:
            geocoded = await self.geocoder.geocode(message.body)
            city, latitude, longitude = geocoded.city, geocoded.latitude, geocoded.longitude

        created = await self.patients.create_user(
            NewUser(
                phone=conversation.phone,
                name=context.name,
                age=context.age,
                preferred_language=context.language or Language.ENGLISH.value,
                city=city,
                latitude=latitude,
                longitude=longitude,
                whatsapp_name=context.name,
            )
        )
        await self.store.update(
            conversation, ConversationState.IDLE, ConversationContext(), user_id=created.id
        )
        return self.responses.registration_complete(created.display_name)

    # Idle

    async def _handle_idle(self, conversation, message, intent, user) -> str:
        kind = intent.intent
        if kind == IntentType.GREETING:
            return self.responses.greeting()
        if kind == IntentType.HELP:
            return self.responses.help()
        if kind in (IntentType.FIND_DOCTOR, IntentType.BOOK_APPOINTMENT):
            return await self._start_search(conversation, intent, user)
        if kind == IntentType.VIEW_RECORDS:
            return await self._list_records(conversation, user)
        if kind in (IntentType.CHECK_QUEUE, IntentType.CHECK_STATUS):
            return await self._queue_status(user)
        if kind == IntentType.CANCEL_APPOINTMENT:
            return await self._start_cancellation(conversation, user)
        if kind == IntentType.VIEW_APPOINTMENTS:
            appointments = await self.booking.get_upcoming_appointments(user.id, self.upcoming_limit)
            return self.responses.upcoming_appointments(appointments)
        return self.responses.unclear()

    async def _start_search(self, conversation, intent: ExtractedIntent, user: User) -> str:
        target_date = resolve_date(intent.date, self.clock.today())
        criteria = SearchCriteria(
            specialty=intent.specialty,
            location=intent.location,
            hospital_preference=intent.hospital_preference,
        )
        results = await self.search.search_doctors(
            criteria, target_date, latitude=user.latitude, longitude=user.longitude
        )
        if not results:
            return self.responses.doctor_list([])

        await self.store.update(
            conversation,
            ConversationState.SELECTING_DOCTOR,
            ConversationContext(search_results=results, search_params=intent),
        )
        return self.responses.doctor_list(results)

    async def _list_records(self, conversation, user: User) -> str:
        records = await self.patients.get_medical_records(user.id)
        if not records:
            return self.responses.record_list([])
        await self.store.update(
            conversation, ConversationState.SELECTING_RECORD, ConversationContext(records=records)
        )
        return self.responses.record_list(records)

    async def _queue_status(self, user: User) -> str:
        appointment = await self.booking.get_today_appointment(user.id)
        if appointment is None or not appointment.doctor_id:
            return self.responses.no_appointment_today()
        status = await self.booking.get_queue_status(
            appointment.doctor_id, appointment.appointment_date, appointment_id=appointment.id
        )
        return self.responses.queue_status(appointment.appointment_time, status)

    async def _start_cancellation(self, conversation, user: User) -> str:
        appointments = await self.booking.get_upcoming_appointments(user.id, self.upcoming_limit)
        if not appointments:
            return self.responses.no_appointments_to_cancel()
        await self.store.update(
            conversation,
            ConversationState.SELECTING_APPOINTMENT_TO_CANCEL,
            ConversationContext(upcoming_appointments=appointments),
        )
        return self.responses.cancel_selection(appointments)

    # Selection flows

    async def _handle_cancel_selection(self, conversation, message, intent, user) -> str:
        appointments = conversation.context.upcoming_appointments
        if appointments is None:
            appointments = await self.booking.get_upcoming_appointments(user.id, self.upcoming_limit)

        appointment = _pick(appointments, intent.selection())
        if appointment is None:
            return self.responses.invalid_cancel_selection()

        result = await self.booking.cancel_appointment(
            appointment.id, "User requested cancellation", CancelledBy.PATIENT
        )
        await self.store.reset(conversation)
        if result.success:
            return self.responses.cancellation_success()
        return self.responses.cancellation_failed(result.error)

    async def _handle_selecting_doctor(self, conversation, message, intent, user) -> str:
        context = conversation.context
        if context.is_cancellation_flow():
            return await self._handle_cancel_selection(conversation, message, intent, user)

        results = context.search_results
        if not results:
            raise ConversationStateError("selecting_doctor without search results")
        doctor = _pick(results, intent.selection())
        if doctor is None:
            return self.responses.selection_reprompt(len(results))

        requested = context.search_params.date if context.search_params else None
        target_date = resolve_date(requested, self.clock.today())
        slots = await self.search.get_available_slots(doctor.id, target_date)
        if not slots:
            slots = await self._look_ahead(doctor.id, target_date)
        if not slots:
            await self.store.reset(conversation)
            return self.responses.no_slots(doctor.name, self.slot_lookahead_days)

        updated = context.model_copy(update={"selected_doctor": doctor, "available_slots": slots})
        await self.store.update(conversation, ConversationState.SELECTING_SLOT, updated)
        return self.responses.slot_list(doctor, slots)

    async def _look_ahead(self, doctor_id: str, after: str) -> List[SlotOption]:
        """Slots on the first day within the lookahead window that has any."""
        try:
            start: date = parse_date(after)
        except ValueError:
            start = self.clock.today()
        for offset in range(1, self.slot_lookahead_days + 1):
            day = (start + timedelta(days=offset)).isoformat()
            slots = await self.search.get_available_slots(doctor_id, day)
            if slots:
                return slots
        return []

    async def _handle_selecting_slot(self, conversation, message, intent, user) -> str:
        context = conversation.context
        slots, doctor = context.available_slots, context.selected_doctor
        if not slots or doctor is None:
            raise ConversationStateError("selecting_slot without a doctor and slots")
        slot = _pick(slots, intent.selection())
        if slot is None:
            return self.responses.selection_reprompt(len(slots))

        updated = context.model_copy(update={"selected_slot": slot})
        await self.store.update(conversation, ConversationState.CONFIRMING_BOOKING, updated)
        return self.responses.confirm_booking(doctor, slot)

    async def _handle_confirming_booking(self, conversation, message, intent, user) -> str:
        if intent.intent == IntentType.NO:
            await self.store.reset(conversation)
            return self.responses.cancel_flow()
        if intent.intent != IntentType.YES:
            return self.responses.confirm_reprompt()

        doctor, slot = conversation.context.selected_doctor, conversation.context.selected_slot
        if doctor is None or slot is None:
            raise ConversationStateError("confirming_booking without a doctor and slot")

        result = await self.booking.book(user.id, doctor.id, slot.id, slot.date, slot.time)
        await self.store.reset(conversation)
        if not result.success:
            return self.responses.booking_failed(result.error or "Slot may have just been taken.")
        code = result.confirmation_code or (result.appointment_id or "")[:8].upper()
        return self.responses.booking_success(doctor, slot, code)

    async def _handle_selecting_record(self, conversation, message, intent, user) -> str:
        records = conversation.context.records
        if not records:
            raise ConversationStateError("selecting_record without records")
        record = _pick(records, intent.selection())
        if record is None:
            return self.responses.selection_reprompt(len(records))

        grant = await self.records.request_access(user.id, record)
        await self.store.reset(conversation)
        return self.responses.secure_record_link(
            record.display_title, grant.url, grant.otp, self.records.ttl_minutes
        )
