"""
Wiring of the service layer from settings.
"""

from dataclasses import dataclass

from ..config import DatabaseConfig, ExternalAPIConfig, Settings
from ..utils.date import LocalClock
from .booking import BookingService
from .conversation import ConversationLocks, ConversationStore
from .external import WhatsAppSender
from .intent import IntentExtractor
from .maintenance import ReminderService, SlotGenerator
from .patient import GeocodingProvider, PatientService, StaticCityGeocoder
from .processor import MessageProcessor
from .records import RecordAccessService
from .responses import ResponseGenerator
from .search import DoctorSearchService, RankingWeights
from .storage import Database


@dataclass
class Services:
    """Every long-lived service the API layer needs."""

    settings: Settings
    db: Database
    clock: LocalClock
    store: ConversationStore
    intents: IntentExtractor
    patients: PatientService
    geocoder: GeocodingProvider
    search: DoctorSearchService
    booking: BookingService
    records: RecordAccessService
    responses: ResponseGenerator
    sender: WhatsAppSender
    processor: MessageProcessor
    slots: SlotGenerator
    reminders: ReminderService


def build_services(settings: Settings) -> Services:
    """Construct the service graph for ``settings``."""
    db = Database(DatabaseConfig.from_settings(settings))
    api_config = ExternalAPIConfig.from_settings(settings)
    clock = LocalClock(settings.timezone)

    store = ConversationStore(db, settings.stale_conversation_seconds)
    intents = IntentExtractor(api_config, history_turns=settings.history_turns)
    patients = PatientService(db, settings.records_limit)
    geocoder = StaticCityGeocoder()
    search = DoctorSearchService(
        db,
        clock,
        weights=RankingWeights.from_settings(settings),
        candidate_limit=settings.search_candidate_limit,
        result_limit=settings.search_result_limit,
        slot_list_limit=settings.slot_list_limit,
    )
    booking = BookingService(
        db,
        clock,
        cancellation_notice_minutes=settings.cancellation_notice_minutes,
        average_consultation_minutes=settings.average_consultation_minutes,
    )
    records = RecordAccessService(
        db,
        secret=settings.record_token_secret,
        app_url=settings.app_url,
        ttl_seconds=settings.record_access_ttl_seconds,
    )
    responses = ResponseGenerator(clock)
    sender = WhatsAppSender(api_config)

    processor = MessageProcessor(
        store=store,
        locks=ConversationLocks(),
        intents=intents,
        patients=patients,
        geocoder=geocoder,
        search=search,
        booking=booking,
        records=records,
        responses=responses,
        clock=clock,
        slot_lookahead_days=settings.slot_lookahead_days,
        upcoming_limit=settings.upcoming_appointments_limit,
    )

    return Services(
        settings=settings,
        db=db,
        clock=clock,
        store=store,
        intents=intents,
        patients=patients,
        geocoder=geocoder,
        search=search,
        booking=booking,
        records=records,
        responses=responses,
        sender=sender,
        processor=processor,
        slots=SlotGenerator(db, clock, settings.slot_horizon_days),
        reminders=ReminderService(db, sender, responses, clock),
    )
