"""
Pytest configuration and fixtures.
"""

import json
from datetime import datetime
from typing import Dict, List, Optional
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from mediconnect_agent.config import DatabaseConfig, Settings
from mediconnect_agent.core.enums import IntentType
from mediconnect_agent.core.models import ExtractedIntent
from mediconnect_agent.services.booking import BookingService
from mediconnect_agent.services.conversation import ConversationLocks, ConversationStore
from mediconnect_agent.services.patient import PatientService, StaticCityGeocoder
from mediconnect_agent.services.processor import MessageProcessor
from mediconnect_agent.services.records import RecordAccessService
from mediconnect_agent.services.responses import ResponseGenerator
from mediconnect_agent.services.search import DoctorSearchService
from mediconnect_agent.services.storage import Database, new_id, now_iso
from mediconnect_agent.utils.date import LocalClock

TODAY = "2026-10-19"  # a Monday
TOMORROW = "2026-10-20"


class FixedClock(LocalClock):
    """Clinic clock frozen at a naive local time."""

    def __init__(self, at: datetime, timezone: str = "Asia/Kolkata"):
        super().__init__(timezone)
        self.at = self.localize(at)

    def now(self) -> datetime:
        return self.at


class FakeIntentExtractor:
    """Scripted stand-in for the language model."""

    def __init__(self):
        self.script: Dict[str, ExtractedIntent] = {}
        self.translations: List[tuple] = []
        self.extract_error: Optional[Exception] = None

    def on(self, text: str, intent: IntentType, **entities) -> None:
        self.script[text.lower()] = ExtractedIntent(intent=intent, raw_text=text, **entities)

    async def extract_intent(self, text, history=None) -> ExtractedIntent:
        if self.extract_error is not None:
            raise self.extract_error
        key = text.strip().lower()
        if key in self.script:
            return self.script[key]
        if key.isdigit():
            return ExtractedIntent(intent=IntentType.NUMBER, number=int(key), raw_text=text)
        if key == "yes":
            return ExtractedIntent(intent=IntentType.YES, raw_text=text)
        if key == "no":
            return ExtractedIntent(intent=IntentType.NO, raw_text=text)
        if key in ("hi", "hello"):
            return ExtractedIntent(intent=IntentType.GREETING, raw_text=text)
        return ExtractedIntent.unclear(text)

    async def translate(self, text, target_language) -> str:
        self.translations.append((text, target_language))
        if not target_language or target_language == "English":
            return text
        return f"[{target_language}] {text}"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_path=str(tmp_path / "mediconnect.db"),
        twilio_account_sid="AC123",
        twilio_auth_token="test-auth-token",
        twilio_whatsapp_number="+14155238886",
        twilio_dev_mode=False,
        webhook_public_url="https://hooks.example.com/webhook/whatsapp",
        openai_api_key=None,
        service_role_key="service-key",
        app_url="https://app.example.com",
        record_token_secret="record-secret",
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 10, 19, 9, 0))


@pytest_asyncio.fixture
async def db(settings) -> Database:
    database = Database(DatabaseConfig.from_settings(settings))
    await database.initialize()
    return database


async def _seed(db: Database) -> None:
    stamp = now_iso()
    hospitals = [
        ("h-plain", "City General", "Road 1, Banjara Hills", "Hyderabad", 1, 0, None),
        ("h-premium", "Apollo Heart Centre", "Jubilee Hills", "Hyderabad", 2, 1, "premium"),
        ("h-promoted", "Skin First Clinic", "Indiranagar", "Bangalore", 3, 1, "promoted"),
    ]
    for hid, name, address, city, tier, promoted, level in hospitals:
        await db.insert(
            "hospitals",
            {
                "id": hid, "name": name, "address": address, "city": city, "tier": tier,
                "is_promoted": promoted, "promotion_level": level,
            },
        )

    doctors = [
        ("d-rao", "h-plain", "Arjun Rao", "Cardiologist", 4.8, 600, 1),
        ("d-iyer", "h-premium", "Meera Iyer", "Cardiologist", 4.0, 800, 1),
        ("d-das", "h-promoted", "Kiran Das", "Dermatologist", 4.5, 500, 1),
        ("d-retired", "h-premium", "Old Timer", "Cardiologist", 5.0, 100, 0),
    ]
    for did, hid, name, spec, rating, fee, active in doctors:
        await db.insert(
            "doctors",
            {
                "id": did, "hospital_id": hid, "name": name, "specialization": spec,
                "rating": rating, "consultation_fee": fee, "is_active": active,
                "languages": json.dumps(["English", "Hindi"]),
                "working_days": json.dumps([1, 2, 3, 4, 5]),
                "working_hours_start": "10:00", "working_hours_end": "12:00",
                "slot_duration": 30,
            },
        )

    slots = [
        ("s-rao-1", "d-rao", TODAY, "10:00"),
        ("s-rao-2", "d-rao", TODAY, "10:30"),
        ("s-iyer-1", "d-iyer", TODAY, "10:00"),
        ("s-iyer-2", "d-iyer", TODAY, "10:30"),
        ("s-iyer-3", "d-iyer", TODAY, "11:00"),
        ("s-iyer-4", "d-iyer", TOMORROW, "10:00"),
        ("s-retired-1", "d-retired", TODAY, "10:00"),
    ]
    for sid, did, day, time in slots:
        await db.insert(
            "appointment_slots",
            {"id": sid, "doctor_id": did, "slot_date": day, "slot_time": time, "is_available": 1},
        )

    await db.insert(
        "users",
        {
            "id": "u-ravi", "phone": "+919000000001", "name": "Ravi", "age": 40,
            "preferred_language": "English", "city": "Hyderabad",
            "latitude": 17.385, "longitude": 78.4867,
            "created_at": stamp, "updated_at": stamp,
        },
    )
    await db.insert(
        "users",
        {
            "id": "u-meena", "phone": "+919000000002", "name": "Meena", "age": 31,
            "preferred_language": "English", "created_at": stamp, "updated_at": stamp,
        },
    )


@pytest_asyncio.fixture
async def seeded_db(db) -> Database:
    await _seed(db)
    return db


@pytest.fixture
def add_appointment(seeded_db):
    """Insert an appointment row directly, bypassing the booking primitive."""

    async def _add(**overrides) -> str:
        stamp = now_iso()
        row = {
            "id": new_id(),
            "user_id": "u-ravi",
            "hospital_id": "h-premium",
            "doctor_id": "d-iyer",
            "slot_id": None,
            "appointment_date": TODAY,
            "appointment_time": "10:00",
            "status": "confirmed",
            "patient_name": "Ravi",
            "patient_phone": "+919000000001",
            "created_at": stamp,
            "updated_at": stamp,
        }
        row.update(overrides)
        await seeded_db.insert("appointments", row)
        return row["id"]

    return _add


@pytest.fixture
def fake_intents() -> FakeIntentExtractor:
    return FakeIntentExtractor()


@pytest.fixture
def fake_sender():
    sender = AsyncMock()
    sender.send_whatsapp_message = AsyncMock(return_value="SM-test")
    return sender


@pytest.fixture
def responses(clock) -> ResponseGenerator:
    return ResponseGenerator(clock)


@pytest.fixture
def booking_service(seeded_db, clock) -> BookingService:
    return BookingService(seeded_db, clock)


@pytest.fixture
def store(seeded_db) -> ConversationStore:
    return ConversationStore(seeded_db)


@pytest.fixture
def processor(seeded_db, clock, fake_intents, store, booking_service, responses) -> MessageProcessor:
    return MessageProcessor(
        store=store,
        locks=ConversationLocks(),
        intents=fake_intents,
        patients=PatientService(seeded_db),
        geocoder=StaticCityGeocoder(),
        search=DoctorSearchService(seeded_db, clock),
        booking=booking_service,
        records=RecordAccessService(seeded_db, "record-secret", "https://app.example.com"),
        responses=responses,
        clock=clock,
    )
