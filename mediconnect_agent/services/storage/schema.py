"""
SQLite schema for the tables the conversation engine touches.
"""

SCHEMA = """
CREATE TABLE IF NOT EXISTS hospitals (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    address TEXT,
    city TEXT,
    tier INTEGER NOT NULL DEFAULT 3,
    is_promoted INTEGER NOT NULL DEFAULT 0,
    promotion_level TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS doctors (
    id TEXT PRIMARY KEY,
    hospital_id TEXT NOT NULL REFERENCES hospitals(id),
    name TEXT NOT NULL,
    specialization TEXT NOT NULL,
    qualifications TEXT,
    experience_years INTEGER,
    consultation_fee REAL NOT NULL DEFAULT 0,
    rating REAL NOT NULL DEFAULT 0,
    languages TEXT NOT NULL DEFAULT '[]',
    working_days TEXT NOT NULL DEFAULT '[1,2,3,4,5]',
    working_hours_start TEXT,
    working_hours_end TEXT,
    slot_duration INTEGER NOT NULL DEFAULT 30,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    phone TEXT NOT NULL UNIQUE,
    name TEXT,
    age INTEGER,
    preferred_language TEXT NOT NULL DEFAULT 'English',
    city TEXT,
    latitude REAL,
    longitude REAL,
    whatsapp_name TEXT,
    registered_via TEXT NOT NULL DEFAULT 'whatsapp',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS appointment_slots (
    id TEXT PRIMARY KEY,
    doctor_id TEXT NOT NULL REFERENCES doctors(id),
    slot_date TEXT NOT NULL,
    slot_time TEXT NOT NULL,
    is_available INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (doctor_id, slot_date, slot_time)
);

CREATE TABLE IF NOT EXISTS appointments (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL REFERENCES users(id),
    hospital_id TEXT NOT NULL REFERENCES hospitals(id),
    doctor_id TEXT NOT NULL REFERENCES doctors(id),
    slot_id TEXT REFERENCES appointment_slots(id),
    appointment_date TEXT NOT NULL,
    appointment_time TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'confirmed',
    booking_source TEXT NOT NULL DEFAULT 'whatsapp',
    patient_name TEXT,
    patient_phone TEXT,
    confirmation_code TEXT,
    queue_position INTEGER,
    checked_in_at TEXT,
    consultation_started_at TEXT,
    consultation_ended_at TEXT,
    consultation_fee REAL,
    reason_for_visit TEXT,
    cancelled_at TEXT,
    cancellation_reason TEXT,
    reminder_sent_24h INTEGER NOT NULL DEFAULT 0,
    reminder_sent_1h INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE UNIQUE INDEX IF NOT EXISTS appointments_one_live_booking_per_slot
    ON appointments (slot_id)
    WHERE slot_id IS NOT NULL AND status != 'cancelled';

CREATE TABLE IF NOT EXISTS medical_records (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL REFERENCES users(id),
    hospital_id TEXT REFERENCES hospitals(id),
    appointment_id TEXT,
    record_type TEXT NOT NULL,
    title TEXT,
    file_url TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS whatsapp_conversations (
    id TEXT PRIMARY KEY,
    phone TEXT NOT NULL UNIQUE,
    user_id TEXT,
    current_state TEXT NOT NULL DEFAULT 'idle',
    context TEXT NOT NULL DEFAULT '{}',
    last_message_at TEXT NOT NULL,
    last_message_from TEXT,
    version INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS whatsapp_messages (
    id TEXT PRIMARY KEY,
    conversation_id TEXT,
    user_id TEXT,
    direction TEXT NOT NULL,
    message_text TEXT,
    message_type TEXT NOT NULL DEFAULT 'text',
    provider_message_id TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS audit_logs (
    id TEXT PRIMARY KEY,
    actor_id TEXT,
    actor_type TEXT,
    action TEXT NOT NULL,
    entity_type TEXT,
    entity_id TEXT,
    metadata TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS record_access_tokens (
    id TEXT PRIMARY KEY,
    record_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    token_hash TEXT NOT NULL UNIQUE,
    otp_hash TEXT NOT NULL,
    expires_at TEXT NOT NULL,
    consumed_at TEXT,
    created_at TEXT NOT NULL
);
"""
