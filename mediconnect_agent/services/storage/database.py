"""
SQLite access for the conversation engine.

Every call opens its own connection inside ``asyncio.to_thread`` so the event
loop never blocks on disk I/O. Writers wait on the busy timeout instead of
failing when another connection holds the write lock.
"""

import asyncio
import secrets
import sqlite3
import string
import uuid
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

from ...config import DatabaseConfig
from ...core.enums import AppointmentStatus
from ...core.exceptions import BookingFlowError, SlotUnavailableError
from ...utils.date import utc_now
from .schema import SCHEMA

T = TypeVar("T")

_CODE_ALPHABET = string.ascii_uppercase + string.digits


def new_id() -> str:
    return str(uuid.uuid4())


def now_iso() -> str:
    return utc_now().isoformat()


def generate_confirmation_code(length: int = 8) -> str:
    return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(length))


class Database:
    """Thin async wrapper over a SQLite file."""

    def __init__(self, config: DatabaseConfig):
        self.config = config

    def connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self.config.path,
            timeout=self.config.timeout,
            isolation_level=None,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    async def run(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        """Run ``fn`` with a fresh connection on a worker thread."""

        def _call() -> T:
            conn = self.connect()
            try:
                return fn(conn)
            finally:
                conn.close()

        return await asyncio.to_thread(_call)

    async def transaction(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        """Run ``fn`` inside ``BEGIN IMMEDIATE`` ... ``COMMIT``; roll back on error."""

        def _call(conn: sqlite3.Connection) -> T:
            conn.execute("BEGIN IMMEDIATE")
            try:
                result = fn(conn)
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
            return result

        return await self.run(_call)

    async def initialize(self) -> None:
        """Create tables and indexes if they do not exist."""
        await self.run(lambda conn: conn.executescript(SCHEMA))

    async def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
        def _fetch(conn: sqlite3.Connection) -> Optional[Dict[str, Any]]:
            row = conn.execute(sql, params).fetchone()
            return dict(row) if row else None

        return await self.run(_fetch)

    async def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        def _fetch(conn: sqlite3.Connection) -> List[Dict[str, Any]]:
            return [dict(row) for row in conn.execute(sql, params).fetchall()]

        return await self.run(_fetch)

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Execute a single statement and return the affected row count."""
        return await self.run(lambda conn: conn.execute(sql, params).rowcount)

    async def insert(self, table: str, values: Dict[str, Any]) -> None:
        columns = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        await self.execute(
            f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
            tuple(values.values()),
        )

    async def book_slot(
        self,
        *,
        user_id: str,
        doctor_id: str,
        slot_id: str,
        appointment_date: str,
        appointment_time: str,
        booking_source: str,
        reason: Optional[str] = None,
    ) -> Dict[str, str]:
        """
        Reserve a slot and create its appointment in one transaction.

        The slot is claimed with a conditional update, so of any number of
        concurrent callers for the same slot exactly one sees ``rowcount == 1``.

        Raises:
            SlotUnavailableError: the slot is taken or does not exist
            BookingFlowError: the request does not match the slot, doctor or user
        """

        def _book(conn: sqlite3.Connection) -> Dict[str, str]:
            slot = conn.execute(
                "SELECT doctor_id, slot_date, slot_time FROM appointment_slots WHERE id = ?",
                (slot_id,),
            ).fetchone()
            if slot is None:
                raise SlotUnavailableError("This slot no longer exists.")
            if slot["doctor_id"] != doctor_id:
                raise BookingFlowError("Slot does not belong to the selected doctor.")
            if slot["slot_date"] != appointment_date or slot["slot_time"][:5] != appointment_time[:5]:
                raise BookingFlowError("Slot date or time does not match the request.")

            doctor = conn.execute(
                "SELECT hospital_id, consultation_fee FROM doctors WHERE id = ? AND is_active = 1",
                (doctor_id,),
            ).fetchone()
            if doctor is None:
                raise BookingFlowError("Doctor is not accepting appointments.")

            user = conn.execute(
                "SELECT name, phone FROM users WHERE id = ?", (user_id,)
            ).fetchone()
            if user is None:
                raise BookingFlowError("Patient profile not found.")

            claimed = conn.execute(
                "UPDATE appointment_slots SET is_available = 0 WHERE id = ? AND is_available = 1",
                (slot_id,),
            ).rowcount
            if claimed != 1:
                raise SlotUnavailableError("This slot has just been booked by someone else.")

            appointment_id = new_id()
            code = generate_confirmation_code()
            stamp = now_iso()
            try:
                conn.execute(
                    """
                    INSERT INTO appointments (
                        id, user_id, hospital_id, doctor_id, slot_id,
                        appointment_date, appointment_time, status, booking_source,
                        patient_name, patient_phone, confirmation_code,
                        consultation_fee, reason_for_visit, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        appointment_id, user_id, doctor["hospital_id"], doctor_id, slot_id,
                        appointment_date, slot["slot_time"][:5], AppointmentStatus.CONFIRMED.value,
                        booking_source, user["name"], user["phone"], code,
                        doctor["consultation_fee"], reason, stamp, stamp,
                    ),
                )
            except sqlite3.IntegrityError as e:
                raise SlotUnavailableError("This slot has just been booked by someone else.") from e
            return {"appointment_id": appointment_id, "confirmation_code": code}

        return await self.transaction(_book)
