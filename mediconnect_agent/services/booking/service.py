"""
Booking service for appointments and same-day queues.
"""

from datetime import datetime, timedelta
from typing import List, Optional

from ...core.enums import AppointmentStatus, BookingSource, CancelledBy
from ...core.exceptions import BookingFlowError, SlotUnavailableError
from ...core.models import (
    AppointmentSummary,
    BookingResult,
    CancellationResult,
    ConsultationInfo,
    QueueStatus,
)
from ...utils.date import LocalClock, parse_timestamp
from ...utils.logging import get_logger
from ..storage import Database, now_iso

logger = get_logger("booking")

_ACTIVE = tuple(s.value for s in AppointmentStatus.active())
_ACTIVE_PLACEHOLDERS = ", ".join("?" for _ in _ACTIVE)

_APPOINTMENT_SELECT = """
SELECT a.id, a.appointment_date, a.appointment_time, a.status,
       d.id AS doctor_id, d.name AS doctor_name, d.specialization,
       h.name AS hospital_name, h.address AS hospital_address
FROM appointments a
JOIN doctors d ON d.id = a.doctor_id
JOIN hospitals h ON h.id = a.hospital_id
"""


class BookingService:
    """Service for booking, cancelling and tracking appointments."""

    def __init__(
        self,
        db: Database,
        clock: LocalClock,
        cancellation_notice_minutes: int = 120,
        average_consultation_minutes: int = 30,
    ):
        self.db = db
        self.clock = clock
        self.cancellation_notice = timedelta(minutes=cancellation_notice_minutes)
        self.average_consultation_minutes = average_consultation_minutes

    async def book(
        self,
        user_id: str,
        doctor_id: str,
        slot_id: str,
        appointment_date: str,
        appointment_time: str,
        booking_source: BookingSource = BookingSource.WHATSAPP,
        reason: Optional[str] = None,
    ) -> BookingResult:
        """
        Book a slot atomically.

        Never raises: a taken slot, a mismatched request or a storage failure
        all come back as ``success=False`` with a user-presentable error.
        """
        try:
            created = await self.db.book_slot(
                user_id=user_id,
                doctor_id=doctor_id,
                slot_id=slot_id,
                appointment_date=appointment_date,
                appointment_time=appointment_time,
                booking_source=booking_source.value,
                reason=reason,
            )
        except SlotUnavailableError as e:
            logger.info("slot %s unavailable: %s", slot_id, e)
            return BookingResult.failed(str(e))
        except BookingFlowError as e:
            logger.warning("booking rejected for slot %s: %s", slot_id, e)
            return BookingResult.failed(str(e))
        except Exception:
            logger.exception("booking failed for slot %s", slot_id)
            return BookingResult.failed("Booking failed. Please try again.")

        logger.info("booked appointment %s on slot %s", created["appointment_id"], slot_id)
        return BookingResult(success=True, **created)

    async def cancel_appointment(
        self,
        appointment_id: str,
        reason: str,
        cancelled_by: CancelledBy = CancelledBy.PATIENT,
        now: Optional[datetime] = None,
    ) -> CancellationResult:
        """
        Cancel an appointment and release its slot.

        Only allowed while the appointment is strictly more than the notice
        period away.
        """
        row = await self.db.fetch_one(
            """
            SELECT id, slot_id, status, appointment_date, appointment_time
            FROM appointments WHERE id = ?
            """,
            (appointment_id,),
        )
        if row is None:
            return CancellationResult(success=False, error="Appointment not found.")
        if row["status"] == AppointmentStatus.COMPLETED.value:
            return CancellationResult(success=False, error="Cannot cancel a completed appointment.")
        if row["status"] == AppointmentStatus.CANCELLED.value:
            return CancellationResult(success=False, error="Appointment is already cancelled.")

        now = now or self.clock.now()
        starts_at = self.clock.combine(row["appointment_date"], row["appointment_time"])
        if starts_at <= now + self.cancellation_notice:
            return CancellationResult(
                success=False,
                too_late=True,
                error="Appointments can only be cancelled at least 2 hours in advance.",
            )

        def _cancel(conn):
            stamp = now_iso()
            updated = conn.execute(
                """
                UPDATE appointments
                SET status = ?, cancelled_at = ?, cancellation_reason = ?, updated_at = ?
                WHERE id = ? AND status != ?
                """,
                (
                    AppointmentStatus.CANCELLED.value, stamp,
                    f"{cancelled_by.value}: {reason}", stamp,
                    appointment_id, AppointmentStatus.CANCELLED.value,
                ),
            ).rowcount
            if updated and row["slot_id"]:
                conn.execute(
                    "UPDATE appointment_slots SET is_available = 1 WHERE id = ?",
                    (row["slot_id"],),
                )
            return updated

        try:
            updated = await self.db.transaction(_cancel)
        except Exception:
            logger.exception("cancellation failed for %s", appointment_id)
            return CancellationResult(success=False, error="Failed to cancel. Try again.")
        if not updated:
            return CancellationResult(success=False, error="Appointment is already cancelled.")

        logger.info("cancelled appointment %s (%s)", appointment_id, cancelled_by.value)
        return CancellationResult(success=True)

    async def get_today_appointment(self, user_id: str) -> Optional[AppointmentSummary]:
        """Earliest active appointment for today, if any."""
        try:
            row = await self.db.fetch_one(
                _APPOINTMENT_SELECT
                + f"""
                WHERE a.user_id = ? AND a.appointment_date = ?
                  AND a.status IN ({_ACTIVE_PLACEHOLDERS})
                ORDER BY a.appointment_time
                LIMIT 1
                """,
                (user_id, self.clock.today().isoformat(), *_ACTIVE),
            )
        except Exception:
            logger.exception("today's appointment lookup failed for %s", user_id)
            return None
        return AppointmentSummary.from_row(row) if row else None

    async def get_upcoming_appointments(self, user_id: str, limit: int = 5) -> List[AppointmentSummary]:
        """Confirmed appointments from today on, soonest first."""
        try:
            rows = await self.db.fetch_all(
                _APPOINTMENT_SELECT
                + """
                WHERE a.user_id = ? AND a.appointment_date >= ? AND a.status = ?
                ORDER BY a.appointment_date, a.appointment_time
                LIMIT ?
                """,
                (user_id, self.clock.today().isoformat(), AppointmentStatus.CONFIRMED.value, limit),
            )
        except Exception:
            logger.exception("upcoming appointments lookup failed for %s", user_id)
            return []
        return [AppointmentSummary.from_row(row) for row in rows]

    async def get_queue_status(
        self,
        doctor_id: str,
        date: str,
        appointment_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> QueueStatus:
        """
        Snapshot of a doctor's queue for one day.

        ``patients_ahead`` counts active appointments earlier than
        ``appointment_id``'s own time; it is zero when no appointment is given.
        """
        try:
            queue = await self.db.fetch_all(
                f"""
                SELECT id, patient_name, appointment_time, status, consultation_started_at
                FROM appointments
                WHERE doctor_id = ? AND appointment_date = ?
                  AND status IN ({_ACTIVE_PLACEHOLDERS})
                ORDER BY appointment_time
                """,
                (doctor_id, date, *_ACTIVE),
            )
        except Exception:
            logger.exception("queue lookup failed for doctor %s on %s", doctor_id, date)
            return QueueStatus()
        if not queue:
            return QueueStatus()

        current = next(
            (a for a in queue if a["status"] == AppointmentStatus.IN_CONSULTATION.value), None
        )
        checked_in = sum(1 for a in queue if a["status"] == AppointmentStatus.CHECKED_IN.value)
        waiting = sum(1 for a in queue if a["status"] == AppointmentStatus.CONFIRMED.value)

        delay = 0
        if current is not None:
            now = now or self.clock.now()
            started = (
                parse_timestamp(current["consultation_started_at"])
                if current["consultation_started_at"]
                else now
            )
            elapsed = round((now - started).total_seconds() / 60)
            delay = max(0, elapsed - self.average_consultation_minutes)

        ahead = 0
        mine = next((a for a in queue if a["id"] == appointment_id), None)
        if mine is not None:
            ahead = sum(1 for a in queue if a["appointment_time"] < mine["appointment_time"])

        return QueueStatus(
            in_consultation=(
                ConsultationInfo(
                    patient_name=current["patient_name"],
                    started_at=current["consultation_started_at"],
                )
                if current
                else None
            ),
            checked_in_count=checked_in,
            waiting_count=waiting,
            patients_ahead=ahead,
            estimated_wait_minutes=checked_in * self.average_consultation_minutes,
            current_delay=delay,
        )
