"""
24-hour and 1-hour appointment reminders.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from pydantic import BaseModel

from ...core.enums import AppointmentStatus
from ...utils.date import LocalClock
from ...utils.logging import get_logger
from ..external import WhatsAppSender
from ..responses import ResponseGenerator
from ..storage import Database

logger = get_logger("maintenance.reminders")

_SELECT = """
SELECT a.id, a.appointment_time, a.patient_phone,
       d.name AS doctor_name, h.name AS hospital_name, h.address AS hospital_address
FROM appointments a
JOIN doctors d ON d.id = a.doctor_id
JOIN hospitals h ON h.id = a.hospital_id
"""


class ReminderStats(BaseModel):
    sent_24h: int = 0
    sent_1h: int = 0
    errors: int = 0


class ReminderService:
    """
    Sends appointment reminders.

    Each reminder flag is claimed with a conditional update before sending, so
    overlapping runs never send the same reminder twice. A failed send releases
    the flag for the next run.
    """

    def __init__(
        self,
        db: Database,
        sender: WhatsAppSender,
        responses: ResponseGenerator,
        clock: LocalClock,
    ):
        self.db = db
        self.sender = sender
        self.responses = responses
        self.clock = clock

    async def send_reminders(self, now: Optional[datetime] = None) -> ReminderStats:
        now = now or self.clock.now()
        stats = ReminderStats()
        confirmed = AppointmentStatus.CONFIRMED.value

        tomorrow = (now.date() + timedelta(days=1)).isoformat()
        day_before = await self.db.fetch_all(
            _SELECT + " WHERE a.appointment_date = ? AND a.status = ? AND a.reminder_sent_24h = 0",
            (tomorrow, confirmed),
        )
        for appt in day_before:
            text = self.responses.reminder_24h(
                appt["appointment_time"], appt["doctor_name"], appt["hospital_name"]
            )
            outcome = await self._deliver(appt, "reminder_sent_24h", text)
            if outcome is True:
                stats.sent_24h += 1
            elif outcome is False:
                stats.errors += 1

        window_start = now.strftime("%H:%M")
        window_end = (now + timedelta(hours=1)).strftime("%H:%M")
        if window_end < window_start:
            window_end = "23:59"
        hour_before = await self.db.fetch_all(
            _SELECT
            + """
            WHERE a.appointment_date = ? AND a.status = ? AND a.reminder_sent_1h = 0
              AND a.appointment_time >= ? AND a.appointment_time <= ?
            """,
            (now.date().isoformat(), confirmed, window_start, window_end),
        )
        for appt in hour_before:
            text = self.responses.reminder_1h(
                appt["appointment_time"],
                appt["doctor_name"],
                appt["hospital_name"],
                appt["hospital_address"],
            )
            outcome = await self._deliver(appt, "reminder_sent_1h", text)
            if outcome is True:
                stats.sent_1h += 1
            elif outcome is False:
                stats.errors += 1

        logger.info("reminders sent: %s", stats.model_dump())
        return stats

    async def _deliver(self, appt: Dict[str, Any], flag: str, text: str) -> Optional[bool]:
        """True if sent, False if the send failed, None if skipped."""
        if not appt["patient_phone"]:
            return None
        claimed = await self.db.execute(
            f"UPDATE appointments SET {flag} = 1 WHERE id = ? AND {flag} = 0",
            (appt["id"],),
        )
        if claimed != 1:
            return None

        sid = await self.sender.send_whatsapp_message(appt["patient_phone"], text)
        if sid:
            return True
        await self.db.execute(f"UPDATE appointments SET {flag} = 0 WHERE id = ?", (appt["id"],))
        logger.warning("reminder %s for appointment %s not delivered", flag, appt["id"])
        return False
