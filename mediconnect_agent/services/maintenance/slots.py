"""
Rolling appointment-slot inventory.
"""

import json
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from ...utils.date import LocalClock, parse_date, parse_time
from ...utils.logging import get_logger
from ..storage import Database, new_id, now_iso

logger = get_logger("maintenance.slots")

DEFAULT_WORKING_DAYS = [1, 2, 3, 4, 5]


class SlotGenerationStats(BaseModel):
    doctors_processed: int = 0
    slots_created: int = 0
    errors: int = 0


def generate_time_slots(start: str, end: str, duration_minutes: int) -> List[str]:
    """``HH:MM`` start times of every slot that fits entirely in ``[start, end]``."""
    if duration_minutes <= 0:
        return []
    start_t, end_t = parse_time(start), parse_time(end)
    current = start_t.hour * 60 + start_t.minute
    last = end_t.hour * 60 + end_t.minute
    times = []
    while current + duration_minutes <= last:
        times.append(f"{current // 60:02d}:{current % 60:02d}")
        current += duration_minutes
    return times


def sunday_first_weekday(day: date) -> int:
    """Weekday number with Sunday as 0, as stored in ``doctors.working_days``."""
    return (day.weekday() + 1) % 7


def _working_days(raw: Optional[str]) -> List[int]:
    if not raw:
        return DEFAULT_WORKING_DAYS
    try:
        days = json.loads(raw)
    except ValueError:
        return DEFAULT_WORKING_DAYS
    return [int(d) for d in days] if isinstance(days, list) else DEFAULT_WORKING_DAYS


class SlotGenerator:
    """Keeps every active doctor's slots rolling ``horizon_days`` ahead."""

    def __init__(self, db: Database, clock: LocalClock, horizon_days: int = 30):
        self.db = db
        self.clock = clock
        self.horizon_days = horizon_days

    async def regenerate(self, today: Optional[date] = None) -> SlotGenerationStats:
        today = today or self.clock.today()
        horizon = today + timedelta(days=self.horizon_days)
        stats = SlotGenerationStats()

        doctors = await self.db.fetch_all(
            """
            SELECT id, working_days, working_hours_start, working_hours_end, slot_duration
            FROM doctors WHERE is_active = 1
            """
        )
        for doctor in doctors:
            try:
                stats.slots_created += await self._extend(doctor, today, horizon)
                stats.doctors_processed += 1
            except Exception:
                logger.exception("slot generation failed for doctor %s", doctor["id"])
                stats.errors += 1

        logger.info("slot regeneration complete: %s", stats.model_dump())
        return stats

    async def _extend(self, doctor: Dict[str, Any], today: date, horizon: date) -> int:
        latest = await self.db.fetch_one(
            "SELECT MAX(slot_date) AS slot_date FROM appointment_slots WHERE doctor_id = ? AND slot_date >= ?",
            (doctor["id"], today.isoformat()),
        )
        start = today
        if latest and latest["slot_date"]:
            start = parse_date(latest["slot_date"]) + timedelta(days=1)
        if start >= horizon:
            return 0

        working_days = _working_days(doctor["working_days"])
        times = generate_time_slots(
            doctor["working_hours_start"] or "09:00",
            doctor["working_hours_end"] or "17:00",
            doctor["slot_duration"] or 30,
        )
        stamp = now_iso()
        rows = []
        cursor = start
        while cursor < horizon:
            if sunday_first_weekday(cursor) in working_days:
                rows.extend(
                    (new_id(), doctor["id"], cursor.isoformat(), t, stamp) for t in times
                )
            cursor += timedelta(days=1)
        if not rows:
            return 0

        def _insert(conn):
            before = conn.total_changes
            conn.executemany(
                """
                INSERT OR IGNORE INTO appointment_slots
                    (id, doctor_id, slot_date, slot_time, is_available, created_at)
                VALUES (?, ?, ?, ?, 1, ?)
                """,
                rows,
            )
            return conn.total_changes - before

        return await self.db.transaction(_insert)
