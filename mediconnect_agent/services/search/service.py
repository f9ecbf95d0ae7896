"""
Doctor search service.
"""

import asyncio
import json
from typing import Any, Dict, List, Optional, Tuple

from ...core.models import DoctorSearchResult, SearchCriteria, SlotOption
from ...utils.date import LocalClock
from ...utils.logging import get_logger
from ..storage import Database
from .ranking import RankingWeights, rank_doctors

logger = get_logger("search")

_DOCTOR_QUERY = """
SELECT d.id, d.name, d.specialization, d.qualifications, d.experience_years,
       d.consultation_fee, d.rating, d.languages,
       h.id AS hospital_id, h.name AS hospital_name, h.address AS hospital_address,
       h.city AS hospital_city, h.tier AS hospital_tier,
       h.is_promoted AS hospital_is_promoted, h.promotion_level AS hospital_promotion_level
FROM doctors d
JOIN hospitals h ON h.id = d.hospital_id
WHERE d.is_active = 1
"""


def _like_pattern(value: str) -> str:
    """Substring pattern for ``LIKE ... ESCAPE '\\'`` with wildcards taken literally."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class DoctorSearchService:
    """Finds, enriches and ranks doctors."""

    def __init__(
        self,
        db: Database,
        clock: LocalClock,
        weights: Optional[RankingWeights] = None,
        candidate_limit: int = 50,
        result_limit: int = 5,
        slot_list_limit: int = 10,
    ):
        self.db = db
        self.clock = clock
        self.weights = weights or RankingWeights()
        self.candidate_limit = candidate_limit
        self.result_limit = result_limit
        self.slot_list_limit = slot_list_limit

    async def search_doctors(
        self,
        criteria: SearchCriteria,
        target_date: str,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> List[DoctorSearchResult]:
        """
        Search active doctors matching ``criteria``.

        ``latitude``/``longitude`` are accepted for a future distance score and
        are currently ignored. Returns at most ``result_limit`` ranked results,
        or an empty list if the query fails.
        """
        sql = _DOCTOR_QUERY
        params: List[Any] = []
        for column, value in (
            ("d.specialization", criteria.specialty),
            ("h.city", criteria.location),
            ("h.name", criteria.hospital_preference),
        ):
            if value and value.strip():
                sql += f" AND LOWER({column}) LIKE ? ESCAPE '\\'"
                params.append(_like_pattern(value.strip().lower()))
        sql += " LIMIT ?"
        params.append(self.candidate_limit)

        try:
            rows = await self.db.fetch_all(sql, params)
            doctors = [DoctorSearchResult.from_row(_nest_hospital(row)) for row in rows]
            slots = await asyncio.gather(
                *(self.get_next_available_slot(d.id, target_date) for d in doctors)
            )
        except Exception:
            logger.exception("doctor search failed for %s", criteria.model_dump())
            return []

        for doctor, slot in zip(doctors, slots):
            doctor.next_available_slot = slot

        results = rank_doctors(doctors, self.weights, self.result_limit)
        logger.info(
            "search %s on %s: %d candidates, returning %d",
            criteria.model_dump(exclude_none=True), target_date, len(doctors), len(results),
        )
        return results

    def _cutoff(self) -> Tuple[str, str]:
        """Today's date and the current ``HH:MM``; today's slots must start after it."""
        now = self.clock.now()
        return now.date().isoformat(), now.strftime("%H:%M")

    async def get_next_available_slot(self, doctor_id: str, from_date: str) -> Optional[SlotOption]:
        """Earliest open, not yet started slot on or after ``from_date``."""
        today, current_time = self._cutoff()
        row = await self.db.fetch_one(
            """
            SELECT id, slot_date AS date, slot_time AS time FROM appointment_slots
            WHERE doctor_id = ? AND is_available = 1 AND slot_date >= ?
              AND (slot_date > ? OR substr(slot_time, 1, 5) > ?)
            ORDER BY slot_date, slot_time
            LIMIT 1
            """,
            (doctor_id, max(from_date, today), today, current_time),
        )
        return _slot(row) if row else None

    async def get_available_slots(self, doctor_id: str, date: str) -> List[SlotOption]:
        """Open, not yet started slots for one doctor and day, earliest first; empty on failure."""
        today, current_time = self._cutoff()
        if date < today:
            return []
        try:
            rows = await self.db.fetch_all(
                """
                SELECT id, slot_date AS date, slot_time AS time FROM appointment_slots
                WHERE doctor_id = ? AND slot_date = ? AND is_available = 1
                  AND (slot_date > ? OR substr(slot_time, 1, 5) > ?)
                ORDER BY slot_time
                LIMIT ?
                """,
                (doctor_id, date, today, current_time, self.slot_list_limit),
            )
        except Exception:
            logger.exception("slot lookup failed for doctor %s on %s", doctor_id, date)
            return []
        return [_slot(row) for row in rows]


def _slot(row: Dict[str, Any]) -> SlotOption:
    return SlotOption(id=row["id"], date=row["date"], time=row["time"][:5])


def _nest_hospital(row: Dict[str, Any]) -> Dict[str, Any]:
    """Move ``hospital_*`` columns into a nested ``hospital`` mapping."""
    doctor: Dict[str, Any] = {}
    hospital: Dict[str, Any] = {}
    for key, value in row.items():
        if key.startswith("hospital_"):
            hospital[key[len("hospital_"):]] = value
        else:
            doctor[key] = value
    languages = doctor.get("languages")
    if isinstance(languages, str):
        try:
            doctor["languages"] = json.loads(languages)
        except ValueError:
            doctor["languages"] = [languages]
    doctor["hospital"] = hospital
    return doctor
