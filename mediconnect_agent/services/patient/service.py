"""
Patient service for user lookup, registration and medical records.
"""

from typing import List, Optional

from ...core.exceptions import PatientLookupError
from ...core.models import NewUser, RecordSummary, User
from ...utils.logging import get_logger
from ..storage import Database, new_id, now_iso

logger = get_logger("patients")


class PatientService:
    """Service for handling patient identities."""

    def __init__(self, db: Database, records_limit: int = 10):
        self.db = db
        self.records_limit = records_limit

    async def find_by_phone(self, phone: str) -> Optional[User]:
        """
        Look up a registered patient.

        Args:
            phone: E.164 phone number

        Returns:
            User if registered, None otherwise
        """
        row = await self.db.fetch_one(
            """
            SELECT id, phone, name, age, preferred_language, city, latitude, longitude
            FROM users WHERE phone = ?
            """,
            (phone,),
        )
        return User(**row) if row else None

    async def create_user(self, data: NewUser) -> User:
        """
        Create the patient record at the end of registration.

        Raises:
            PatientLookupError: if the insert fails (e.g. phone already registered)
        """
        stamp = now_iso()
        user_id = new_id()
        try:
            await self.db.insert(
                "users",
                {
                    "id": user_id,
                    "phone": data.phone,
                    "name": data.name,
                    "age": data.age,
                    "preferred_language": data.preferred_language,
                    "city": data.city,
                    "latitude": data.latitude,
                    "longitude": data.longitude,
                    "whatsapp_name": data.whatsapp_name,
                    "registered_via": "whatsapp",
                    "created_at": stamp,
                    "updated_at": stamp,
                },
            )
        except Exception as e:
            raise PatientLookupError(f"Failed to create user: {e}") from e

        logger.info("registered user %s for %s", user_id, data.phone)
        return User(id=user_id, **data.model_dump(exclude={"whatsapp_name"}))

    async def get_medical_records(self, user_id: str) -> List[RecordSummary]:
        """Most recent records first; empty on query failure."""
        try:
            rows = await self.db.fetch_all(
                """
                SELECT r.id, r.title, r.record_type, r.created_at,
                       COALESCE(h.name, 'Unknown Hospital') AS hospital_name
                FROM medical_records r
                LEFT JOIN hospitals h ON h.id = r.hospital_id
                WHERE r.user_id = ?
                ORDER BY r.created_at DESC
                LIMIT ?
                """,
                (user_id, self.records_limit),
            )
        except Exception:
            logger.exception("medical records lookup failed for %s", user_id)
            return []
        return [RecordSummary(**row) for row in rows]
