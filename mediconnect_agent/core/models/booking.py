"""
Booking-related data models.
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict

from ...utils.rows import first_related


class BookingResult(BaseModel):
    """Outcome of an atomic booking attempt."""

    model_config = ConfigDict(extra="forbid")

    success: bool
    appointment_id: Optional[str] = None
    confirmation_code: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def failed(cls, error: str) -> "BookingResult":
        return cls(success=False, error=error)


class CancellationResult(BaseModel):
    """Outcome of a cancellation attempt."""

    model_config = ConfigDict(extra="forbid")

    success: bool
    error: Optional[str] = None
    too_late: bool = False


class ConsultationInfo(BaseModel):
    """The appointment currently with the doctor."""

    model_config = ConfigDict(extra="forbid")

    patient_name: Optional[str] = None
    started_at: Optional[str] = None


class QueueStatus(BaseModel):
    """Same-day queue snapshot for one doctor."""

    model_config = ConfigDict(extra="forbid")

    in_consultation: Optional[ConsultationInfo] = None
    checked_in_count: int = 0
    waiting_count: int = 0
    patients_ahead: int = 0
    estimated_wait_minutes: int = 0
    current_delay: int = 0


class AppointmentSummary(BaseModel):
    """Appointment as shown to the patient."""

    model_config = ConfigDict(extra="ignore")

    id: str
    appointment_date: str
    appointment_time: str
    status: str
    doctor_id: Optional[str] = None
    doctor_name: Optional[str] = None
    specialization: Optional[str] = None
    hospital_name: Optional[str] = None
    hospital_address: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "AppointmentSummary":
        data = dict(row)
        doctor = first_related(data.pop("doctor", None)) or {}
        hospital = first_related(data.pop("hospital", None)) or {}
        data.setdefault("doctor_id", doctor.get("id"))
        data.setdefault("doctor_name", doctor.get("name"))
        data.setdefault("specialization", doctor.get("specialization"))
        data.setdefault("hospital_name", hospital.get("name"))
        data.setdefault("hospital_address", hospital.get("address"))
        return cls(**data)
