"""
Doctor search data models.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from ..enums import PromotionLevel
from ...utils.rows import first_related


class SlotOption(BaseModel):
    """A bookable (doctor, date, time) unit."""

    model_config = ConfigDict(extra="forbid")

    id: str
    date: str  # YYYY-MM-DD
    time: str  # HH:MM


class HospitalSummary(BaseModel):
    """Hospital fields needed for search ranking and display."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    address: Optional[str] = None
    city: Optional[str] = None
    tier: int = 3
    is_promoted: bool = False
    promotion_level: Optional[PromotionLevel] = None


class DoctorSearchResult(BaseModel):
    """Doctor returned by search, enriched with the next open slot."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    specialization: str
    qualifications: Optional[str] = None
    experience_years: Optional[int] = None
    consultation_fee: float = 0.0
    rating: float = 0.0
    languages: List[str] = Field(default_factory=list)
    hospital: Optional[HospitalSummary] = None
    next_available_slot: Optional[SlotOption] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "DoctorSearchResult":
        """Build from a joined doctor row whose ``hospital`` may be a dict or a list."""
        data = dict(row)
        hospital = first_related(data.pop("hospital", None))
        if hospital is not None:
            hospital = dict(hospital)
            hospital["promotion_level"] = PromotionLevel.from_string(hospital.get("promotion_level"))
            hospital["is_promoted"] = bool(hospital.get("is_promoted"))
        data["hospital"] = hospital
        return cls(**data)

    @property
    def hospital_name(self) -> str:
        return self.hospital.name if self.hospital else ""


class SearchCriteria(BaseModel):
    """Filters applied to a doctor search."""

    model_config = ConfigDict(extra="forbid")

    specialty: Optional[str] = None
    location: Optional[str] = None
    hospital_preference: Optional[str] = None
