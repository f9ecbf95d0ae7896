"""
Medical record data models.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict


class RecordSummary(BaseModel):
    """Medical record entry shown in the records list."""

    model_config = ConfigDict(extra="ignore")

    id: str
    title: Optional[str] = None
    record_type: str
    created_at: str
    hospital_name: str = "Unknown Hospital"

    @property
    def display_title(self) -> str:
        return self.title or self.record_type


class RecordAccessGrant(BaseModel):
    """Short-lived secure link issued for one record."""

    model_config = ConfigDict(extra="forbid")

    record_id: str
    token: str
    otp: str
    url: str
    expires_at: datetime
