"""
Intent value objects.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict

from ..enums import IntentType


class ExtractedIntent(BaseModel):
    """Structured reading of one user message. Recomputed every turn, never stored."""

    model_config = ConfigDict(extra="ignore")

    intent: IntentType = IntentType.UNCLEAR
    specialty: Optional[str] = None
    location: Optional[str] = None
    date: Optional[str] = None  # "today" | "tomorrow" | "YYYY-MM-DD"
    hospital_preference: Optional[str] = None
    language: Optional[str] = None
    number: Optional[int] = None
    raw_text: Optional[str] = None

    @classmethod
    def unclear(cls, raw_text: Optional[str] = None) -> "ExtractedIntent":
        return cls(intent=IntentType.UNCLEAR, raw_text=raw_text)

    def selection(self) -> Optional[int]:
        """Number the user replied with, if any."""
        if self.number is not None:
            return self.number
        try:
            return int((self.raw_text or "").strip())
        except ValueError:
            return None
