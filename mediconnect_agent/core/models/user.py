"""
User-related data models.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict

from ..enums import Language


class User(BaseModel):
    """Patient registered through WhatsApp."""

    model_config = ConfigDict(extra="ignore")

    id: str
    phone: str
    name: Optional[str] = None
    age: Optional[int] = None
    preferred_language: str = Language.ENGLISH.value
    city: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def display_name(self) -> str:
        return self.name or "there"


class NewUser(BaseModel):
    """Fields collected by the registration flow."""

    model_config = ConfigDict(extra="forbid")

    phone: str
    name: str
    age: Optional[int] = None
    preferred_language: str = Language.ENGLISH.value
    city: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    whatsapp_name: Optional[str] = None


class GeocodeResult(BaseModel):
    """Resolved location for free-text input."""

    model_config = ConfigDict(extra="forbid")

    city: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
