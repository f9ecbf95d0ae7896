"""
Language-related enums.
"""

from enum import Enum
from typing import Optional


class Language(str, Enum):
    """Languages the assistant can reply in."""

    ENGLISH = "English"
    HINDI = "Hindi"
    TELUGU = "Telugu"
    TAMIL = "Tamil"
    KANNADA = "Kannada"

    @classmethod
    def registration_choices(cls) -> list:
        """Languages offered during registration, in menu order."""
        return [cls.ENGLISH, cls.HINDI, cls.TELUGU, cls.TAMIL]

    @classmethod
    def from_string(cls, value: Optional[str]) -> Optional["Language"]:
        """Match a language name case-insensitively."""
        if not value:
            return None
        cleaned = value.strip().strip(".").lower()
        for lang in cls:
            if lang.value.lower() == cleaned:
                return lang
        return None

    @classmethod
    def is_english(cls, value: Optional[str]) -> bool:
        return not value or value.strip().lower() == cls.ENGLISH.value.lower()
