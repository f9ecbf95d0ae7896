"""
Phone number helpers for WhatsApp addresses.
"""

import re
from typing import Optional


class PhoneNumberParser:
    """Converts between WhatsApp addresses and E.164 phone numbers."""

    WHATSAPP_PREFIX = "whatsapp:"

    @classmethod
    def from_whatsapp_address(cls, address: Optional[str]) -> Optional[str]:
        """
        Parse a WhatsApp address to an E.164 number.

        Args:
            address: e.g. "whatsapp:+919876543210"

        Returns:
            "+919876543210", or None if no digits are present
        """
        if not address or not isinstance(address, str):
            return None

        value = address.strip()
        if value.lower().startswith(cls.WHATSAPP_PREFIX):
            value = value[len(cls.WHATSAPP_PREFIX):]

        digits = re.sub(r"\D", "", value)
        if not digits:
            return None
        return f"+{digits}"

    @classmethod
    def to_whatsapp_address(cls, phone: str) -> str:
        """Format a phone number as a WhatsApp address."""
        if phone.startswith(cls.WHATSAPP_PREFIX):
            return phone
        return f"{cls.WHATSAPP_PREFIX}{phone}"
