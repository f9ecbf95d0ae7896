"""
External API configuration.
"""

from typing import Optional
from pydantic import BaseModel

from .settings import Settings


class ExternalAPIConfig(BaseModel):
    """External API configuration settings."""

    # Twilio WhatsApp API
    twilio_api_base: str = "https://api.twilio.com"
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_whatsapp_number: Optional[str] = None
    twilio_timeout: float = 10.0

    # Language model API
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    llm_model: str = "gpt-4o-mini"
    llm_timeout: float = 15.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "ExternalAPIConfig":
        return cls(
            twilio_api_base=settings.twilio_api_base,
            twilio_account_sid=settings.twilio_account_sid,
            twilio_auth_token=settings.twilio_auth_token,
            twilio_whatsapp_number=settings.twilio_whatsapp_number,
            twilio_timeout=settings.twilio_timeout,
            openai_api_key=settings.openai_api_key,
            openai_base_url=settings.openai_base_url,
            llm_model=settings.llm_model,
            llm_timeout=settings.llm_timeout,
        )

    def get_twilio_messages_url(self) -> Optional[str]:
        """Get Twilio Messages endpoint if configured."""
        if not self.twilio_account_sid:
            return None
        base = self.twilio_api_base.rstrip("/")
        return f"{base}/2010-04-01/Accounts/{self.twilio_account_sid}/Messages.json"

    def get_whatsapp_sender(self) -> Optional[str]:
        """Get the sending WhatsApp address in ``whatsapp:+NNN`` form."""
        if not self.twilio_whatsapp_number:
            return None
        number = self.twilio_whatsapp_number
        return number if number.startswith("whatsapp:") else f"whatsapp:{number}"

    def is_twilio_configured(self) -> bool:
        """Check if Twilio API is properly configured."""
        return bool(
            self.twilio_account_sid and self.twilio_auth_token and self.twilio_whatsapp_number
        )

    def is_llm_configured(self) -> bool:
        """Check if the language model API is properly configured."""
        return bool(self.openai_api_key)
