"""
Application settings and configuration.
"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Application
    app_name: str = "MediConnect Agent"
    app_version: str = "1.0.0"
    debug: bool = False
    app_url: str = "https://mediconnect.com"

    # Database
    database_path: str = "mediconnect.db"
    database_timeout: float = 30.0

    # Twilio WhatsApp
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_whatsapp_number: Optional[str] = None
    twilio_api_base: str = "https://api.twilio.com"
    twilio_timeout: float = 10.0
    twilio_dev_mode: bool = False
    webhook_public_url: Optional[str] = None

    # Language model (any OpenAI-compatible endpoint)
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    llm_model: str = "gpt-4o-mini"
    llm_timeout: float = 15.0

    # Scheduled jobs
    service_role_key: Optional[str] = None

    # Conversation
    stale_conversation_seconds: int = 3600
    history_turns: int = 4

    # Search & ranking
    search_candidate_limit: int = 50
    search_result_limit: int = 5
    slot_list_limit: int = 10
    slot_lookahead_days: int = 7
    ranking_weight_premium: float = 1000.0
    ranking_weight_promoted: float = 500.0
    ranking_weight_tier: float = 100.0
    ranking_weight_rating: float = 50.0
    ranking_weight_availability: float = 50.0

    # Booking
    cancellation_notice_minutes: int = 120
    average_consultation_minutes: int = 30
    upcoming_appointments_limit: int = 5
    slot_horizon_days: int = 30

    # Medical records
    records_limit: int = 10
    record_token_secret: str = "change-me"
    record_access_ttl_seconds: int = 300

    # Timezone
    timezone: str = "Asia/Kolkata"

    # Logging
    log_level: str = "INFO"


def get_settings() -> Settings:
    """Get application settings instance."""
    return Settings()
