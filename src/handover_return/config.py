"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DISPUTE_POLICIES = ("disputing_party", "both_parties", "closed")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    booking_service_url: str
    booking_service_token: str | None = None
    verification_code_digits: int = 6
    message_max_length: int = 2000
    dispute_messaging_policy: str = "disputing_party"
    reminder_lead_minutes: int = 60
    default_page_size: int = 20
    max_page_size: int = 100
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_dispute_policy(raw: str | None) -> str:
    """Normalize the messaging policy applied to disputed sessions."""
    if raw is None:
        return "disputing_party"
    cleaned = raw.strip().lower().replace("-", "_")
    if cleaned not in DISPUTE_POLICIES:
        raise ValueError(f"Unknown dispute messaging policy: {raw}")
    return cleaned
