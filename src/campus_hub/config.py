"""Application configuration."""

import os
from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_anon_key: str
    supabase_service_key: str
    functions_url: str | None = None
    profile_fetch_timeout_seconds: float = 10.0
    verification_max_attempts: int = 5
    verification_window_minutes: int = 15
    pickup_window_minutes: int = 30
    reset_link_ttl_seconds: int = 60
    service_fee_rate: Decimal = Decimal("0.05")
    payment_methods: str = "cod,upi"
    staff_password: str | None = None
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def resolved_functions_url(self) -> str:
        """Return the edge-functions base URL."""
        if self.functions_url:
            return self.functions_url.rstrip("/")
        return f"{self.supabase_url.rstrip('/')}/functions/v1"


def parse_payment_methods(raw: str | None) -> list[str]:
    """Parse the accepted payment methods from env."""
    if raw is None:
        return ["cod"]
    methods: list[str] = []
    for chunk in raw.split(","):
        value = chunk.strip().lower()
        if value and value not in methods:
            methods.append(value)
    return methods or ["cod"]
