"""Application settings and configuration."""
import json
from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Lemon Squeezy product id -> tier id, as configured in the store
DEFAULT_PRODUCT_TIERS: dict[int, int] = {
    568025: 1,  # basic
    568028: 2,  # pro
    568031: 3,  # pro_plus
    568029: 4,  # enterprise
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = "Subscription Sync Service"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"  # development, staging, production

    # Server
    host: str = "0.0.0.0"
    port: int = 3001
    workers: int = 1

    # Supabase (data store)
    supabase_url: str = "http://localhost:54321"
    supabase_service_role_key: Optional[str] = None
    store_timeout_seconds: float = 5.0

    # Lemon Squeezy (billing provider)
    webhook_secret: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("webhook_secret", "lemon_squeezy_webhook_secret"),
    )
    # Stored as str to prevent pydantic-settings auto-JSON-parse failures
    lemon_squeezy_product_tiers: str = ""

    @field_validator("webhook_secret", mode="before")
    @classmethod
    def blank_secret_is_unset(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty WEBHOOK_SECRET the same as an unset one."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def product_tier_mapping(self) -> dict[int, int]:
        """Parse the product id -> tier id table, falling back to the store defaults."""
        raw = self.lemon_squeezy_product_tiers.strip()
        if not raw:
            return dict(DEFAULT_PRODUCT_TIERS)
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"LEMON_SQUEEZY_PRODUCT_TIERS is not valid JSON: {e}") from e
        if not isinstance(parsed, dict):
            raise ValueError("LEMON_SQUEEZY_PRODUCT_TIERS must be a JSON object")
        return {int(product_id): int(tier_id) for product_id, tier_id in parsed.items()}

    @property
    def webhook_verification_enabled(self) -> bool:
        """False means webhook signatures are not checked (local development only)."""
        return bool(self.webhook_secret)

    # Clerk (directory provider)
    clerk_secret_key: Optional[str] = None
    clerk_api_url: str = "https://api.clerk.com/v1"
    clerk_timeout_seconds: float = 10.0
    clerk_sync_limit: int = 500
    user_sync_delay_seconds: float = 0.05

    # Shared token for the user sync routes
    admin_api_token: Optional[str] = None

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment == "development"

    def validate_production_secrets(self) -> None:
        """Validate that production deployments carry their credentials.

        Open webhook mode (no WEBHOOK_SECRET) is a development convenience;
        production and staging refuse to start without it.
        """
        if self.environment in ("production", "staging"):
            if not self.supabase_service_role_key:
                raise ValueError("SUPABASE_SERVICE_ROLE_KEY is required in production!")
            if not self.webhook_secret:
                raise ValueError("WEBHOOK_SECRET is required in production!")
            if self.admin_api_token is not None and len(self.admin_api_token) < 32:
                raise ValueError("ADMIN_API_TOKEN must be at least 32 characters in production!")

        if self.store_timeout_seconds <= 0:
            raise ValueError("STORE_TIMEOUT_SECONDS must be positive")

        # Fail at startup rather than on the first webhook
        self.product_tier_mapping


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Automatically validates that production/staging deployments have
    proper secrets configured; the app will refuse to start otherwise.
    """
    s = Settings()
    s.validate_production_secrets()
    return s
