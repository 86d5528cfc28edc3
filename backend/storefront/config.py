"""
Storefront API — Application Configuration
============================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or a .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; checked again during startup.

Secrets (payment secret key, image host secret) are SecretStr so they never
render in reprs or log lines. The publishable key is not a secret, but it is
still only ever read from the environment.
"""

from typing import List

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Defaults are suitable for local development against a MongoDB on
    localhost. Payment and image-host credentials have no usable default and
    must be supplied by the deployment.
    """

    # ── Document store ────────────────────────────────────────────────────
    mongo_url: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection string",
    )
    mongo_db_name: str = Field(default="ecommerce")
    # Server selection timeout; keeps /health and startup from hanging
    # when the cluster is unreachable.
    mongo_timeout_ms: int = Field(default=5000, ge=100, le=60000)
    products_collection: str = Field(default="products")
    categories_collection: str = Field(default="categories")

    # ── Payment processor (Stripe) ────────────────────────────────────────
    stripe_secret_key: SecretStr = Field(default=SecretStr(""))
    stripe_publishable_key: SecretStr = Field(
        default=SecretStr(""),
        description="Publishable key handed to client-side payment sheets",
    )
    # Ephemeral keys are pinned to the API version the mobile SDK was built
    # against; each checkout profile carries its own.
    stripe_card_ephemeral_key_version: str = Field(default="2022-11-15")
    stripe_automatic_ephemeral_key_version: str = Field(default="2024-06-20")
    default_currency: str = Field(default="usd", min_length=3, max_length=3)

    # ── Image host (Cloudinary) ───────────────────────────────────────────
    cloudinary_name: str = Field(default="")
    cloudinary_api_key: str = Field(default="")
    cloudinary_secret: SecretStr = Field(default=SecretStr(""))
    cloudinary_folder: str = Field(default="ecommerce")

    # Upload cap in bytes (default 5MB)
    max_image_size: int = Field(default=5_242_880, ge=65_536, le=52_428_800)

    upload_retry_max_attempts: int = Field(default=3, ge=1, le=10)
    upload_retry_min_wait: int = Field(default=1, ge=0, le=30)
    upload_retry_max_wait: int = Field(default=8, ge=1, le=120)

    # ── Search ────────────────────────────────────────────────────────────
    search_query_max_length: int = Field(default=256, ge=1, le=4096)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Comma-separated URLs, or "*" for any origin.
    cors_origins: str = Field(default="*")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080, ge=1, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("default_currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.lower()

    # ── Rate Limiting ─────────────────────────────────────────────────────
    # Per-IP sliding window
    rate_limit_requests: int = Field(default=300, ge=10, le=100000)
    rate_limit_window: int = Field(default=900, ge=1, le=86400)  # seconds

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @property
    def images_configured(self) -> bool:
        return bool(
            self.cloudinary_name
            and self.cloudinary_api_key
            and self.cloudinary_secret.get_secret_value()
        )

    def validate_required_for_production(self) -> None:
        """
        Checks that the credentials the payment endpoints depend on are set.

        Called during app startup (lifespan). Raises ValueError naming the
        missing variables; values are never included in the message.
        """
        errors = []
        if not self.stripe_secret_key.get_secret_value():
            errors.append("STRIPE_SECRET_KEY is not set.")
        if not self.stripe_publishable_key.get_secret_value():
            errors.append(
                "STRIPE_PUBLISHABLE_KEY is not set. "
                "Client payment sheets cannot initialise without it."
            )
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance, imported throughout the application
settings = Settings()
