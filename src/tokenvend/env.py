from __future__ import annotations

import os

from pydantic import BaseModel

DEFAULT_DISCOS = "ABA,IKEDC,IBEDC,AEDC,BEDC,EEDC"


class Settings(BaseModel):
    """Typed application settings built from environment variables."""

    # Database settings
    database_url: str = "redis://localhost:6379/0"

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False
    api_workers: int = 1
    api_cors_origins: list[str] = ["*"]

    # Application settings
    app_name: str = "TokenVend"
    app_version: str = "1.0.0"
    log_level: str = "info"

    # Business rules (money in minor units)
    default_customer_limit: int = 1000
    upgrade_slot_price: int = 5000
    max_units_per_request: int = 1_000_000
    discos: list[str] = DEFAULT_DISCOS.split(",")

    # Payment gateway
    payment_gateway_base_url: str = "https://api.paystack.co"
    payment_gateway_secret_key: str = ""
    payment_gateway_timeout: float = 10.0

    # Bank transfer details shown to vendors paying manually
    bank_name: str = ""
    bank_account_number: str = ""
    bank_account_name: str = ""

    # Pub/sub channel for lifecycle notifications
    events_channel: str = "tokenvend:events"

    # Entries kept in each vendor's recent activity feed
    activity_feed_size: int = 20


def _split(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def get_settings() -> Settings:
    """Return typed settings instance sourced from env vars."""
    return Settings(
        database_url=os.environ.get("TOKENVEND_DATABASE_URL", "redis://localhost:6379/0"),
        api_host=os.environ.get("TOKENVEND_API_HOST", "0.0.0.0"),
        api_port=int(os.environ.get("TOKENVEND_API_PORT", "8000")),
        api_debug=os.environ.get("TOKENVEND_API_DEBUG", "false").lower() == "true",
        api_workers=int(os.environ.get("TOKENVEND_API_WORKERS", "1")),
        api_cors_origins=_split(os.environ.get("TOKENVEND_API_CORS_ORIGINS", "*")),
        app_name=os.environ.get("TOKENVEND_APP_NAME", "TokenVend"),
        app_version=os.environ.get("TOKENVEND_APP_VERSION", "1.0.0"),
        log_level=os.environ.get("TOKENVEND_LOG_LEVEL", "info").lower(),
        default_customer_limit=int(
            os.environ.get("TOKENVEND_DEFAULT_CUSTOMER_LIMIT", "1000")
        ),
        upgrade_slot_price=int(os.environ.get("TOKENVEND_UPGRADE_SLOT_PRICE", "5000")),
        max_units_per_request=int(
            os.environ.get("TOKENVEND_MAX_UNITS_PER_REQUEST", "1000000")
        ),
        discos=[
            disco.upper()
            for disco in _split(os.environ.get("TOKENVEND_DISCOS", DEFAULT_DISCOS))
        ],
        payment_gateway_base_url=os.environ.get(
            "TOKENVEND_PAYMENT_GATEWAY_BASE_URL", "https://api.paystack.co"
        ),
        payment_gateway_secret_key=os.environ.get(
            "TOKENVEND_PAYMENT_GATEWAY_SECRET_KEY", ""
        ),
        payment_gateway_timeout=float(
            os.environ.get("TOKENVEND_PAYMENT_GATEWAY_TIMEOUT", "10.0")
        ),
        bank_name=os.environ.get("TOKENVEND_BANK_NAME", ""),
        bank_account_number=os.environ.get("TOKENVEND_BANK_ACCOUNT_NUMBER", ""),
        bank_account_name=os.environ.get("TOKENVEND_BANK_ACCOUNT_NAME", ""),
        events_channel=os.environ.get("TOKENVEND_EVENTS_CHANNEL", "tokenvend:events"),
        activity_feed_size=int(os.environ.get("TOKENVEND_ACTIVITY_FEED_SIZE", "20")),
    )
