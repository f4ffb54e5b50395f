"""Configuration management using Pydantic Settings.

Loads configuration from environment variables with .env file support.
"""

from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration."""

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    environment: str = "development"

    # Reservation store (processed orders)
    database_url: str = "sqlite+aiosqlite:///./data/processed_orders.db"

    # Reservation cache
    redis_enabled: bool = False
    redis_host: str = "redis"
    redis_port: int = 6379
    redis_db: int = 0
    lock_ttl_seconds: int = 300
    seen_ttl_seconds: int = 7200

    # ExactOnline Configuration
    exact_base_url: str = "https://start.exactonline.nl"
    exact_division_code: int = 0
    exact_client_id: Optional[str] = None
    exact_client_secret: Optional[str] = None
    exact_access_token: Optional[str] = None
    exact_refresh_token: Optional[str] = None
    exact_token_file: str = "config/exact_tokens.json"
    exact_timeout_seconds: float = 30.0
    exact_default_currency: str = "EUR"
    exact_default_warehouse: Optional[str] = None
    exact_default_salesperson: Optional[str] = None
    exact_order_status: int = 12
    exact_unflag_previous_main_address: bool = False

    # Order composition
    shipping_product_sku: str = "09CH9902"
    default_shipping_price: float = 63.50
    store_pickup_shipping_method_id: str = "19eb5f3e-7131-4d48-8a38-5b66eb44aa5b"
    carrier_shipping_method_id: str = "f4b84d79-3796-4fdc-a24e-08cd7628ce82"

    # Shopify Configuration
    shopify_store_url: Optional[str] = None
    shopify_access_token: Optional[str] = None
    shopify_api_version: str = "2025-01"
    shopify_webhook_secret: Optional[str] = None

    # Failure audit trail
    failure_log_path: str = "logs/failed_orders.log"

    # GlitchTip Error Monitoring
    glitchtip_dsn: Optional[str] = None

    class Config:
        """Pydantic config."""

        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


# Create a global settings instance
settings = Settings()
