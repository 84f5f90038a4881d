from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    ENVIRONMENT: Literal["local", "development", "production", "test"] = "local"
    LOG_LEVEL: str = "INFO"
    STORE_NAME: str = "OUICESTNOUS"
    FRONTEND_URL: str = "http://localhost:5173"
    CHECKOUT_CALLBACK_PATH: str = "/checkout"

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # Supabase auth (tokens are issued by Supabase, verified here).
    # Required everywhere except ENVIRONMENT=test.
    SUPABASE_JWT_SECRET: str = ""

    # Paystack
    PAYSTACK_SECRET_KEY: str = ""
    PAYSTACK_API_BASE_URL: str = "https://api.paystack.co"
    PAYSTACK_CURRENCY: str = "ZAR"
    PAYSTACK_TIMEOUT_SECONDS: float = 30.0

    # Checkout bounds (anti-abuse)
    CHECKOUT_MAX_AMOUNT: float = 1_000_000
    CHECKOUT_MAX_ITEMS: int = 100
    CHECKOUT_MAX_ITEM_QUANTITY: int = 100
    CHECKOUT_MAX_ITEM_PRICE: float = 1_000_000

    # Pricing
    PRICING_POLICY: Literal["bundled", "vat_inclusive"] = "bundled"
    VAT_RATE: float = 0.15

    # Email
    RESEND_API_KEY: str = ""
    RESEND_API_URL: str = "https://api.resend.com/emails"
    DEFAULT_FROM_EMAIL: str = "orders@ouicestnous.com"
    DEFAULT_FROM_NAME: str = "OUICESTNOUS Orders"
    SMTP_HOST: str = "smtp-relay.brevo.com"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""

    # Rate limiting
    REDIS_URL: str = "memory://"
    RATE_LIMIT_ENABLED: bool = True

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str]) -> str:
        if isinstance(v, str):
            if v.startswith("postgresql://"):
                return v.replace("postgresql://", "postgresql+psycopg://", 1)
        return v

    @model_validator(mode="after")
    def require_jwt_secret(self) -> "Settings":
        if self.ENVIRONMENT != "test" and not self.SUPABASE_JWT_SECRET:
            raise ValueError("SUPABASE_JWT_SECRET must be set")
        return self

    @property
    def checkout_callback_url(self) -> str:
        return f"{self.FRONTEND_URL.rstrip('/')}{self.CHECKOUT_CALLBACK_PATH}"


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
