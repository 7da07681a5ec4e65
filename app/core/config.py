from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "local"
    APP_NAME: str = "Tour Booking API"
    # Comma-separated origins for CORS. If empty, uses localhost defaults.
    CORS_ORIGINS: str = ""

    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    VERIFY_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    RESET_TOKEN_EXPIRE_MINUTES: int = 15

    DATABASE_URL: str

    @field_validator("DATABASE_URL", mode="after")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Hosted Postgres often hands out postgres://; SQLAlchemy expects postgresql+psycopg2://."""
        if v and v.startswith("postgres://"):
            return "postgresql+psycopg2://" + v[11:]
        return v
    REDIS_URL: str = "redis://localhost:6379/0"

    # Logging
    LOG_LEVEL: str = ""  # empty: info in production, debug elsewhere
    LOG_FILE: str = ""
    LOG_FILE_MAXSIZE: int = 10 * 1024 * 1024
    LOG_FILE_MAXFILES: int = 5
    LOG_ERROR_FILE: str = ""

    # Mail
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 465
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = "no-reply@tours.local"
    SMTP_TIMEOUT: int = 15

    SENDGRID_API_KEY: str = ""
    SENDGRID_FROM_EMAIL: str = ""

    OWNER_EMAIL: str = ""
    ADMIN_EMAILS: str = ""  # comma-separated, copied on order emails

    CLIENT_BASE_URL: str = "http://localhost:8000"  # used in verify / reset links

    # PayPal REST
    PAYPAL_API: str = "https://api-m.sandbox.paypal.com"
    PAYPAL_CLIENT_ID: str = ""
    PAYPAL_SECRET: str = ""
    PAYPAL_CURRENCY: str = "USD"
    PAYPAL_RETURN_URL: str = "http://localhost:8000/checkout"
    PAYPAL_CANCEL_URL: str = "http://localhost:8000"
    PAYPAL_BRAND_NAME: str = "Tour Booking"
    PAYPAL_WEBHOOK_ID: str = ""
    PAYPAL_WEBHOOK_VERIFY: bool = False
    PAYPAL_TIMEOUT: int = 25

    # Exchange rates
    FX_API_URL: str = "https://open.er-api.com/v6/latest"
    FX_CACHE_BACKEND: str = "memory"  # memory|redis
    FX_CACHE_TTL_SECONDS: int = 3600
    FX_TIMEOUT: int = 10

    INVOICE_CODE_MAX_ATTEMPTS: int = 50

    @property
    def is_production(self) -> bool:
        return self.ENV.lower() in ("prod", "production")

    @property
    def admin_emails(self) -> list[str]:
        return [e.strip() for e in self.ADMIN_EMAILS.split(",") if e.strip()]


settings = Settings()
