from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from pydantic import field_validator


def _parse_bool(v):
    if isinstance(v, str):
        return v.lower().strip('"').strip("'") in ("true", "1", "yes", "on")
    return bool(v)


class Settings(BaseSettings):
    # Database settings
    POSTGRES_USER: str = 'nexpro_user'
    POSTGRES_PASSWORD: str = 'nexpro_pass'
    POSTGRES_DB: str = 'nexpro_db'
    POSTGRES_HOST: str = 'postgres'
    POSTGRES_PORT: int = 5432
    DATABASE_URL: Optional[str] = None  # Override completo (sqlite:// en tests)

    # Redis settings
    REDIS_HOST: str = 'redis'
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: Optional[str] = None

    # JWT settings
    APP_SECRET_STRING: str = 'your-super-secret-key-here-change-in-production-2024'
    ALGORITHM: str = 'HS256'
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Pagination
    DEFAULT_PAGE_SIZE: int = 100
    MAX_PAGE_SIZE: int = 500

    # Job attachments (stored inline as data URLs)
    MAX_ATTACHMENT_SIZE: int = 5 * 1024 * 1024  # 5MB

    FRONTEND_URL: str = 'http://localhost:3000'
    DEFAULT_CURRENCY: str = 'GHS'

    # WhatsApp Cloud API
    WHATSAPP_API_VERSION: str = 'v21.0'
    WHATSAPP_APP_SECRET: str = ''
    WHATSAPP_WEBHOOK_VERIFY_TOKEN: str = ''
    WHATSAPP_DAILY_LIMIT: int = 1000

    # Sabito partner sync
    SABITO_API_URL: str = 'http://localhost:4002'
    SABITO_API_KEY: str = ''
    SABITO_SYNC_ENABLED: bool = True
    SABITO_SYNC_INTERVAL_HOURS: int = 6
    SABITO_SYNC_DELAY_SECONDS: float = 1.0

    # Accounting codes used by invoice payment journals
    ACCOUNTING_CASH_ACCOUNT_CODE: str = '1000'
    ACCOUNTING_AR_ACCOUNT_CODE: str = '1100'
    ACCOUNTING_UNDEPOSITED_ACCOUNT_CODE: str = '1200'

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def redis_url(self) -> str:
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    @property
    def whatsapp_base_url(self) -> str:
        return f"https://graph.facebook.com/{self.WHATSAPP_API_VERSION}"

    model_config = SettingsConfigDict(
        extra="allow",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @field_validator("DEBUG", mode="before")
    @classmethod
    def parse_debug(cls, v):
        return _parse_bool(v)

    @field_validator("SABITO_SYNC_ENABLED", mode="before")
    @classmethod
    def parse_sabito_sync(cls, v):
        return _parse_bool(v)


settings = Settings()
