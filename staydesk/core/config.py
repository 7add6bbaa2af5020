"""
StayDesk Application Configuration
Loads settings from .env file using Pydantic v2 with BaseSettings
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # ==================== Project Info ====================
    PROJECT_NAME: str = "StayDesk API"
    PROJECT_DESCRIPTION: str = "Rental property booking lifecycle - reservations, contracts, concierges, revenue"
    VERSION: str = "1.0.0"

    # ==================== Database ====================
    DATABASE_URL: str = "sqlite:///./staydesk_local.db"
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_POOL_RECYCLE: int = 3600

    # ==================== Security & Authentication ====================
    SECRET_KEY: str = "change-this-secret-key-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 10080  # 7 days

    # ==================== CORS & Frontend ====================
    FRONTEND_URL: str = "http://localhost:3000"
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:3001",
    ]
    GUEST_CONTRACT_PATH: str = "/guest/contract"

    # ==================== Server Configuration ====================
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # ==================== Public identifiers ====================
    PUBLIC_ID_BYTES: int = 16  # 128-bit tokens, 32 hex chars
    PUBLIC_ID_MAX_ATTEMPTS: int = 3

    # ==================== Calendar feeds ====================
    ICAL_FETCH_TIMEOUT: float = 10.0
    ICAL_USER_AGENT: str = "StayDesk Reservation Sync"

    # ==================== Features ====================
    DEBUG: bool = False
    TESTING: bool = False
    LOG_LEVEL: str = "INFO"

    # ==================== Configuration Loading ====================
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="allow",
        validate_default=True,
    )

    # ==================== Properties ====================
    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.lower().startswith("sqlite")

    @property
    def guest_contract_base_url(self) -> str:
        return f"{self.FRONTEND_URL.rstrip('/')}{self.GUEST_CONTRACT_PATH}"


# ==================== Settings Singleton ====================
@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()


def is_production() -> bool:
    """Check if running in production"""
    return not settings.DEBUG and settings.FRONTEND_URL.startswith("https")
