"""
Application configuration
Read from environment variables and an optional .env file
"""
from typing import List
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "TravelHub"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./travelhub.db"

    # JWT (tokens are issued elsewhere, only verified here)
    SECRET_KEY: str = "travelhub-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480

    # Reservations
    CAPACITY_LOCK_TIMEOUT_SECONDS: float = 5.0
    BUSY_RETRY_AFTER_SECONDS: int = 1

    # Browsing
    DEFAULT_PAGE_SIZE: int = 9
    MAX_PAGE_SIZE: int = 100

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    model_config = ConfigDict(env_file=".env", case_sensitive=True)


# Global settings instance
settings = Settings()
