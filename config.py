"""
Configuration management for MediTrack
"""

from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "MediTrack"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENV: str = "development"

    # API
    API_PREFIX: str = "/api"
    HOST: str = "0.0.0.0"
    PORT: int = 5000

    # Database
    DATABASE_URL: str = "sqlite:///./meditrack.db"
    DATABASE_ECHO: bool = False

    # Security
    JWT_SECRET_KEY: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_DAYS: int = 30
    BCRYPT_ROUNDS: int = 10
    ALLOW_ADMIN_REGISTRATION: bool = False

    # Reminder scan
    REMINDER_SCAN_ENABLED: bool = True
    REMINDER_INTERVAL_SECONDS: int = 300
    REMINDER_LEAD_MINUTES: int = 5

    # Adherence prediction
    PREDICTION_WINDOW_DAYS: int = 30
    PREDICTION_MIN_OBSERVATIONS: int = 3
    PREDICTION_MISS_THRESHOLD: float = 0.4
    PREDICTION_STREAK_SCAN: int = 10

    # LLM Configuration (OpenAI-compatible chat completions)
    LLM_API_KEY: Optional[str] = None
    LLM_BASE_URL: str = "https://api.openai.com/v1"
    LLM_MODEL: str = "gpt-4o-mini"
    LLM_TEMPERATURE: float = 0.7
    LLM_MAX_TOKENS: int = 1024
    LLM_TIMEOUT_SECONDS: int = 30

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:8081", "http://localhost:19006"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Database table names
class TableNames:
    USERS = "users"
    MEDICATIONS = "medications"
    ADHERENCE_LOGS = "adherence_logs"
    CARE_ASSIGNMENTS = "care_assignments"


settings = get_settings()
