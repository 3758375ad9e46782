"""
Rental Repairs Application Configuration
Loads settings from .env file using Pydantic v2 with BaseSettings
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List, Dict, Any
from functools import lru_cache

from rental_repairs.domain.specialization import (
    DEFAULT_SPECIALIZATION_KEYWORDS,
    SpecializationKeywordMap,
)
from rental_repairs.domain.submission_policy import RateLimitConfiguration


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # ==================== Project Info ====================
    PROJECT_NAME: str = "Rental Repairs API"
    PROJECT_DESCRIPTION: str = "Maintenance request lifecycle and worker scheduling"
    VERSION: str = "1.0.0"

    # ==================== Database ====================
    DATABASE_URL: str = "sqlite:///rental_repairs_local.db"
    DATABASE_POOL_RECYCLE: int = 3600

    # ==================== Server Configuration ====================
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    RELOAD: bool = False

    # ==================== Submission Rate Limits ====================
    MAX_PENDING_REQUESTS: int = 5
    MINIMUM_HOURS_BETWEEN_SUBMISSIONS: int = 1  # 0 disables the check
    MAX_EMERGENCY_REQUESTS_PER_MONTH: int = 3  # 0 disables the check
    EMERGENCY_REQUEST_LOOKBACK_DAYS: int = 30

    # ==================== Worker Availability ====================
    MAX_AVAILABLE_WORKERS: int = 10
    BOOKING_LOOKAHEAD_DAYS: int = 30
    NEXT_AVAILABLE_SEARCH_DAYS: int = 60

    # Ordered [{"category": ..., "keywords": [...]}, ...]; first match wins
    SPECIALIZATION_KEYWORDS: List[Dict[str, Any]] = [
        {"category": category, "keywords": list(keywords)}
        for category, keywords in DEFAULT_SPECIALIZATION_KEYWORDS
    ]

    # ==================== Notifications ====================
    # Events are logged when no webhook is configured
    NOTIFICATION_WEBHOOK_URL: Optional[str] = None
    NOTIFICATION_TIMEOUT_SECONDS: float = 5.0

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
    def rate_limit_configuration(self) -> RateLimitConfiguration:
        """Rate-limit thresholds as the value the submission policy expects"""
        return RateLimitConfiguration(
            max_pending_requests=self.MAX_PENDING_REQUESTS,
            minimum_hours_between_submissions=self.MINIMUM_HOURS_BETWEEN_SUBMISSIONS,
            max_emergency_requests_per_month=self.MAX_EMERGENCY_REQUESTS_PER_MONTH,
            emergency_request_lookback_days=self.EMERGENCY_REQUEST_LOOKBACK_DAYS,
        )

    @property
    def specialization_keyword_map(self) -> SpecializationKeywordMap:
        return SpecializationKeywordMap.from_config(self.SPECIALIZATION_KEYWORDS)


# ==================== Settings Singleton ====================
@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Create default settings instance
settings = get_settings()


# ==================== Helper Functions ====================
def get_database_url() -> str:
    return settings.DATABASE_URL


def is_development() -> bool:
    """Check if running in development"""
    return settings.DEBUG


def is_testing() -> bool:
    """Check if running in testing mode"""
    return settings.TESTING


def log_level(override: Optional[str] = None) -> str:
    return (override or settings.LOG_LEVEL).upper()
