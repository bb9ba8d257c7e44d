"""Engine configuration with validation."""
from typing import Literal
from functools import lru_cache
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# FIELD NAME CONSTANTS
# =============================================================================
# CRM field names the engine reads when a view needs a specific signal.
# Admin field mappings can point concepts elsewhere; these are the fallbacks.
# =============================================================================

QUOTA_FIELD_DEFAULTS = {
    "annual": "Annual_Quota__c",
    "quarterly": "Quarterly_Quota__c",
    "monthly": "Monthly_Quota__c",
}

TIMESTAMP_FIELDS = frozenset({
    "LastModifiedDate",
    "LastActivityDate",
    "CreatedDate",
    "SystemModstamp",
    "LastViewedDate",
    "LastReferencedDate",
})


class Settings(BaseSettings):
    """Engine settings, read from the environment or a .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "Sales Dashboard Engine"
    APP_VERSION: str = "1.0.0"
    APP_ENV: Literal["development", "staging", "production"] = "development"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"

    # Hierarchy cache
    CACHE_BACKEND: Literal["memory", "redis"] = "memory"
    REDIS_URL: str = "redis://localhost:6379/0"
    HIERARCHY_CACHE_TTL_SECONDS: int = Field(default=1800, ge=60, le=86400)     # 30 minutes
    HIERARCHY_CACHE_SWEEP_SECONDS: int = Field(default=300, ge=10, le=3600)     # 5 minutes

    # Pagination
    DEFAULT_PAGE_LIMIT: int = Field(default=50, ge=1, le=2000)
    MAX_PAGE_LIMIT: int = Field(default=2000, ge=1, le=2000)

    # Priority scoring
    WEIGHT_TOLERANCE: float = Field(default=0.01, gt=0, le=1.0)

    # Deal health (MEDDPICC fallback)
    MEDDPICC_BASE_SCORE: int = Field(default=30, ge=0, le=100)
    MEDDPICC_DESCRIPTION_MIN_LENGTH: int = Field(default=50, ge=0, le=10000)
    MEDDPICC_LATE_STAGE_COUNT: int = Field(default=2, ge=1, le=10)

    # View thresholds
    STALE_DEAL_DAYS: int = Field(default=14, ge=1, le=365)
    RENEWAL_WINDOW_DAYS: int = Field(default=180, ge=1, le=730)
    OPPORTUNITY_AMOUNT_FIELD: str = "Amount"

    @field_validator("OPPORTUNITY_AMOUNT_FIELD")
    @classmethod
    def validate_amount_field(cls, v: str) -> str:
        if not v or not v.replace("_", "").replace(".", "").isalnum():
            raise ValueError(f"Invalid amount field name: {v!r}")
        return v

    @model_validator(mode="after")
    def validate_page_limits(self):
        """Default page size cannot exceed the hard maximum."""
        if self.DEFAULT_PAGE_LIMIT > self.MAX_PAGE_LIMIT:
            raise ValueError(
                f"DEFAULT_PAGE_LIMIT ({self.DEFAULT_PAGE_LIMIT}) exceeds "
                f"MAX_PAGE_LIMIT ({self.MAX_PAGE_LIMIT})"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
