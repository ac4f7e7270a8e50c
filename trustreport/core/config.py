"""Configuration management for the TrustReport service.

All tunables (connection strings, OpenAI parameters, cache windows and the
scoring thresholds) are loaded from the environment or a ``.env`` file using
Pydantic Settings.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from trustreport.utils.logger import setup_logging


class Settings(BaseSettings):
    """Application settings with validation and type hints."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application Settings
    APP_NAME: str = Field(default="TrustReport", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    APP_ENV: str = Field(default="development", description="Application environment")
    APP_HOST: str = Field(default="0.0.0.0", description="Application host")
    APP_PORT: int = Field(default=8000, description="Application port", ge=1, le=65535)

    # API Settings
    API_V1_PREFIX: str = Field(default="/api/v1", description="API v1 prefix")
    CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="Allowed CORS origins",
    )

    # Database Configuration
    MONGODB_URL: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URL",
    )
    MONGODB_DB_NAME: str = Field(
        default="trustreport", description="MongoDB database name"
    )
    MONGODB_MAX_POOL_SIZE: int = Field(
        default=50, description="MongoDB max connection pool size", ge=1
    )
    MONGODB_MIN_POOL_SIZE: int = Field(
        default=5, description="MongoDB min connection pool size", ge=0
    )
    MONGODB_CONNECT_TIMEOUT_MS: int = Field(
        default=10000, description="MongoDB connection timeout in milliseconds", ge=1000
    )
    MONGODB_USE_TRANSACTIONS: bool = Field(
        default=True,
        description="Wrap cache replacement in a multi-document transaction (requires a replica set)",
    )

    # Redis Configuration
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0", description="Redis connection URL"
    )
    REDIS_PASSWORD: Optional[str] = Field(default=None, description="Redis password")
    REDIS_MAX_CONNECTIONS: int = Field(
        default=50, description="Redis max connections", ge=1
    )
    CONFIG_CACHE_TTL_SECONDS: int = Field(
        default=300, description="TTL of cached report/system configuration", ge=0
    )

    # OpenAI Configuration
    OPENAI_API_KEY: Optional[str] = Field(default=None, description="OpenAI API key")
    OPENAI_BASE_URL: str = Field(
        default="https://api.openai.com/v1", description="OpenAI API base URL"
    )
    OPENAI_DEFAULT_MODEL: str = Field(
        default="gpt-4.1-2025-04-14", description="Default chat completion model"
    )
    OPENAI_TEMPERATURE: float = Field(
        default=0.7, description="Default sampling temperature", ge=0.0, le=2.0
    )
    OPENAI_TIMEOUT: float = Field(
        default=60.0, description="OpenAI request timeout in seconds", gt=0
    )
    OPENAI_MAX_RETRIES: int = Field(
        default=1, description="Retries on transient OpenAI failures", ge=0, le=5
    )
    OPENAI_RETRY_BACKOFF_SECONDS: float = Field(
        default=1.0, description="Base delay of the exponential retry backoff", ge=0.0
    )

    # Personal adjustment collaborator
    ADJUSTMENT_SERVICE_URL: Optional[str] = Field(
        default=None,
        description="URL of the personal adjustment endpoint; unset disables adjustment",
    )
    ADJUSTMENT_TIMEOUT: float = Field(
        default=10.0, description="Adjustment call timeout in seconds", gt=0
    )

    # AI analysis cache
    ANALYSIS_VERSION: str = Field(
        default="2.1", description="Version tag mixed into every analysis fingerprint"
    )
    AI_CACHE_MAX_AGE_HOURS: int = Field(
        default=720, description="Maximum age of a reusable analysis", ge=1
    )
    AI_CACHE_EXPIRY_HOURS: int = Field(
        default=720, description="Expiry stamped on newly stored analyses", ge=1
    )

    # Scoring thresholds
    RISK_HIGH_MULTIPLIER: float = Field(
        default=2.0, description="total >= n * multiplier classifies as RIESGO ALTO", gt=0
    )
    RISK_MEDIUM_MULTIPLIER: float = Field(
        default=1.0, description="total >= n * multiplier classifies as RIESGO MEDIO", gt=0
    )
    SIMULATION_ALERT_THRESHOLD: float = Field(
        default=5.0, description="Absolute deviation from population average that flags simulation", ge=0
    )
    DEFAULT_NATIONAL_AVERAGE: float = Field(
        default=1.5, description="Population average used when a question has none", ge=0, le=3
    )

    # Report defaults
    DEFAULT_COMPANY_NAME: str = Field(default="Avsec Trust", description="Fallback company name")
    DEFAULT_SYSTEM_NAME: str = Field(default="Sistema", description="Fallback system name")
    REPORT_TIMEZONE: str = Field(
        default="America/Bogota", description="Timezone used for dates printed in reports"
    )

    # Feature Flags
    ENABLE_CACHE: bool = Field(default=True, description="Enable Redis caching")
    ENABLE_API_DOCS: bool = Field(default=True, description="Enable API documentation")
    ENABLE_METRICS: bool = Field(default=True, description="Enable metrics collection")

    # Logging Configuration
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Log level",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    LOG_FORMAT: str = Field(
        default="json", description="Log format", pattern="^(json|text)$"
    )
    LOG_FILE_PATH: Optional[str] = Field(default=None, description="Log file path")

    @field_validator("APP_ENV")
    def validate_app_env(cls, v: str) -> str:
        """Validate application environment."""
        v = v.lower()
        valid_envs = ["development", "test", "staging", "production"]
        if v not in valid_envs:
            raise ValueError(f"APP_ENV must be one of {valid_envs}")
        return v

    @field_validator("MONGODB_URL")
    def validate_mongodb_url(cls, v: str) -> str:
        """Validate MongoDB URL format."""
        if not v.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError("MongoDB URL must start with mongodb:// or mongodb+srv://")
        return v

    @field_validator("REDIS_URL")
    def validate_redis_url(cls, v: str) -> str:
        if not v.startswith(("redis://", "rediss://")):
            raise ValueError("Redis URL must start with redis:// or rediss://")
        return v

    @model_validator(mode="after")
    def validate_settings(self) -> "Settings":
        """Validate settings after all fields are set."""
        if self.RISK_MEDIUM_MULTIPLIER > self.RISK_HIGH_MULTIPLIER:
            raise ValueError("RISK_MEDIUM_MULTIPLIER must not exceed RISK_HIGH_MULTIPLIER")

        if self.APP_ENV == "test":
            self.ENABLE_METRICS = False

        if self.APP_ENV == "production":
            self.LOG_LEVEL = "INFO" if self.LOG_LEVEL == "DEBUG" else self.LOG_LEVEL

        return self

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.APP_ENV == "development"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings instance
    """
    settings = Settings()

    environment = settings.APP_ENV
    if settings.LOG_FORMAT == "json" and environment == "staging":
        environment = "production"

    setup_logging(
        environment=environment,
        log_level=settings.LOG_LEVEL,
        log_file=settings.LOG_FILE_PATH,
    )

    return settings


settings = get_settings()
