"""
Settings Module
===============

Pydantic-based configuration with environment variable loading.

Version: 0.1.0
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CloudProvider(str, Enum):
    """Supported cloud providers."""

    AWS = "aws"
    AZURE = "azure"
    GCP = "gcp"


class PostgresSettings(BaseSettings):
    """PostgreSQL database configuration."""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_")

    host: str = "localhost"
    port: int = 5432
    user: str = "cirrus"
    password: SecretStr = SecretStr("cirrus_dev_password")
    db: str = "cirrus"
    pool_size: int = 10
    max_overflow: int = 20

    @property
    def async_url(self) -> str:
        """Generate async SQLAlchemy connection URL."""
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.db}"

    @property
    def sync_url(self) -> str:
        """Generate sync SQLAlchemy connection URL."""
        pwd = self.password.get_secret_value()
        return f"postgresql://{self.user}:{pwd}@{self.host}:{self.port}/{self.db}"


class CORSSettings(BaseSettings):
    """CORS configuration."""

    model_config = SettingsConfigDict(env_prefix="CORS_")

    origins: str = "http://localhost:3000,http://localhost:5173"
    allow_credentials: bool = True

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into list."""
        return [o.strip() for o in self.origins.split(",") if o.strip()]


class ServicePorts(BaseSettings):
    """Service port configuration."""

    security_dashboard: int = Field(default=8000, alias="SECURITY_DASHBOARD_PORT")


class ComplianceSettings(BaseSettings):
    """Compliance engine behaviour."""

    model_config = SettingsConfigDict(env_prefix="COMPLIANCE_")

    # Exempted rows past their expiry are tallied as non-compliant
    enforce_exemption_expiry: bool = True

    # Provider assumed when a resource carries no provider hint
    default_provider: CloudProvider = CloudProvider.AWS


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables with sensible defaults.
    Use the global `settings` singleton or call `get_settings()`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # General
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = True
    log_level: LogLevel = LogLevel.INFO

    # Project paths
    project_root: Path = Field(default_factory=lambda: Path(__file__).parent.parent.parent)

    # Service ports
    ports: ServicePorts = Field(default_factory=ServicePorts)

    # Database connection
    postgres: PostgresSettings = Field(default_factory=PostgresSettings)

    # Security
    cors: CORSSettings = Field(default_factory=CORSSettings)

    # Compliance engine
    compliance: ComplianceSettings = Field(default_factory=ComplianceSettings)

    @field_validator("log_level", mode="before")
    @classmethod
    def uppercase_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Ensure log level is uppercase."""
        if isinstance(v, str):
            return LogLevel(v.upper())
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        """Check if running in test mode."""
        return self.environment == Environment.TESTING


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings singleton.
    """
    return Settings()
