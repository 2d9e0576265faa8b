"""
Sales Reports
Centralized Configuration Management

This module provides configuration management using Pydantic settings with
environment variable support, validation, and type safety.
"""

from datetime import date
from functools import lru_cache
from typing import Optional, List
from pydantic import Field, field_validator, model_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Each section is instantiated on its own, so each reads .env itself
ENV_FILE_CONFIG = dict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


class DatabaseSettings(BaseSettings):
    """Fact/dimension store (PostgreSQL) configuration"""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_", **ENV_FILE_CONFIG)

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    db: str = Field(default="data_warehouse", alias="database", description="Database name")
    user: str = Field(default="analytics", description="Database user")
    password: SecretStr = Field(default="secure_password", description="Database password")
    url: Optional[str] = Field(default=None, description="Full SQLAlchemy URL (overrides host/port)")
    schema_name: Optional[str] = Field(default="gold", description="Schema holding the fact/dimension tables")
    echo: bool = Field(default=False, description="Echo SQL queries")

    @property
    def async_url(self) -> str:
        """Async database URL - uses POSTGRES_URL if set, otherwise builds one for asyncpg"""
        if self.url:
            return self.url
        return f"postgresql+asyncpg://{self.user}:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.db}"


class DataSourceSettings(BaseSettings):
    """File snapshot configuration"""

    model_config = SettingsConfigDict(env_prefix="DATA_", **ENV_FILE_CONFIG)

    source_path: str = Field(default="./data/gold", description="Directory with fact/dimension files")
    file_format: str = Field(default="csv", description="File format: csv or parquet")

    @field_validator("file_format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate file format value"""
        allowed = ["csv", "parquet"]
        if v.lower() not in allowed:
            raise ValueError(f"File format must be one of: {allowed}")
        return v.lower()


class ReportSettings(BaseSettings):
    """Customer and product report thresholds"""

    model_config = SettingsConfigDict(env_prefix="REPORT_", **ENV_FILE_CONFIG)

    evaluation_date: Optional[date] = Field(
        default=None,
        description="Pinned evaluation date for recency and age (defaults to today)",
    )

    # Customer segmentation
    min_lifespan_months: int = Field(default=12, ge=0, description="Lifespan needed for VIP/Regular")
    vip_sales_threshold: float = Field(default=5000, description="Customers above this total are VIP")

    # Product segmentation
    high_performer_threshold: float = Field(default=50000, description="Products above this total are High-Performers")
    mid_range_ceiling: float = Field(default=10000, description="Products at or below this total are Mid-Range")

    unknown_label: str = Field(default="Unknown", description="Label for derived fields with missing inputs")
    validate_dimensions: bool = Field(default=True, description="Fail on duplicate dimension keys")

    @model_validator(mode="after")
    def validate_product_bands(self) -> "ReportSettings":
        """Product bands must not overlap"""
        if self.mid_range_ceiling > self.high_performer_threshold:
            raise ValueError("mid_range_ceiling must not exceed high_performer_threshold")
        return self


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="", **ENV_FILE_CONFIG)

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", description="Log format: json or text")

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format value"""
        allowed = ["json", "text"]
        if v.lower() not in allowed:
            raise ValueError(f"Log format must be one of: {allowed}")
        return v.lower()


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(case_sensitive=False, **ENV_FILE_CONFIG)

    # Application
    app_name: str = Field(default="sales-reports", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", alias="API_HOST", description="API host")
    api_port: int = Field(default=8000, alias="API_PORT", description="API port")
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8088"],
        description="Allowed CORS origins"
    )

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    data_source: DataSourceSettings = Field(default_factory=DataSourceSettings)
    reports: ReportSettings = Field(default_factory=ReportSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.app_env == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
