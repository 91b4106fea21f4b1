"""Configuration system for DevIndé Finances.

This module provides Pydantic Settings-based configuration with environment
variable support and sensible defaults for the finances pipeline.

Usage:
    from devinde_finances.config import FinancesConfig

    # Load from environment variables and .env file
    config = FinancesConfig()

    # Access storage settings
    print(config.storage.backend)
    print(config.storage.data_dir)

    # Access record defaults
    print(config.defaults.currency)
"""

from enum import Enum

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageBackend(str, Enum):
    """Supported business-plan store backends."""

    MEMORY = "memory"
    JSON = "json"


class StorageConfig(BaseSettings):
    """Business-plan storage settings.

    Environment Variables:
        DEVINDE_STORAGE_BACKEND: Store implementation (memory, json)
        DEVINDE_STORAGE_DATA_DIR: Directory holding the JSON store file
        DEVINDE_STORAGE_STORAGE_KEY: Name of the collection (file stem)
    """

    model_config = SettingsConfigDict(
        env_prefix="DEVINDE_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    backend: StorageBackend = Field(
        default=StorageBackend.MEMORY,
        description="Business-plan store implementation",
    )
    data_dir: str = Field(
        default="./data",
        description="Directory for the JSON store file",
    )
    storage_key: str = Field(
        default="devinde-tracker-business-plans",
        description="Key under which business plans are stored",
    )

    @field_validator("storage_key")
    @classmethod
    def validate_storage_key(cls, v: str) -> str:
        """Ensure the storage key is usable as a file stem."""
        if not v or not v.strip():
            raise ValueError("Storage key cannot be empty")
        if "/" in v or "\\" in v:
            raise ValueError(f"Storage key cannot contain path separators: {v}")
        return v.strip()


class DefaultsConfig(BaseSettings):
    """Defaults applied when the adapter builds a new record.

    Environment Variables:
        DEVINDE_DEFAULTS_CURRENCY: Currency for new bank accounts
        DEVINDE_DEFAULTS_INVOICE_DUE_DAYS: Days between issue and due date
        DEVINDE_DEFAULTS_BUDGET_MONTHS: Length of a new budget period
        DEVINDE_DEFAULTS_FORECAST_MONTHS: Length of a new forecast
        DEVINDE_DEFAULTS_SCENARIO_MONTHS: Length of a new scenario
    """

    model_config = SettingsConfigDict(
        env_prefix="DEVINDE_DEFAULTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    currency: str = Field(
        default="EUR",
        description="ISO currency code for new bank accounts",
    )
    invoice_due_days: int = Field(
        default=30,
        ge=0,
        le=365,
        description="Payment delay for new documents, in days",
    )
    budget_months: int = Field(
        default=1,
        gt=0,
        le=36,
        description="Length of a new expense budget, in months",
    )
    forecast_months: int = Field(
        default=3,
        gt=0,
        le=60,
        description="Horizon of a new cash flow forecast, in months",
    )
    scenario_months: int = Field(
        default=12,
        gt=0,
        le=120,
        description="Horizon of a new cash flow scenario, in months",
    )

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        """Normalize the currency code."""
        if not v or not v.strip():
            raise ValueError("Currency cannot be empty")
        return v.strip().upper()


class StatsConfig(BaseSettings):
    """Aggregation windows.

    Environment Variables:
        DEVINDE_STATS_TRAILING_MONTHS: Months averaged for income/expenses
        DEVINDE_STATS_SHORT_WINDOW_DAYS: Short projection horizon
        DEVINDE_STATS_LONG_WINDOW_DAYS: Long projection horizon
    """

    model_config = SettingsConfigDict(
        env_prefix="DEVINDE_STATS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    trailing_months: int = Field(
        default=6,
        gt=0,
        le=24,
        description="Trailing window for monthly averages; also the divisor",
    )
    short_window_days: int = Field(
        default=30,
        gt=0,
        description="Short projected-balance horizon, in days",
    )
    long_window_days: int = Field(
        default=90,
        gt=0,
        description="Long projected-balance horizon, in days",
    )


class FinancesConfig(BaseSettings):
    """Root configuration for DevIndé Finances.

    Environment Variables:
        DEVINDE_ENV: Environment name (development, staging, production, test)
        DEVINDE_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        DEVINDE_SERIALIZE_MUTATIONS: Queue concurrent mutations per manager

    Example:
        # Load all configuration from environment
        config = FinancesConfig()

        # Override specific settings
        config = FinancesConfig(
            storage=StorageConfig(backend=StorageBackend.JSON, data_dir="/tmp/plans"),
            defaults=DefaultsConfig(currency="USD"),
        )
    """

    model_config = SettingsConfigDict(
        env_prefix="DEVINDE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment settings
    env: str = Field(
        default="development",
        description="Environment name (development, staging, production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    serialize_mutations: bool = Field(
        default=True,
        description="Run save/delete operations of one manager one at a time",
    )

    # Nested configuration
    storage: StorageConfig = Field(default_factory=StorageConfig)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    stats: StatsConfig = Field(default_factory=StatsConfig)

    @field_validator("env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment name."""
        valid_envs = {"development", "staging", "production", "test"}
        v_lower = v.lower().strip()
        if v_lower not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of: {valid_envs}")
        return v_lower

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper().strip()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of: {valid_levels}")
        return v_upper

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.env == "development"

    @property
    def is_debug(self) -> bool:
        """Check if debug logging is enabled."""
        return self.log_level == "DEBUG"
