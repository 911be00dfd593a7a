"""
Configuration management for mysqlgate.

Loads configuration from environment variables with support for .env files.
Uses Pydantic Settings for validation and type coercion.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_env_file: str | Path = ".env"


class MySQLSettings(BaseSettings):
    """
    MySQL connection and policy settings.

    Read from MYSQL_* environment variables. A non-empty ``dsn`` takes
    precedence over the structured host/user/password/port/database values.
    """

    model_config = SettingsConfigDict(
        env_prefix="MYSQL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = Field(default="localhost", description="MySQL server host")
    user: str = Field(default="root", description="MySQL user")
    password: str = Field(default="", description="MySQL password")
    port: int = Field(default=3306, description="MySQL server port")
    database: str = Field(default="", description="Default database name")
    dsn: str = Field(default="", description="Full connection string, overrides host/user/...")

    read_only: bool = Field(default=False, description="Do not register mutating tools")
    explain_check: bool = Field(
        default=False, description="Verify statement type with EXPLAIN before running it"
    )


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    MySQL settings are read from MYSQL_<NAME> variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str | None = Field(default=None, description="Log file path")
    debug: bool = Field(default=False, description="Force DEBUG logging")

    mysql: MySQLSettings = Field(default_factory=MySQLSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return upper_v

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application settings instance
    """
    return Settings(
        _env_file=_env_file,
        mysql=MySQLSettings(_env_file=_env_file),
    )


def load_settings(env_file: str | Path | None = None) -> Settings:
    """
    Load settings from a specific .env file.

    Args:
        env_file: Path to .env file (optional)

    Returns:
        Settings: Application settings instance
    """
    global _env_file
    if env_file:
        _env_file = env_file
    # Clear cache to reload
    get_settings.cache_clear()
    return get_settings()
