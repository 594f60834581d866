"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class BankingConfig(BaseSettings):
    """Retail banking demo configuration"""

    model_config = SettingsConfigDict(
        env_prefix="RETAIL_BANKING_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Storage configuration
    storage_type: str = "memory"  # memory or sqlite
    database_path: str = "retail_banking.db"

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8090

    # Session configuration
    session_secret: str = "change-me-in-production"
    session_hours: int = 1
    session_cookie_name: str = "retail_banking_session"
    session_algorithm: str = "HS256"

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text

    # Demo data
    seed_demo_data: bool = True


# Global configuration instance
config = BankingConfig()


def get_config() -> BankingConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> BankingConfig:
    """Reload configuration from environment"""
    global config
    config = BankingConfig()
    return config
