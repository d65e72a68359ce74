# app/core/config.py
"""
Application settings, read from the environment (prefix LEDGER_) or a .env file.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Customer Ledger API"
    api_version: str = "0.1.0"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///db.sqlite"  # file in project root
    db_echo: bool = False

    # Balance policy: edits/deletes may leave a customer in credit
    allow_credit_balance: bool = False

    # Excel export ("en" or "ar")
    export_locale: str = "en"


settings = Settings()
