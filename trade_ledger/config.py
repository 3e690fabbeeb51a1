"""
Application configuration.

All configuration is loaded from environment variables.
Never hardcode secrets or connection strings in code.
"""

import os
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Trade Ledger"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "postgresql://localhost:5432/trade_ledger"
    )
    # Upper bound for a single posting unit of work (PostgreSQL only)
    POSTING_TIMEOUT_MS: int = int(os.getenv("POSTING_TIMEOUT_MS", "5000"))
    # Alembic owns the schema; this is for local runs without migrations
    CREATE_TABLES_ON_STARTUP: bool = (
        os.getenv("CREATE_TABLES_ON_STARTUP", "false").lower() == "true"
    )
    SEED_CHART_ON_STARTUP: bool = (
        os.getenv("SEED_CHART_ON_STARTUP", "false").lower() == "true"
    )

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Presentation
    CURRENCY_SYMBOL: str = os.getenv("CURRENCY_SYMBOL", "₹")

    # Well-known accounts in the chart
    CASH_ACCOUNT_CODE: str = os.getenv("CASH_ACCOUNT_CODE", "1111")
    BANK_ACCOUNT_CODE: str = os.getenv("BANK_ACCOUNT_CODE", "1112")
    TRADE_RECEIVABLES_CODE: str = os.getenv("TRADE_RECEIVABLES_CODE", "1121")
    TRADE_PAYABLES_CODE: str = os.getenv("TRADE_PAYABLES_CODE", "2111")
    SALES_REVENUE_CODE: str = os.getenv("SALES_REVENUE_CODE", "4110")
    PURCHASES_EXPENSE_CODE: str = os.getenv("PURCHASES_EXPENSE_CODE", "5110")

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    Using lru_cache means the Settings object is created once
    and reused for all subsequent calls.
    """
    return Settings()
