"""
Application configuration using Pydantic Settings.
"""

import os
from functools import lru_cache
from pydantic_settings import BaseSettings


def get_env_file() -> str:
    """Determine which env file to use based on environment."""
    env = os.getenv("APP_ENV", "development")
    if env == "production":
        return ".env.production"
    return ".env.development"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App settings
    app_name: str = "Rental Mortgage Planner"
    debug: bool = False
    log_level: str = "INFO"
    app_env: str = "development"

    # Property data
    property_provider: str = "memory"
    seed_sample_data: bool = True

    # Forecast defaults (decimals)
    forecast_years: int = 10
    default_rent_growth: float = 0.02
    default_expense_inflation: float = 0.025
    default_appreciation: float = 0.03
    default_vacancy_rate: float = 0.05
    default_future_interest_rate: float = 0.05
    default_exit_cap_rate: float = 0.05

    # Sale scenario defaults
    sale_comparison_years: int = 5
    sale_alternative_return: float = 0.05

    # Schedule tables
    schedule_preview_rows: int = 50

    class Config:
        env_file = get_env_file()
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
