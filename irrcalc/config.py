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
    app_name: str = "IRR Calculator"
    debug: bool = False
    log_level: str = "INFO"
    app_env: str = "development"

    # Rate solver
    irr_guess: float = 0.1
    irr_tolerance: float = 1e-6
    irr_max_iterations: int = 100
    blended_max_iterations: int = 20

    class Config:
        env_file = get_env_file()
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
