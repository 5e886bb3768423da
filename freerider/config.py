"""
Backend settings (pydantic-settings). Every field can be overridden by an
environment variable of the same name or a line in .env.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # ── Database ──────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite:///./freerider.db"

    # ── Network ───────────────────────────────────────────────────────────
    BACKEND_IP: str = "0.0.0.0"
    BACKEND_PORT: int = 8080

    # ── Security ──────────────────────────────────────────────────────────
    API_KEY: Optional[str] = None   # Set in .env to enable auth on API endpoints

    # ── Reservations ──────────────────────────────────────────────────────
    HOLD_TIMEOUT_MINUTES: int = 10           # InquiryConfirmed hold window
    HOLD_SWEEP_INTERVAL_SECONDS: int = 30    # Max delay before an abandoned hold is purged
    RESERVATION_TIMEZONE: str = "Europe/Berlin"   # Wall clock of "yyyy-MM-dd HH:mm:ss" values

    # ── Logging ───────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"   # Empty string disables the rotating file handler

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
