# app/config.py
"""
Application configuration using Pydantic-Settings.
All settings can be overridden via environment variables or .env file.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # ── Database ──────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite:///./parking.db"

    # ── Network ───────────────────────────────────────────────────────────
    BACKEND_IP: str = "0.0.0.0"
    BACKEND_PORT: int = 3000

    # ── Security ──────────────────────────────────────────────────────────
    API_KEY: Optional[str] = None   # Set in .env to protect operator endpoints

    # ── SMS (Twilio) ──────────────────────────────────────────────────────
    SEND_SMS: bool = False
    TWILIO_SID: Optional[str] = None
    TWILIO_TOKEN: Optional[str] = None
    TWILIO_FROM: Optional[str] = None
    TWILIO_API_URL: str = "https://api.twilio.com/2010-04-01"
    SMS_COUNTRY_CODE: str = "+91"

    # ── Email (SMTP) ──────────────────────────────────────────────────────
    SEND_EMAIL: bool = False
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    EMAIL_TO: str = "operator@example.com"   # Operator mailbox for summaries + reports

    DISPATCH_TIMEOUT_SECONDS: float = 10.0

    @property
    def SMS_ENABLED(self) -> bool:
        return bool(self.SEND_SMS and self.TWILIO_SID and self.TWILIO_TOKEN and self.TWILIO_FROM)

    @property
    def EMAIL_ENABLED(self) -> bool:
        return bool(self.SEND_EMAIL and self.SMTP_USER and self.SMTP_PASSWORD)

    # ── Thresholds ────────────────────────────────────────────────────────
    OTP_MAX_ATTEMPTS: int = 5              # Lock the code after 5 wrong guesses
    DEFAULT_DURATION_HOURS: float = 1.0
    REMINDER_WINDOW_MINUTES: int = 15      # Remind once within 15 min of expiry
    SCAN_INTERVAL_SECONDS: int = 60        # Expiry scanner period

    # ── Logging ───────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None          # Defaults to <repo>/logs
    LOG_FILE: Optional[str] = "parking.log"   # Empty disables the file handler

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
