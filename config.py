"""Configuration module for Email Reminder Service.

This module provides configuration settings using Pydantic Settings.
Environment variables can be used to override default values.
"""

from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings for Email Reminder Service.

    All settings can be overridden via environment variables.
    Example: export DATABASE_URL="postgresql://..."
    """

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./tracked_emails.db"
    """Database connection URL. Default: SQLite file in current directory"""

    # API Server Configuration
    API_HOST: str = "0.0.0.0"
    """API server host address"""

    API_PORT: int = 8000
    """API server port"""

    CORS_ORIGINS: List[str] = ["*"]
    """Origins allowed to call the API (JSON list in the environment)"""

    # Mail Transport Configuration
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASS: Optional[str] = None
    SMTP_START_TLS: bool = True
    SMTP_TIMEOUT: float = 30.0
    """Seconds before aiosmtplib gives up on a connection or command"""

    MAIL_FROM: Optional[str] = None
    """Sender address. Falls back to SMTP_USER when unset"""

    # Reminder recipients (up to three)
    MEMBER_1: Optional[str] = None
    MEMBER_2: Optional[str] = None
    MEMBER_3: Optional[str] = None

    PUBLIC_BASE_URL: str = "http://localhost:8000"
    """Base URL used to build acknowledgment links in reminder emails"""

    # Record Configuration
    MAX_TRACKED_EMAILS: int = 3
    """Maximum number of tracked email records"""

    REMINDER_THRESHOLD_DAYS: int = 31
    """Age in days after which an unseen record triggers reminders"""

    # Background Worker Configuration
    WORKER_ENABLED: bool = True
    """Enable/disable the reminder sweep inside the API process"""

    WORKER_CHECK_INTERVAL: int = 1800
    """Interval in seconds between reminder sweeps (default: 30 minutes)"""

    class Config:
        """Pydantic config"""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True

    @property
    def recipients(self) -> List[str]:
        """Configured reminder recipients, skipping blanks."""
        members = [self.MEMBER_1, self.MEMBER_2, self.MEMBER_3]
        return [m.strip() for m in members if m and m.strip()]

    @property
    def mail_sender(self) -> Optional[str]:
        return self.MAIL_FROM or self.SMTP_USER


# Global settings instance
settings = Settings()
