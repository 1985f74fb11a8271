"""
Configuration settings for the M-Pesa SMS Parser.
Centralized configuration management for the application.
"""

import os
from pathlib import Path
from typing import Optional


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


class Config:
    """Application configuration class."""

    # Application Settings
    APP_NAME = "M-Pesa SMS Transaction Parser"
    VERSION = "1.0.0"

    # Parsing Settings
    MAX_MESSAGE_LENGTH: int = int(os.getenv("MAX_MESSAGE_LENGTH", "2000"))

    # Inbox Upload Settings
    MAX_INBOX_SIZE_MB: int = int(os.getenv("MAX_INBOX_SIZE_MB", "5"))
    MAX_INBOX_SIZE_BYTES: int = MAX_INBOX_SIZE_MB * 1024 * 1024
    ALLOWED_INBOX_TYPES: list[str] = [".txt", ".json"]

    # Output Settings
    OUTPUT_DIR: Path = Path(os.getenv("OUTPUT_DIR", "./output"))
    LOG_DIR: Path = Path(os.getenv("LOG_DIR", "./logs"))

    # Validation Settings
    STRICT_MODE: bool = _env_flag("STRICT_MODE")
    ALLOW_ZERO_AMOUNTS: bool = _env_flag("ALLOW_ZERO_AMOUNTS", "true")

    # Logging Settings
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"

    # API Settings
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))

    @classmethod
    def ensure_directories(cls):
        """Ensure required directories exist."""
        cls.OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
        cls.LOG_DIR.mkdir(parents=True, exist_ok=True)

    @classmethod
    def get_output_path(cls, filename: str) -> Path:
        """Get full path for output file."""
        cls.ensure_directories()
        return cls.OUTPUT_DIR / filename

    @classmethod
    def get_log_path(cls, filename: str) -> Path:
        """Get full path for log file."""
        cls.ensure_directories()
        return cls.LOG_DIR / filename

    @classmethod
    def validate_file(cls, filename: str, file_size: int) -> tuple[bool, Optional[str]]:
        """
        Validate an uploaded inbox export.

        Returns:
            tuple: (is_valid, error_message)
        """
        if not any(filename.lower().endswith(ext) for ext in cls.ALLOWED_INBOX_TYPES):
            return False, f"Invalid file type. Allowed types: {', '.join(cls.ALLOWED_INBOX_TYPES)}"

        if file_size > cls.MAX_INBOX_SIZE_BYTES:
            size_mb = file_size / (1024 * 1024)
            return False, f"File too large ({size_mb:.2f} MB). Maximum: {cls.MAX_INBOX_SIZE_MB} MB"

        if file_size == 0:
            return False, "File is empty"

        return True, None

    @classmethod
    def to_dict(cls) -> dict:
        """Convert configuration to dictionary."""
        return {
            "app_name": cls.APP_NAME,
            "version": cls.VERSION,
            "max_message_length": cls.MAX_MESSAGE_LENGTH,
            "max_inbox_size_mb": cls.MAX_INBOX_SIZE_MB,
            "allowed_inbox_types": list(cls.ALLOWED_INBOX_TYPES),
            "output_dir": str(cls.OUTPUT_DIR),
            "log_dir": str(cls.LOG_DIR),
            "strict_mode": cls.STRICT_MODE,
            "allow_zero_amounts": cls.ALLOW_ZERO_AMOUNTS,
            "log_level": cls.LOG_LEVEL,
        }


# Create a singleton instance
config = Config()
