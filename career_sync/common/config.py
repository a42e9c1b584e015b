"""
Configuration loader for the reconciliation layer.

Loads all settings from environment variables (.env file).
Validates required settings and provides type-safe access.
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """
    Centralized configuration for the dual-write layer.

    All values loaded from environment variables - NO SECRETS IN CODE.
    """

    # ===== Remote API =====
    REMOTE_API_BASE_URL: str = os.getenv("REMOTE_API_BASE_URL", "http://localhost:5000")
    REMOTE_API_TOKEN: str = os.getenv("REMOTE_API_TOKEN", "")
    REMOTE_TIMEOUT_SECONDS: float = float(os.getenv("REMOTE_TIMEOUT_SECONDS", "10"))

    # ===== Reconciliation Policy =====
    # 1 = single attempt; >1 enables bounded exponential backoff for
    # transient remote errors only
    REMOTE_RETRY_ATTEMPTS: int = int(os.getenv("REMOTE_RETRY_ATTEMPTS", "1"))
    REMOTE_RETRY_MAX_WAIT_SECONDS: float = float(os.getenv("REMOTE_RETRY_MAX_WAIT_SECONDS", "4"))
    # True = 4xx handled like a network failure (local mirror stands in)
    SWALLOW_VALIDATION_ERRORS: bool = os.getenv("SWALLOW_VALIDATION_ERRORS", "true").lower() == "true"
    # True = fire invalidation even when both channels failed
    NOTIFY_ON_TOTAL_FAILURE: bool = os.getenv("NOTIFY_ON_TOTAL_FAILURE", "false").lower() == "true"

    # ===== Debug =====
    DEBUG_MODE: bool = os.getenv("DEBUG_MODE", "false").lower() == "true"

    @classmethod
    def validate(cls) -> None:
        """
        Validate configuration values.
        Raises ValueError if settings are unusable.
        """
        if not cls.REMOTE_API_BASE_URL.startswith(("http://", "https://")):
            raise ValueError(
                f"REMOTE_API_BASE_URL must be an http(s) URL, got '{cls.REMOTE_API_BASE_URL}'. "
                f"Please check your .env file."
            )

        if cls.REMOTE_RETRY_ATTEMPTS < 1:
            raise ValueError("REMOTE_RETRY_ATTEMPTS must be at least 1")

        if cls.REMOTE_TIMEOUT_SECONDS <= 0:
            raise ValueError("REMOTE_TIMEOUT_SECONDS must be positive")

    @classmethod
    def summary(cls) -> dict:
        """Loggable configuration snapshot with secrets redacted."""
        return {
            "remote_api_base_url": cls.REMOTE_API_BASE_URL,
            "remote_api_token": "*****" if cls.REMOTE_API_TOKEN else "",
            "remote_timeout_seconds": cls.REMOTE_TIMEOUT_SECONDS,
            "remote_retry_attempts": cls.REMOTE_RETRY_ATTEMPTS,
            "swallow_validation_errors": cls.SWALLOW_VALIDATION_ERRORS,
            "notify_on_total_failure": cls.NOTIFY_ON_TOTAL_FAILURE,
        }

