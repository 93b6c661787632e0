"""
Configuration management for the vehicle registration date search.
Loads settings from environment variables with sensible defaults.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


class Settings:
    """Application settings loaded from environment."""

    # Remote lookup service
    SERVICE_URL: str = os.getenv(
        "SERVICE_URL",
        "http://58.65.189.226:8080/ovd/API_FOR_VEH_REG_DATA/VEHDATA.php"
    )
    IDENTIFIER_FIELD: str = os.getenv("IDENTIFIER_FIELD", "registrationNo")
    DATE_FIELD: str = os.getenv("DATE_FIELD", "registrationDate")
    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "10.0"))

    # Storage
    RESULTS_DIR: Path = Path(os.getenv("RESULTS_DIR", "./vehicle_results"))
    # Replaced with "_" when building result file names
    FILENAME_INVALID_CHARS: str = '<>:"/\\|?* '

    # Search
    DEFAULT_THREADS: int = int(os.getenv("DEFAULT_THREADS", "6"))
    MAX_THREADS: int = int(os.getenv("MAX_THREADS", "20"))
    DEFAULT_START_DATE: str = os.getenv("DEFAULT_START_DATE", "2000-01-01")
    # A worker logs a progress line after this many no-record responses
    PROGRESS_LOG_EVERY: int = int(os.getenv("PROGRESS_LOG_EVERY", "10"))
    PREVIEW_CHARS: int = int(os.getenv("PREVIEW_CHARS", "300"))

    # Event log retention (drop the oldest block once over the cap)
    EVENT_LOG_MAX_ENTRIES: int = int(os.getenv("EVENT_LOG_MAX_ENTRIES", "1000"))
    EVENT_LOG_EVICT_BLOCK: int = int(os.getenv("EVENT_LOG_EVICT_BLOCK", "100"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Application
    APP_NAME: str = "Vehicle Registration Checker"
    APP_VERSION: str = "1.0.0"

    @classmethod
    def ensure_directories(cls) -> None:
        """Create required directories if they don't exist."""
        cls.RESULTS_DIR.mkdir(parents=True, exist_ok=True)

    @classmethod
    def validate(cls) -> list[str]:
        """Validate settings. Returns list of missing/invalid settings."""
        issues = []

        if not cls.SERVICE_URL:
            issues.append("SERVICE_URL is not set")

        if cls.REQUEST_TIMEOUT <= 0:
            issues.append("REQUEST_TIMEOUT must be positive")

        if cls.MAX_THREADS < 1:
            issues.append("MAX_THREADS must be at least 1")
        elif not 1 <= cls.DEFAULT_THREADS <= cls.MAX_THREADS:
            issues.append(
                f"DEFAULT_THREADS must be between 1 and MAX_THREADS ({cls.MAX_THREADS})"
            )

        if cls.EVENT_LOG_EVICT_BLOCK < 1 or cls.EVENT_LOG_EVICT_BLOCK > cls.EVENT_LOG_MAX_ENTRIES:
            issues.append("EVENT_LOG_EVICT_BLOCK must be between 1 and EVENT_LOG_MAX_ENTRIES")

        return issues


settings = Settings()
