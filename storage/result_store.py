"""
File storage for lookup responses that ended a search.

Each saved response is the raw HTML body, named after the registration
number and date:

{results_dir}/
    [HTTP{status}_]{IDENTIFIER}_{YYYY-MM-DD}.html
"""

from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Optional
import structlog

from config import settings

logger = structlog.get_logger()


@dataclass
class SaveResult:
    """Result of saving a response body."""
    success: bool
    filename: str
    path: Optional[Path] = None
    error: Optional[str] = None


class ResultStore:
    """Writes matched or failed responses to the results directory."""

    SUCCESS_STATUS = 200

    def __init__(self, results_dir: Optional[Path] = None):
        """
        Initialize result store.

        Args:
            results_dir: Directory for saved responses. Uses config default if
                not provided. Created on first save.
        """
        self.results_dir = Path(results_dir) if results_dir else settings.RESULTS_DIR

    def build_filename(self, identifier: str, day: date, status_code: int) -> str:
        """File name for a response; non-200 responses get an HTTP{code}_ prefix."""
        safe_identifier = identifier
        for char in settings.FILENAME_INVALID_CHARS:
            safe_identifier = safe_identifier.replace(char, "_")

        prefix = f"HTTP{status_code}_" if status_code != self.SUCCESS_STATUS else ""
        return f"{prefix}{safe_identifier}_{day.isoformat()}.html"

    def save(self, identifier: str, day: date, body: str, status_code: int) -> SaveResult:
        """
        Save a response body.

        Args:
            identifier: Registration number that was looked up
            day: Date that produced the response
            body: Raw response text
            status_code: HTTP status of the response

        Returns:
            SaveResult; failures are reported, never raised
        """
        filename = self.build_filename(identifier, day, status_code)
        path = self.results_dir / filename

        try:
            self.results_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(body, encoding="utf-8")
        except OSError as e:
            logger.error("Failed to save response", path=str(path), error=str(e))
            return SaveResult(success=False, filename=filename, error=str(e))

        logger.info("Saved response", path=str(path), size=len(body))
        return SaveResult(success=True, filename=filename, path=path)
