"""
Parsing of user-supplied search parameters.

Observers (CLI, API) normalize raw input here before handing parsed values
to the coordinator.
"""

from datetime import date, datetime
from typing import Optional

from search.date_range import DATE_FORMAT
from search.exceptions import ConfigurationError


def normalize_identifier(raw: Optional[str]) -> str:
    """Trim and upper-case a registration number."""
    identifier = (raw or "").strip().upper()
    if not identifier:
        raise ConfigurationError("Please enter a vehicle registration number")
    return identifier


def parse_date(raw: str, label: str = "start") -> date:
    """
    Parse a YYYY-MM-DD date string.

    Args:
        raw: Date text as typed by the user
        label: Which bound this is ("start" or "end"), used in the error

    Returns:
        Parsed date
    """
    try:
        return datetime.strptime(raw.strip(), DATE_FORMAT).date()
    except (ValueError, AttributeError):
        raise ConfigurationError(f"Invalid {label} date format. Use YYYY-MM-DD") from None
