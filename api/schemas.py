"""
Pydantic schemas for API request/response models.
"""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from config import settings
from search.events import LogEvent
from search.inputs import normalize_identifier, parse_date
from search.state import SearchSnapshot


class SearchStartRequest(BaseModel):
    """Schema for starting a search."""
    identifier: str
    start_date: date = Field(default_factory=lambda: parse_date(settings.DEFAULT_START_DATE))
    end_date: date = Field(default_factory=date.today)
    threads: int = Field(default=settings.DEFAULT_THREADS, ge=1, le=settings.MAX_THREADS)

    @field_validator("identifier")
    @classmethod
    def normalize(cls, value: str) -> str:
        return normalize_identifier(value)


class SearchStatusResponse(BaseModel):
    """Schema for search status."""
    running: bool
    stop_requested: bool
    cancelled: bool
    status_text: str
    identifier: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    threads: int = 0
    found_count: int = 0
    checked_count: int = 0
    total_count: int = 0
    progress: float = 0.0
    result: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @classmethod
    def from_snapshot(cls, snapshot: SearchSnapshot) -> "SearchStatusResponse":
        return cls(
            running=snapshot.running,
            stop_requested=snapshot.stop_requested,
            cancelled=snapshot.cancelled,
            status_text=snapshot.status_text,
            identifier=snapshot.identifier,
            start_date=snapshot.date_range.start if snapshot.date_range else None,
            end_date=snapshot.date_range.end if snapshot.date_range else None,
            threads=snapshot.worker_count,
            found_count=snapshot.found_count,
            checked_count=snapshot.checked_count,
            total_count=snapshot.total_count,
            progress=snapshot.progress,
            result=snapshot.result.value if snapshot.result else None,
            started_at=snapshot.started_at,
            finished_at=snapshot.finished_at
        )


class LogEventResponse(BaseModel):
    """Schema for a search event."""
    timestamp: datetime
    level: str
    message: str
    worker_id: Optional[int] = None

    @classmethod
    def from_event(cls, event: LogEvent) -> "LogEventResponse":
        return cls(
            timestamp=event.timestamp,
            level=event.level.value,
            message=event.message,
            worker_id=event.worker_id
        )


class StopResponse(BaseModel):
    """Schema for a stop request result."""
    stopped: bool
    status: SearchStatusResponse


class ClearEventsResponse(BaseModel):
    """Schema for clearing the event log."""
    cleared: int
