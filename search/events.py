"""
User-facing search events.

Workers and the coordinator emit LogEvents into an EventSink. The default
sink is an in-memory log that observers poll. Every event is also mirrored
to structlog.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Protocol
import structlog

from config import settings

logger = structlog.get_logger()


class LogLevel(str, Enum):
    """Severity of a search event."""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class LogEvent:
    """A single entry in the search event stream."""
    level: LogLevel
    message: str
    worker_id: Optional[int] = None
    timestamp: datetime = field(default_factory=datetime.now)

    def format(self) -> str:
        return f"[{self.timestamp.strftime('%Y-%m-%d %H:%M:%S')}] {self.message}"


class EventSink(Protocol):
    """Anything that accepts search events."""

    def append(self, event: LogEvent) -> None:
        ...


class EventStore(EventSink, Protocol):
    """Event sink that also keeps events for observers to read back."""

    def events(self, limit: Optional[int] = None) -> List[LogEvent]:
        ...

    def clear(self) -> int:
        ...


class EventLog:
    """
    Thread-safe in-memory event sink with bounded retention.

    Once more than ``max_entries`` events are held, the oldest
    ``evict_block`` are dropped in one go.
    """

    def __init__(
        self,
        max_entries: Optional[int] = None,
        evict_block: Optional[int] = None
    ):
        self.max_entries = max_entries or settings.EVENT_LOG_MAX_ENTRIES
        self.evict_block = evict_block or settings.EVENT_LOG_EVICT_BLOCK
        self._events: List[LogEvent] = []
        self._lock = threading.Lock()

    def append(self, event: LogEvent) -> None:
        with self._lock:
            self._events.append(event)
            if len(self._events) > self.max_entries:
                del self._events[:self.evict_block]

    def events(self, limit: Optional[int] = None) -> List[LogEvent]:
        """
        Copy of the retained events, oldest first.

        Args:
            limit: Only return the most recent ``limit`` events
        """
        with self._lock:
            if limit is not None:
                return self._events[-limit:] if limit > 0 else []
            return list(self._events)

    def clear(self) -> int:
        """Drop all events. Returns how many were removed."""
        with self._lock:
            removed = len(self._events)
            self._events.clear()
            return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


class EventEmitter:
    """Builds timestamped events, appends them to a sink and mirrors to structlog."""

    def __init__(self, sink: EventSink):
        self.sink = sink

    def emit(self, level: LogLevel, message: str, worker_id: Optional[int] = None) -> LogEvent:
        event = LogEvent(level=level, message=message, worker_id=worker_id)
        self.sink.append(event)

        if level == LogLevel.ERROR:
            logger.error(message, worker_id=worker_id)
        elif level == LogLevel.WARNING:
            logger.warning(message, worker_id=worker_id)
        elif level == LogLevel.SUCCESS:
            logger.info(message, worker_id=worker_id, outcome="success")
        else:
            logger.info(message, worker_id=worker_id)

        return event

    def info(self, message: str, worker_id: Optional[int] = None) -> LogEvent:
        return self.emit(LogLevel.INFO, message, worker_id)

    def success(self, message: str, worker_id: Optional[int] = None) -> LogEvent:
        return self.emit(LogLevel.SUCCESS, message, worker_id)

    def warning(self, message: str, worker_id: Optional[int] = None) -> LogEvent:
        return self.emit(LogLevel.WARNING, message, worker_id)

    def error(self, message: str, worker_id: Optional[int] = None) -> LogEvent:
        return self.emit(LogLevel.ERROR, message, worker_id)
