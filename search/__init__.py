"""Parallel date search for vehicle registration records."""

from search.classifier import Classification, ClassificationKind, ResponseClassifier, classify
from search.coordinator import RunHandle, SearchCoordinator
from search.date_range import DateRange
from search.events import EventEmitter, EventLog, EventSink, EventStore, LogEvent, LogLevel
from search.exceptions import ConfigurationError, SearchAlreadyRunning, SearchError
from search.state import RunResult, SearchSnapshot, SearchState
from search.worker import StopReason, Worker

__all__ = [
    "Classification",
    "ClassificationKind",
    "ConfigurationError",
    "DateRange",
    "EventEmitter",
    "EventLog",
    "EventSink",
    "EventStore",
    "LogEvent",
    "LogLevel",
    "ResponseClassifier",
    "RunHandle",
    "RunResult",
    "SearchAlreadyRunning",
    "SearchCoordinator",
    "SearchError",
    "SearchSnapshot",
    "SearchState",
    "StopReason",
    "Worker",
    "classify",
]
