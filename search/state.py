"""
Shared state of one search run.

A SearchState is created fresh for every run and shared by reference between
the coordinator and all workers. All reads and writes go through one lock.
"""

import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from search.date_range import DateRange


class RunResult(str, Enum):
    """Final outcome of a run."""
    FOUND = "found"
    NOT_FOUND = "not_found"
    ABORTED = "aborted"


@dataclass(frozen=True)
class SearchSnapshot:
    """Point-in-time copy of a SearchState for observers."""
    running: bool = False
    stop_requested: bool = False
    cancelled: bool = False
    found_count: int = 0
    checked_count: int = 0
    total_count: int = 0
    identifier: Optional[str] = None
    date_range: Optional[DateRange] = None
    worker_count: int = 0
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    result: Optional[RunResult] = None

    @property
    def progress(self) -> float:
        """Fraction of dates checked so far (0.0 - 1.0)."""
        if self.total_count <= 0:
            return 0.0
        return self.checked_count / self.total_count

    @property
    def unchecked_count(self) -> int:
        """Dates with no confirmed outcome (never queried, or the request failed)."""
        return max(self.total_count - self.checked_count - self.found_count, 0)

    @property
    def status_text(self) -> str:
        if self.running:
            return f"Running... ({self.checked_count}/{self.total_count})"
        if self.result == RunResult.FOUND:
            return "RECORD FOUND!"
        if self.result == RunResult.NOT_FOUND:
            return "No record found"
        if self.result == RunResult.ABORTED:
            return "Stopped"
        return "Ready"


class SearchState:
    """
    Thread-safe state for a single run.

    ``stop_requested`` goes from False to True at most once per run and is
    never reset. Counters only ever increase.
    """

    def __init__(
        self,
        identifier: str,
        date_range: DateRange,
        worker_count: int
    ):
        self.identifier = identifier
        self.date_range = date_range
        self.worker_count = worker_count
        self.total_count = date_range.length

        self._lock = threading.Lock()
        self._running = True
        self._stop_requested = False
        self._cancelled = False
        self._found_count = 0
        self._checked_count = 0
        self._started_at = datetime.utcnow()
        self._finished_at: Optional[datetime] = None
        self._result: Optional[RunResult] = None

    @property
    def running(self) -> bool:
        with self._lock:
            return self._running

    @property
    def stop_requested(self) -> bool:
        with self._lock:
            return self._stop_requested

    @property
    def cancelled(self) -> bool:
        with self._lock:
            return self._cancelled

    @property
    def found_count(self) -> int:
        with self._lock:
            return self._found_count

    @property
    def checked_count(self) -> int:
        with self._lock:
            return self._checked_count

    @property
    def result(self) -> Optional[RunResult]:
        with self._lock:
            return self._result

    def request_stop(self, cancelled: bool = False) -> bool:
        """
        Raise the run-wide stop signal.

        Args:
            cancelled: True when the stop comes from the user rather than
                from a worker reaching a terminal outcome

        Returns:
            True only for the call that actually raised the signal
        """
        with self._lock:
            if self._stop_requested or not self._running:
                return False
            self._stop_requested = True
            self._cancelled = cancelled
            return True

    def increment_checked(self) -> int:
        with self._lock:
            self._checked_count += 1
            return self._checked_count

    def increment_found(self) -> int:
        with self._lock:
            self._found_count += 1
            return self._found_count

    def finish(self) -> RunResult:
        """Mark the run as complete and derive its result."""
        with self._lock:
            if self._result is None:
                if self._found_count > 0:
                    self._result = RunResult.FOUND
                elif self._cancelled:
                    self._result = RunResult.ABORTED
                else:
                    self._result = RunResult.NOT_FOUND
                self._running = False
                self._finished_at = datetime.utcnow()
            return self._result

    def snapshot(self) -> SearchSnapshot:
        with self._lock:
            return SearchSnapshot(
                running=self._running,
                stop_requested=self._stop_requested,
                cancelled=self._cancelled,
                found_count=self._found_count,
                checked_count=self._checked_count,
                total_count=self.total_count,
                identifier=self.identifier,
                date_range=self.date_range,
                worker_count=self.worker_count,
                started_at=self._started_at,
                finished_at=self._finished_at,
                result=self._result
            )
