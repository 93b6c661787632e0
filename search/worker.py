"""
Per-partition search loop.

A Worker walks its sub-range one date at a time. Before every request it
checks the run-wide stop signal. A match or a non-200 response saves the
body, bumps the found counter and raises the stop signal for every peer.
"""

from datetime import date
from enum import Enum
from typing import Optional

from config import settings
from fetcher.registration_client import QueryClient, QueryOutcome
from search.classifier import Classification, ClassificationKind, ResponseClassifier, body_preview
from search.date_range import DateRange
from search.events import EventEmitter
from search.state import SearchState
from storage.result_store import ResultStore

SEPARATOR = "=" * 80


class StopReason(str, Enum):
    """Why a worker stopped."""
    RANGE_EXHAUSTED = "range_exhausted"
    GLOBAL_STOP_SIGNAL = "global_stop_signal"
    LOCAL_MATCH = "local_match"
    LOCAL_PROTOCOL_ERROR = "local_protocol_error"


class Worker:
    """Sequential lookup loop over one partition of the date range."""

    def __init__(
        self,
        worker_id: int,
        identifier: str,
        date_range: DateRange,
        state: SearchState,
        client: QueryClient,
        store: ResultStore,
        emitter: EventEmitter,
        classifier: Optional[ResponseClassifier] = None
    ):
        self.worker_id = worker_id
        self.identifier = identifier
        self.date_range = date_range
        self.state = state
        self.client = client
        self.store = store
        self.emitter = emitter
        self.classifier = classifier or ResponseClassifier()

        # No-record responses seen by this worker
        self.checked = 0
        self.stop_reason: Optional[StopReason] = None

    @property
    def label(self) -> str:
        return f"Thread {self.worker_id}"

    def run(self) -> StopReason:
        """Check every date in the partition until done or told to stop."""
        for day in self.date_range.days():
            if self.state.stop_requested:
                return self._halt()

            outcome = self.client.query(self.identifier, day)
            classification = self.classifier.classify(outcome)

            if classification.kind == ClassificationKind.TRANSPORT_ERROR:
                self.emitter.error(
                    f"{self.label}: Error checking {day.isoformat()} - {outcome.error}",
                    self.worker_id
                )
                continue

            if classification.kind == ClassificationKind.NO_MATCH:
                self._record_no_match(day)
                continue

            if classification.kind == ClassificationKind.PROTOCOL_ERROR:
                self._handle_protocol_error(outcome, classification)
                return self._stop(StopReason.LOCAL_PROTOCOL_ERROR)

            self._handle_match(outcome)
            return self._stop(StopReason.LOCAL_MATCH)

        if self.state.stop_requested:
            return self._halt()

        self.emitter.warning(
            f"{self.label}: Completed - Checked {self.checked} dates",
            self.worker_id
        )
        return self._stop(StopReason.RANGE_EXHAUSTED)

    def _stop(self, reason: StopReason) -> StopReason:
        self.stop_reason = reason
        return reason

    def _halt(self) -> StopReason:
        if self.state.cancelled:
            message = f"{self.label}: Stopped by user request"
        else:
            message = f"{self.label}: Stopped due to record found elsewhere"
        self.emitter.warning(message, self.worker_id)
        return self._stop(StopReason.GLOBAL_STOP_SIGNAL)

    def _record_no_match(self, day: date) -> None:
        self.state.increment_checked()
        self.checked += 1

        if self.checked % settings.PROGRESS_LOG_EVERY == 0:
            self.emitter.info(
                f"{self.label}: Checked {self.checked} dates, currently at "
                f"{day.isoformat()} - No records",
                self.worker_id
            )

    def _handle_protocol_error(self, outcome: QueryOutcome, classification: Classification) -> None:
        status = classification.status_code
        self.emitter.error(
            f"{self.label}: HTTP {status} Error - Vehicle: {self.identifier}, "
            f"Date: {outcome.day.isoformat()}",
            self.worker_id
        )

        self._save(outcome)
        self.state.increment_found()

        self.emitter.error(f"Response preview: {body_preview(outcome.body)}...", self.worker_id)

        self.state.request_stop()
        self.emitter.warning(
            f"{self.label}: Stopping all threads due to HTTP {status} error",
            self.worker_id
        )

    def _handle_match(self, outcome: QueryOutcome) -> None:
        self.emitter.success(
            f"{self.label}: *** RECORD FOUND *** - Vehicle: {self.identifier}, "
            f"Date: {outcome.day.isoformat()}",
            self.worker_id
        )
        self.emitter.success(SEPARATOR, self.worker_id)
        self.emitter.success("RECORD FOUND! STOPPING ALL THREADS", self.worker_id)
        self.emitter.success(SEPARATOR, self.worker_id)

        self._save(outcome)
        self.state.increment_found()

        self.emitter.success(f"Preview: {body_preview(outcome.body)}...", self.worker_id)

        self.state.request_stop()

    def _save(self, outcome: QueryOutcome) -> None:
        result = self.store.save(self.identifier, outcome.day, outcome.body, outcome.status_code)

        if result.success:
            self.emitter.success(f"{self.label}: Response saved to: {result.filename}", self.worker_id)
        else:
            self.emitter.error(f"{self.label}: Error saving file - {result.error}", self.worker_id)
