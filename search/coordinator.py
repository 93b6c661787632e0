"""
Search coordinator.

Partitions a date range, runs one Worker per non-empty partition on a thread
pool and owns the per-run SearchState. The caller gets a RunHandle back
immediately; the waiting happens on a background coordinating thread.

Pipeline:
1. Validate identifier, thread count and range
2. Partition the range and log the plan
3. Run workers in parallel until each stops
4. Derive the final result (found / not found / aborted)
"""

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date
from typing import List, Optional
import structlog

from fetcher.registration_client import QueryClient
from search.classifier import ResponseClassifier
from search.date_range import DateRange
from search.events import EventEmitter, EventLog, EventStore, LogEvent
from search.exceptions import ConfigurationError, SearchAlreadyRunning
from search.state import RunResult, SearchSnapshot, SearchState
from search.worker import Worker
from storage.result_store import ResultStore

logger = structlog.get_logger()

DIVIDER = "-" * 80


class RunHandle:
    """Handle on a started run."""

    def __init__(self, state: SearchState, thread: threading.Thread):
        self.state = state
        self._thread = thread

    @property
    def done(self) -> bool:
        return not self._thread.is_alive() and not self.state.running

    @property
    def result(self) -> Optional[RunResult]:
        return self.state.result

    def wait(self, timeout: Optional[float] = None) -> Optional[RunResult]:
        """
        Block until every worker has stopped.

        Returns:
            The run result, or None if the timeout expired first
        """
        self._thread.join(timeout)
        if self._thread.is_alive():
            return None
        return self.state.result

    def snapshot(self) -> SearchSnapshot:
        return self.state.snapshot()


class SearchCoordinator:
    """
    Runs parallel date searches for a registration number.

    One run at a time. Observers poll ``snapshot()`` and the event log while
    a run is in flight and may cancel it with ``request_stop()``.
    """

    def __init__(
        self,
        client: Optional[QueryClient] = None,
        store: Optional[ResultStore] = None,
        sink: Optional[EventStore] = None,
        classifier: Optional[ResponseClassifier] = None
    ):
        self.client = client or QueryClient()
        self.store = store or ResultStore()
        self.sink = sink if sink is not None else EventLog()
        self.classifier = classifier or ResponseClassifier()
        self.emitter = EventEmitter(self.sink)

        self._lock = threading.Lock()
        self._state: Optional[SearchState] = None
        self._handle: Optional[RunHandle] = None

    def _reject(self, error: ConfigurationError) -> ConfigurationError:
        self.emitter.error(str(error))
        return error

    def _validate(
        self,
        identifier: str,
        start_date: date,
        end_date: date,
        worker_count: int
    ) -> DateRange:
        if not identifier or not identifier.strip():
            raise self._reject(ConfigurationError("Please enter a vehicle registration number"))

        if worker_count < 1:
            raise self._reject(ConfigurationError("Number of threads must be at least 1"))

        if start_date > end_date:
            raise self._reject(ConfigurationError("Starting date must be before ending date"))

        return DateRange(start_date, end_date)

    def start(
        self,
        identifier: str,
        start_date: date,
        end_date: date,
        worker_count: int
    ) -> RunHandle:
        """
        Start a search in the background.

        Args:
            identifier: Normalized registration number
            start_date: First date to try (inclusive)
            end_date: Last date to try (inclusive)
            worker_count: Number of parallel workers, at least 1

        Returns:
            RunHandle for the new run

        Raises:
            ConfigurationError: Invalid parameters; nothing was started
            SearchAlreadyRunning: Another run is still in flight
        """
        with self._lock:
            # The previous run still owns the sink until its thread has logged the summary
            if self._handle is not None and not self._handle.done:
                raise self._reject(SearchAlreadyRunning("A search is already running"))

            date_range = self._validate(identifier, start_date, end_date, worker_count)
            partitions = date_range.partition(worker_count)

            state = SearchState(identifier, date_range, worker_count)
            self._state = state

            self._log_plan(state, partitions)

            thread = threading.Thread(
                target=self._run,
                args=(state, partitions),
                name="search-coordinator",
                daemon=True
            )
            handle = RunHandle(state, thread)
            self._handle = handle
            thread.start()

        logger.info(
            "Search started",
            identifier=identifier,
            date_range=str(date_range),
            workers=worker_count
        )
        return handle

    def _log_plan(self, state: SearchState, partitions: List[Optional[DateRange]]) -> None:
        days_per_thread = state.total_count // state.worker_count

        self.emitter.info(f"Starting check for vehicle: {state.identifier}")
        self.emitter.info(f"Date range: {state.date_range}")
        self.emitter.info(f"Total days to check: {state.total_count}")
        self.emitter.info(f"Threads: {state.worker_count}, ~{days_per_thread} days per thread")
        self.emitter.info(f"Results will be saved to: {self.store.results_dir}")
        self.emitter.warning("Program will STOP automatically when a record is found!")
        self.emitter.info(DIVIDER)

        for worker_id, partition in enumerate(partitions, start=1):
            if partition is None:
                self.emitter.info(f"Thread {worker_id}: no dates assigned")
            else:
                self.emitter.info(f"Thread {worker_id}: {partition}")

        self.emitter.info(DIVIDER)

    def _run(self, state: SearchState, partitions: List[Optional[DateRange]]) -> None:
        """Coordinating thread: run all workers, then settle the result."""
        workers = [
            Worker(
                worker_id=worker_id,
                identifier=state.identifier,
                date_range=partition,
                state=state,
                client=self.client,
                store=self.store,
                emitter=self.emitter,
                classifier=self.classifier
            )
            for worker_id, partition in enumerate(partitions, start=1)
            if partition is not None
        ]

        try:
            with ThreadPoolExecutor(
                max_workers=len(workers),
                thread_name_prefix="search-worker"
            ) as executor:
                future_to_worker = {executor.submit(worker.run): worker for worker in workers}

                for future in as_completed(future_to_worker):
                    worker = future_to_worker[future]
                    try:
                        reason = future.result()
                        logger.debug("Worker stopped", worker_id=worker.worker_id, reason=reason.value)
                    except Exception as e:
                        logger.exception(
                            "Worker crashed",
                            worker_id=worker.worker_id,
                            error=str(e)
                        )
                        self.emitter.error(
                            f"Thread {worker.worker_id}: Unexpected error - {e}",
                            worker.worker_id
                        )
        finally:
            state.finish()
            self._log_result(state)

    def _log_result(self, state: SearchState) -> None:
        snapshot = state.snapshot()

        if snapshot.result == RunResult.FOUND:
            self.emitter.success(
                f"Search finished: record found for {snapshot.identifier} "
                f"({snapshot.checked_count}/{snapshot.total_count} dates checked)"
            )
        elif snapshot.result == RunResult.ABORTED:
            self.emitter.warning(
                f"Search stopped by user after checking "
                f"{snapshot.checked_count}/{snapshot.total_count} dates"
            )
        else:
            message = (
                f"Search finished: no record found for {snapshot.identifier} "
                f"({snapshot.checked_count}/{snapshot.total_count} dates checked"
            )
            if snapshot.unchecked_count:
                message += f", {snapshot.unchecked_count} dates left unchecked"
            self.emitter.warning(message + ")")

        logger.info(
            "Search finished",
            identifier=snapshot.identifier,
            result=snapshot.result.value if snapshot.result else None,
            checked=snapshot.checked_count,
            found=snapshot.found_count,
            unchecked=snapshot.unchecked_count,
            total=snapshot.total_count
        )

    def request_stop(self) -> bool:
        """
        Cancel the running search.

        Workers finish any in-flight request and halt at their next date.
        Repeated calls, or calls with no search running, do nothing.

        Returns:
            True if this call stopped the search
        """
        with self._lock:
            state = self._state

        if state is None or not state.request_stop(cancelled=True):
            return False

        self.emitter.warning("Stopping all threads...")
        return True

    def snapshot(self) -> SearchSnapshot:
        """Current run state, or an idle snapshot when nothing has run yet."""
        with self._lock:
            state = self._state

        if state is None:
            return SearchSnapshot()
        return state.snapshot()

    @property
    def current_run(self) -> Optional[RunHandle]:
        with self._lock:
            return self._handle

    def events(self, limit: Optional[int] = None) -> List[LogEvent]:
        """Events retained by the sink, oldest first."""
        return self.sink.events(limit)

    def clear_events(self) -> int:
        """Clear the sink's retained events. Returns how many were removed."""
        return self.sink.clear()
