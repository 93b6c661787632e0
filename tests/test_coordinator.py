"""
Tests for the search coordinator: partitioned parallel runs end to end.
"""

import threading
import time
from datetime import date

import pytest

from conftest import MATCH_BODY

START = date(2024, 1, 1)
END = date(2024, 1, 10)
WAIT = 10.0


def make_coordinator(client, result_store, event_log):
    from search.coordinator import SearchCoordinator

    return SearchCoordinator(client=client, store=result_store, sink=event_log)


def wait_until(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached in time")
        time.sleep(0.005)


def messages(event_log):
    return [e.message for e in event_log.events()]


class TestPlan:
    """Tests for run setup."""

    def test_plan_logs_partitions(self, scripted_client, result_store, event_log):
        """Test 10 days over 3 threads are split 4/3/3 and announced."""
        coordinator = make_coordinator(scripted_client(), result_store, event_log)

        handle = coordinator.start("ABC123", START, END, 3)
        handle.wait(WAIT)

        logged = messages(event_log)
        assert "Starting check for vehicle: ABC123" in logged
        assert "Total days to check: 10" in logged
        assert "Threads: 3, ~3 days per thread" in logged
        assert "Thread 1: 2024-01-01 to 2024-01-04" in logged
        assert "Thread 2: 2024-01-05 to 2024-01-07" in logged
        assert "Thread 3: 2024-01-08 to 2024-01-10" in logged

    def test_extra_threads_get_no_work(self, scripted_client, result_store, event_log):
        """Test more threads than days leaves trailing threads idle."""
        from search.state import RunResult

        client = scripted_client()
        coordinator = make_coordinator(client, result_store, event_log)

        handle = coordinator.start("ABC123", START, date(2024, 1, 2), 4)

        assert handle.wait(WAIT) == RunResult.NOT_FOUND
        assert client.queried_days == [START, date(2024, 1, 2)]
        assert "Thread 4: no dates assigned" in messages(event_log)


class TestOutcomes:
    """Tests for final run outcomes."""

    def test_all_no_match_is_not_found(self, scripted_client, result_store, event_log):
        """Test every date returning no record ends as NOT_FOUND."""
        from search.state import RunResult

        client = scripted_client()
        coordinator = make_coordinator(client, result_store, event_log)

        handle = coordinator.start("ABC123", START, END, 3)

        assert handle.wait(WAIT) == RunResult.NOT_FOUND
        snapshot = coordinator.snapshot()
        assert snapshot.running is False
        assert snapshot.checked_count == 10
        assert snapshot.found_count == 0
        assert snapshot.stop_requested is False
        assert len(client.queried_days) == 10
        assert handle.done is True

    def test_match_stops_all_workers(self, scripted_client, result_store, event_log):
        """Test a match on 01-05 halts peers at their next per-date check."""
        from search.state import RunResult

        holder = {}

        def hold_until_stopped(day):
            # Peers stay in flight until worker 2 has raised the stop signal
            if day != date(2024, 1, 5):
                wait_until(lambda: holder["coordinator"].snapshot().stop_requested)

        client = scripted_client(
            responses={date(2024, 1, 5): (200, MATCH_BODY)},
            before_response=hold_until_stopped
        )
        coordinator = make_coordinator(client, result_store, event_log)
        holder["coordinator"] = coordinator

        handle = coordinator.start("ABC123", START, END, 3)

        assert handle.wait(WAIT) == RunResult.FOUND
        assert client.queried_days == [date(2024, 1, 1), date(2024, 1, 5), date(2024, 1, 8)]

        snapshot = handle.snapshot()
        assert snapshot.found_count == 1
        assert snapshot.checked_count == 2
        assert snapshot.status_text == "RECORD FOUND!"

        logged = messages(event_log)
        assert "Thread 1: Stopped due to record found elsewhere" in logged
        assert "Thread 3: Stopped due to record found elsewhere" in logged
        assert (result_store.results_dir / "ABC123_2024-01-05.html").exists()

    def test_protocol_error_ends_run(self, scripted_client, result_store, event_log):
        """Test a non-200 response stops the whole run."""
        from search.state import RunResult

        client = scripted_client(responses={START: (429, "Too Many Requests")})
        coordinator = make_coordinator(client, result_store, event_log)

        handle = coordinator.start("ABC123", START, START, 1)

        assert handle.wait(WAIT) == RunResult.FOUND
        assert handle.snapshot().found_count == 1
        assert (result_store.results_dir / "HTTP429_ABC123_2024-01-01.html").exists()

    def test_transport_errors_do_not_stop(self, scripted_client, result_store, event_log):
        """Test failed requests are skipped and the run still completes."""
        from search.state import RunResult

        client = scripted_client(responses={
            date(2024, 1, 2): (None, "Connection refused"),
            date(2024, 1, 9): (None, "Timeout: timed out"),
        })
        coordinator = make_coordinator(client, result_store, event_log)

        handle = coordinator.start("ABC123", START, END, 3)

        assert handle.wait(WAIT) == RunResult.NOT_FOUND
        assert handle.snapshot().checked_count == 8
        assert len(client.queried_days) == 10

    def test_worker_crash_is_contained(self, scripted_client, result_store, event_log):
        """Test an unexpected exception in one worker is logged and the run finishes."""
        from search.state import RunResult

        def explode(day):
            if day == date(2024, 1, 6):
                raise RuntimeError("boom")

        client = scripted_client(before_response=explode)
        coordinator = make_coordinator(client, result_store, event_log)

        handle = coordinator.start("ABC123", START, END, 3)

        assert handle.wait(WAIT) == RunResult.NOT_FOUND
        assert "Thread 2: Unexpected error - boom" in messages(event_log)
        assert handle.snapshot().checked_count == 8
        assert handle.snapshot().unchecked_count == 2
        assert messages(event_log)[-1] == (
            "Search finished: no record found for ABC123 "
            "(8/10 dates checked, 2 dates left unchecked)"
        )

    def test_full_search_summary(self, scripted_client, result_store, event_log):
        """Test a complete search reports no unchecked dates."""
        coordinator = make_coordinator(scripted_client(), result_store, event_log)

        coordinator.start("ABC123", START, END, 3).wait(WAIT)

        assert messages(event_log)[-1] == (
            "Search finished: no record found for ABC123 (10/10 dates checked)"
        )

    def test_range_ending_on_last_calendar_date(self, scripted_client, result_store, event_log):
        """Test a range ending on date.max is searched to the end."""
        from search.state import RunResult

        client = scripted_client()
        coordinator = make_coordinator(client, result_store, event_log)

        handle = coordinator.start("ABC123", date(9999, 12, 29), date.max, 2)

        assert handle.wait(WAIT) == RunResult.NOT_FOUND
        assert client.queried_days == [date(9999, 12, 29), date(9999, 12, 30), date.max]


class TestValidation:
    """Tests for configuration errors."""

    @pytest.mark.parametrize("identifier,start,end,threads", [
        ("ABC123", START, END, 0),
        ("ABC123", END, START, 3),
        ("   ", START, END, 3),
    ])
    def test_invalid_start_spawns_nothing(
        self, scripted_client, result_store, event_log, identifier, start, end, threads
    ):
        """Test invalid parameters raise before any worker runs and log one error."""
        from search.events import LogLevel
        from search.exceptions import ConfigurationError

        client = scripted_client()
        coordinator = make_coordinator(client, result_store, event_log)

        with pytest.raises(ConfigurationError):
            coordinator.start(identifier, start, end, threads)

        events = event_log.events()
        assert len(events) == 1
        assert events[0].level == LogLevel.ERROR
        assert client.queried_days == []
        assert coordinator.snapshot().status_text == "Ready"
        assert coordinator.current_run is None

    def test_second_start_while_running(self, scripted_client, result_store, event_log):
        """Test starting while a run is in flight is rejected."""
        from search.exceptions import SearchAlreadyRunning

        gate = threading.Event()
        client = scripted_client(before_response=lambda day: gate.wait(WAIT))
        coordinator = make_coordinator(client, result_store, event_log)

        handle = coordinator.start("ABC123", START, END, 2)
        try:
            with pytest.raises(SearchAlreadyRunning):
                coordinator.start("XYZ999", START, END, 2)
        finally:
            gate.set()
            handle.wait(WAIT)

        assert handle.snapshot().identifier == "ABC123"


class TestCancellation:
    """Tests for user-initiated stop."""

    def test_stop_aborts_run(self, scripted_client, result_store, event_log):
        """Test request_stop halts workers after in-flight requests."""
        from search.state import RunResult

        gate = threading.Event()
        client = scripted_client(before_response=lambda day: gate.wait(WAIT))
        coordinator = make_coordinator(client, result_store, event_log)

        handle = coordinator.start("ABC123", START, END, 3)

        assert coordinator.request_stop() is True
        gate.set()

        assert handle.wait(WAIT) == RunResult.ABORTED
        # At most the one request per worker that was already in flight
        assert len(client.queried_days) <= 3
        assert handle.snapshot().status_text == "Stopped"

    def test_stop_is_idempotent(self, scripted_client, result_store, event_log):
        """Test repeated stops, and stops after the run ended, change nothing."""
        from search.state import RunResult

        gate = threading.Event()
        client = scripted_client(before_response=lambda day: gate.wait(WAIT))
        coordinator = make_coordinator(client, result_store, event_log)

        handle = coordinator.start("ABC123", START, END, 3)

        assert coordinator.request_stop() is True
        assert coordinator.request_stop() is False
        gate.set()
        handle.wait(WAIT)

        assert coordinator.request_stop() is False
        assert handle.result == RunResult.ABORTED
        assert messages(event_log).count("Stopping all threads...") == 1

    def test_stop_after_completion_keeps_result(self, scripted_client, result_store, event_log):
        """Test stopping a finished run does not turn NOT_FOUND into ABORTED."""
        from search.state import RunResult

        coordinator = make_coordinator(scripted_client(), result_store, event_log)
        handle = coordinator.start("ABC123", START, END, 2)
        handle.wait(WAIT)

        assert coordinator.request_stop() is False
        assert coordinator.snapshot().result == RunResult.NOT_FOUND

    def test_stop_with_nothing_running(self, scripted_client, result_store, event_log):
        """Test stop before any run is a no-op."""
        coordinator = make_coordinator(scripted_client(), result_store, event_log)

        assert coordinator.request_stop() is False
        assert len(event_log) == 0


class TestRuns:
    """Tests across consecutive runs."""

    def test_new_run_gets_fresh_state(self, scripted_client, result_store, event_log):
        """Test counters and stop signal do not leak into the next run."""
        from search.state import RunResult

        found_client = scripted_client(responses={START: (200, MATCH_BODY)})
        coordinator = make_coordinator(found_client, result_store, event_log)
        assert coordinator.start("ABC123", START, END, 1).wait(WAIT) == RunResult.FOUND

        coordinator.client = scripted_client()
        handle = coordinator.start("ABC123", START, END, 1)

        assert handle.wait(WAIT) == RunResult.NOT_FOUND
        snapshot = handle.snapshot()
        assert snapshot.found_count == 0
        assert snapshot.checked_count == 10
        assert snapshot.stop_requested is False

    def test_restart_waits_for_previous_summary(self, scripted_client, result_store):
        """Test a new run is refused until the previous run has logged its summary."""
        from search.events import EventLog
        from search.exceptions import SearchAlreadyRunning

        summary_gate = threading.Event()

        class SlowSummaryLog(EventLog):
            def append(self, event):
                if event.message.startswith("Search finished"):
                    summary_gate.wait(WAIT)
                super().append(event)

        sink = SlowSummaryLog()
        coordinator = make_coordinator(scripted_client(), result_store, sink)

        first = coordinator.start("AAA111", START, START, 1)
        wait_until(lambda: not coordinator.snapshot().running)

        try:
            with pytest.raises(SearchAlreadyRunning):
                coordinator.start("BBB222", START, START, 1)
        finally:
            summary_gate.set()
            first.wait(WAIT)

        coordinator.start("BBB222", START, START, 1).wait(WAIT)

        logged = messages(sink)
        first_summary = logged.index("Search finished: no record found for AAA111 (1/1 dates checked)")
        second_plan = logged.index("Starting check for vehicle: BBB222")
        assert first_summary < second_plan

    def test_counters_monotonic_during_run(self, scripted_client, result_store, event_log):
        """Test observed counters never decrease while workers run."""
        coordinator = make_coordinator(
            scripted_client(before_response=lambda day: time.sleep(0.002)),
            result_store,
            event_log
        )
        handle = coordinator.start("ABC123", date(2024, 1, 1), date(2024, 3, 31), 5)

        observed = []
        while not handle.done:
            observed.append(coordinator.snapshot().checked_count)
            time.sleep(0.001)
        handle.wait(WAIT)
        observed.append(coordinator.snapshot().checked_count)

        assert observed == sorted(observed)
        assert observed[-1] == 91

    def test_clear_events(self, scripted_client, result_store, event_log):
        """Test clearing the console through the coordinator."""
        coordinator = make_coordinator(scripted_client(), result_store, event_log)
        coordinator.start("ABC123", START, START, 1).wait(WAIT)

        assert coordinator.clear_events() > 0
        assert coordinator.events() == []

    def test_events_read_from_custom_store(self, scripted_client, result_store):
        """Test events and clearing go through the sink's own store methods."""

        class ListStore:
            def __init__(self):
                self.items = []
                self.cleared = False

            def append(self, event):
                self.items.append(event)

            def events(self, limit=None):
                return self.items[-limit:] if limit else list(self.items)

            def clear(self):
                self.cleared = True
                removed = len(self.items)
                self.items = []
                return removed

        store = ListStore()
        coordinator = make_coordinator(scripted_client(), result_store, store)
        coordinator.start("ABC123", START, START, 1).wait(WAIT)

        assert coordinator.events(1) == store.items[-1:]
        assert coordinator.clear_events() > 0
        assert store.cleared is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
