"""
Shared fixtures: a scripted stand-in for the registration service.
"""

import threading
from datetime import date
from typing import Callable, Dict, Optional, Tuple

import pytest

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fetcher.registration_client import QueryOutcome

# Empty-result page as served by the lookup service
NO_RECORD_BODY = """
<html><body>
  <div class="alert">
    <h3>No Record Found</h3>
    <p>Please contact Excise and Taxation Office for further details.</p>
  </div>
</body></html>
"""

MATCH_BODY = """
<html><body>
  <table>
    <tr><td>Registration No</td><td>ABC123</td></tr>
    <tr><td>Owner</td><td>JOHN DOE</td></tr>
    <tr><td>Model</td><td>2015</td></tr>
  </table>
</body></html>
"""

# (status, body); status None means no response was received and body is the error
Scripted = Tuple[Optional[int], str]


class ScriptedClient:
    """QueryClient stand-in that answers from a date -> response table."""

    def __init__(
        self,
        responses: Optional[Dict[date, Scripted]] = None,
        default: Scripted = (200, NO_RECORD_BODY),
        before_response: Optional[Callable[[date], None]] = None
    ):
        self.responses = responses or {}
        self.default = default
        self.before_response = before_response
        self._calls = []
        self._lock = threading.Lock()

    def query(self, identifier: str, day: date) -> QueryOutcome:
        with self._lock:
            self._calls.append(day)

        if self.before_response is not None:
            self.before_response(day)

        status, body = self.responses.get(day, self.default)
        if status is None:
            return QueryOutcome(success=False, identifier=identifier, day=day, error=body)
        return QueryOutcome(
            success=True,
            identifier=identifier,
            day=day,
            status_code=status,
            body=body
        )

    @property
    def queried_days(self):
        with self._lock:
            return sorted(self._calls)


@pytest.fixture
def scripted_client():
    """Factory for ScriptedClient instances."""
    return ScriptedClient


@pytest.fixture
def result_store(tmp_path):
    from storage.result_store import ResultStore
    return ResultStore(tmp_path / "results")


@pytest.fixture
def event_log():
    from search.events import EventLog
    return EventLog()
