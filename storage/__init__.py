"""Storage module for saved lookup responses."""

from storage.result_store import ResultStore, SaveResult

__all__ = [
    "ResultStore",
    "SaveResult",
]
