"""Fetcher module for querying the registration lookup service."""

from fetcher.registration_client import QueryClient, QueryOutcome

__all__ = [
    "QueryClient",
    "QueryOutcome",
]
