"""Exceptions raised by the search core."""


class SearchError(Exception):
    """Base class for search errors."""


class ConfigurationError(SearchError, ValueError):
    """Invalid search parameters, reported before any worker starts."""


class SearchAlreadyRunning(ConfigurationError):
    """A search was started while another one is still in flight."""
