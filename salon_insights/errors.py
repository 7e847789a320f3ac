"""Exceptions raised across the Salon Insights service.

Every one of these is recovered before it reaches the user: the loader turns
:class:`DataFetchError` into a banner, the chat orchestrator turns
:class:`ConfigurationError` and :class:`StreamError` into a failure message in
the transcript.
"""

from __future__ import annotations


class SalonInsightsError(Exception):
    """Base class for all service errors."""


class ConfigurationError(SalonInsightsError):
    """A required credential or setting is missing."""


class SalonAPIError(SalonInsightsError):
    """Raised when a call to the salon REST API fails."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class DataFetchError(SalonInsightsError):
    """The appointment/client load failed as a whole."""


class StreamError(SalonInsightsError):
    """The model stream could not be started or broke mid-way."""
