"""
Error types for the Wikipedia reading list exporter.
Every failure that aborts a pipeline run derives from ReadingListError.
"""

from typing import Optional


class ReadingListError(Exception):
    """Base class for errors that abort a reading list pipeline run."""


class TransportError(ReadingListError):
    """An HTTP exchange returned an unexpected status or failed outright."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class ProtocolError(ReadingListError):
    """A response was missing a structural element we depend on."""


class AuthenticationError(ReadingListError):
    """The login flow did not produce the expected redirect chain."""

    def __init__(
        self,
        message: str,
        step: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.step = step
        self.status_code = status_code


class ConfigurationError(ReadingListError):
    """Required settings are missing or invalid."""
