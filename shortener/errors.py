"""Exception types for URL shortener."""

from typing import Optional


class URLShortenerError(Exception):
    """Base class for URL shortener errors."""


class InvalidURLError(URLShortenerError, ValueError):
    """Raised when a URL fails validation."""


class URLExistsError(URLShortenerError, ValueError):
    """Raised when the original URL has already been shortened.

    Attributes:
        short_id: Short id already assigned to the URL (if known)
    """

    def __init__(self, message: str = "URL already exists", short_id: Optional[str] = None):
        super().__init__(message)
        self.short_id = short_id


class URLNotFoundError(URLShortenerError, LookupError):
    """Raised when a short id is unknown."""


class URLDeletedError(URLShortenerError):
    """Raised when a short id has been marked as deleted."""


class DeletionCancelledError(URLShortenerError):
    """Raised for a deletion batch abandoned because its operation was cancelled."""
