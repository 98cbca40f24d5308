"""Abstract base class for URL shortener storage implementations."""

from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any, Sequence

from .models import URLRecord


class URLStorageBase(ABC):
    """Abstract base class for URL shortener storage operations.

    Implementations are shared by concurrent request handlers and deletion
    workers, so every method must be safe to call concurrently.
    """

    @abstractmethod
    async def save_url(self, short_id: str, original_url: str, user_id: str) -> None:
        """Store a new short URL.

        Args:
            short_id: The short id to use
            original_url: The original long URL
            user_id: Owner of the record

        Raises:
            URLExistsError: If the original URL or the short id is already stored
        """
        pass

    @abstractmethod
    async def save_url_batch(self, urls: Dict[str, str], user_id: str) -> Dict[str, str]:
        """Store several short URLs for one user.

        An original URL that is already stored keeps its existing short id;
        the new id proposed for it is discarded.

        Args:
            urls: Mapping of short id to original URL
            user_id: Owner of the records

        Returns:
            Mapping of every original URL in urls to the short id it is stored under

        Raises:
            URLExistsError: If a proposed short id is taken by a different URL
        """
        pass

    @abstractmethod
    async def get_url(self, short_id: str) -> Optional[URLRecord]:
        """Get the record for a short id.

        Args:
            short_id: The short id to lookup

        Returns:
            The record (deleted or not) if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_short_id_by_original_url(self, original_url: str) -> Optional[str]:
        """Find the short id already assigned to an original URL.

        Args:
            original_url: The original long URL

        Returns:
            The short id if the URL is stored, None otherwise
        """
        pass

    @abstractmethod
    async def get_user_urls(self, user_id: str) -> List[URLRecord]:
        """List every record owned by a user."""
        pass

    @abstractmethod
    async def mark_as_deleted(self, short_ids: Sequence[str], user_id: str) -> None:
        """Flag records as deleted on behalf of a user.

        Only records owned by user_id are flagged. Unknown ids and ids owned by
        another user are skipped without error. Calling it again for the same
        ids has no further effect.

        Args:
            short_ids: Short ids to flag
            user_id: User requesting the deletion
        """
        pass

    @abstractmethod
    async def get_statistics(self) -> Dict[str, Any]:
        """Get storage statistics.

        Returns:
            Dictionary with urls (record count) and users (distinct owners)
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if storage is available.

        Returns:
            True if healthy, False otherwise
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release storage resources."""
        pass
