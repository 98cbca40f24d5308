"""Business logic service for URL shortener."""

import asyncio
import logging
from typing import Optional, Dict, Any, List, Sequence, Tuple

from .shortcode import ShortCodeGenerator
from .deleter import URLDeleter, DeletionReport
from .errors import InvalidURLError, URLExistsError, URLNotFoundError, URLDeletedError
from .storage.base import URLStorageBase
from .storage.cache import RedisCache
from .storage.models import URLRecord
from .common.validators import is_valid_url


class URLShortenerService:
    """Service layer for URL shortening business logic."""

    def __init__(
        self,
        store: URLStorageBase,
        cache: Optional[RedisCache] = None,
        short_code_generator: Optional[ShortCodeGenerator] = None,
        deleter: Optional[URLDeleter] = None,
        logger: Optional[logging.Logger] = None,
        max_collision_retries: int = 5,
    ):
        """Initialize URL shortener service.

        Args:
            store: Storage backend
            cache: Optional cache instance
            short_code_generator: Optional short id generator
            deleter: Optional deletion pipeline (built on store if omitted)
            logger: Optional logger
            max_collision_retries: Maximum retries on short id collision
        """
        self.store = store
        self.cache = cache
        self.generator = short_code_generator or ShortCodeGenerator()
        self.logger = logger or logging.getLogger(__name__)
        self.deleter = deleter or URLDeleter(store, logger=self.logger)
        self.max_collision_retries = max_collision_retries

    async def shorten_url(self, original_url: str, user_id: str) -> str:
        """Create a short id for a URL.

        Args:
            original_url: The original long URL
            user_id: Owner of the new record

        Returns:
            The new short id

        Raises:
            InvalidURLError: If the URL fails validation
            URLExistsError: If the URL was already shortened; carries its short id
        """
        is_valid, error = is_valid_url(original_url)
        if not is_valid:
            raise InvalidURLError(f"Invalid URL: {error}")

        existing = await self.store.get_short_id_by_original_url(original_url)
        if existing:
            raise URLExistsError(short_id=existing)

        short_id = await self._generate_unique_short_id()
        await self.store.save_url(short_id, original_url, user_id)

        self.logger.info(f"Created short URL: {short_id} -> {original_url}")
        return short_id

    async def shorten_batch(
        self,
        items: Sequence[Tuple[str, str]],
        user_id: str,
    ) -> List[Tuple[str, str]]:
        """Create short ids for several URLs in one storage call.

        URLs that were already shortened keep their existing short id.

        Args:
            items: (correlation_id, original_url) pairs
            user_id: Owner of the new records

        Returns:
            (correlation_id, short_id) pairs in input order

        Raises:
            ValueError: If items is empty
            InvalidURLError: If any URL fails validation
        """
        if not items:
            raise ValueError("Batch must contain at least one URL")

        for _, original_url in items:
            is_valid, error = is_valid_url(original_url)
            if not is_valid:
                raise InvalidURLError(f"Invalid URL '{original_url}': {error}")

        assigned: Dict[str, str] = {}
        new_urls: Dict[str, str] = {}
        for _, original_url in items:
            if original_url in assigned:
                continue
            short_id = await self.store.get_short_id_by_original_url(original_url)
            if not short_id:
                short_id = await self._generate_unique_short_id(reserved=new_urls)
                new_urls[short_id] = original_url
            assigned[original_url] = short_id

        created = 0
        if new_urls:
            # Another request may have stored some of these URLs since the lookup
            stored = await self.store.save_url_batch(new_urls, user_id)
            for short_id, original_url in new_urls.items():
                assigned[original_url] = stored[original_url]
                created += stored[original_url] == short_id

        self.logger.info(f"Created {created} short URLs in batch of {len(items)}")
        return [(correlation_id, assigned[original_url]) for correlation_id, original_url in items]

    async def get_original_url(self, short_id: str) -> str:
        """Get the original URL for a short id.

        Args:
            short_id: The short id to lookup

        Returns:
            Original URL

        Raises:
            URLNotFoundError: If the short id is unknown
            URLDeletedError: If the short id was deleted
        """
        # Only live mappings are cached
        if self.cache:
            cached_url = await self.cache.get(self.cache.get_cache_key(short_id))
            if cached_url:
                self.logger.debug(f"Cache hit for {short_id}")
                return cached_url

        record = await self.store.get_url(short_id)
        if record is None:
            self.logger.warning(f"Short id not found: {short_id}")
            raise URLNotFoundError(f"Short URL '{short_id}' not found")

        if record.is_deleted:
            raise URLDeletedError(f"Short URL '{short_id}' has been deleted")

        if self.cache:
            await self.cache.set(self.cache.get_cache_key(short_id), record.original_url)

        self.logger.debug(f"Retrieved URL: {short_id} -> {record.original_url}")
        return record.original_url

    async def get_user_urls(self, user_id: str) -> List[URLRecord]:
        """List every record owned by user_id."""
        return await self.store.get_user_urls(user_id)

    async def delete_user_urls(
        self,
        short_ids: Sequence[str],
        user_id: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> DeletionReport:
        """Mark a user's short URLs as deleted.

        Runs the batched deletion pipeline and then drops the ids from the
        cache so redirects see the deleted flag. The cache is cleared even
        when the pipeline is cancelled.

        Args:
            short_ids: Ids to delete
            user_id: User the ids are deleted for
            cancel_event: Optional cancellation signal for batches not yet started

        Returns:
            DeletionReport from the pipeline
        """
        try:
            return await self.deleter.delete_urls(short_ids, user_id, cancel_event=cancel_event)
        finally:
            if self.cache and short_ids:
                await self.cache.delete_many(self.cache.get_cache_key(s) for s in short_ids)

    async def get_statistics(self) -> Dict[str, Any]:
        """Get service statistics.

        Returns:
            Dictionary with urls and users counts
        """
        return await self.store.get_statistics()

    async def health_check(self) -> Dict[str, bool]:
        """Perform health check.

        Returns:
            Dictionary with health status
        """
        storage_healthy = await self.store.health_check()
        cache_healthy = await self.cache.ping() if self.cache else True

        return {
            "storage": storage_healthy,
            "cache": cache_healthy,
            "overall": storage_healthy and cache_healthy,
        }

    async def _generate_unique_short_id(self, reserved: Optional[Dict[str, str]] = None) -> str:
        """Generate a short id not yet used in storage (or in reserved).

        Raises:
            ValueError: If unable to generate unique id after retries
        """
        reserved = reserved or {}

        for attempt in range(self.max_collision_retries):
            short_id = self.generator.generate_random()
            if short_id not in reserved and await self.store.get_url(short_id) is None:
                if attempt:
                    self.logger.debug(f"Generated id after {attempt + 1} attempts: {short_id}")
                return short_id

        # Last resort: use UUID-based id (highly unlikely to collide)
        short_id = self.generator.generate_from_uuid(length=self.generator.default_length + 4)
        if short_id not in reserved and await self.store.get_url(short_id) is None:
            return short_id

        raise ValueError("Unable to generate unique short id after multiple attempts")

    async def close(self) -> None:
        """Close service connections."""
        await self.store.close()
        if self.cache:
            await self.cache.close()
