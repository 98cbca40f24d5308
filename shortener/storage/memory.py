"""In-memory storage implementation for URL shortener."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Sequence

from .base import URLStorageBase
from .models import URLRecord
from ..errors import URLExistsError


class MemoryStorage(URLStorageBase):
    """Process-local storage. Contents are lost when the process exits."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._records: Dict[str, URLRecord] = {}
        self._by_original_url: Dict[str, str] = {}
        self._lock = asyncio.Lock()

    def _put(self, record: URLRecord) -> None:
        # Caller holds the lock
        self._records[record.short_id] = record
        self._by_original_url[record.original_url] = record.short_id

    async def save_url(self, short_id: str, original_url: str, user_id: str) -> None:
        async with self._lock:
            existing = self._by_original_url.get(original_url)
            if existing is not None:
                raise URLExistsError(short_id=existing)
            if short_id in self._records:
                raise URLExistsError(f"Short id '{short_id}' already exists")

            self._put(URLRecord(
                short_id=short_id,
                original_url=original_url,
                user_id=user_id,
                created_at=datetime.now(timezone.utc),
            ))

    async def save_url_batch(self, urls: Dict[str, str], user_id: str) -> Dict[str, str]:
        async with self._lock:
            stored: Dict[str, str] = {}
            new_records: List[URLRecord] = []
            now = datetime.now(timezone.utc)

            # Check every row before mutating so a collision leaves nothing half-saved
            for short_id, original_url in urls.items():
                existing = self._by_original_url.get(original_url) or stored.get(original_url)
                if existing is not None:
                    self.logger.debug(f"URL already stored as {existing}: {original_url}")
                    stored[original_url] = existing
                    continue
                if short_id in self._records:
                    raise URLExistsError(f"Short id '{short_id}' already exists")
                stored[original_url] = short_id
                new_records.append(URLRecord(
                    short_id=short_id,
                    original_url=original_url,
                    user_id=user_id,
                    created_at=now,
                ))

            for record in new_records:
                self._put(record)
            return stored

    async def get_url(self, short_id: str) -> Optional[URLRecord]:
        async with self._lock:
            return self._records.get(short_id)

    async def get_short_id_by_original_url(self, original_url: str) -> Optional[str]:
        async with self._lock:
            return self._by_original_url.get(original_url)

    async def get_user_urls(self, user_id: str) -> List[URLRecord]:
        async with self._lock:
            return [r for r in self._records.values() if r.user_id == user_id]

    async def mark_as_deleted(self, short_ids: Sequence[str], user_id: str) -> None:
        async with self._lock:
            for short_id in short_ids:
                record = self._records.get(short_id)
                if record is not None and record.user_id == user_id:
                    record.is_deleted = True

    async def get_statistics(self) -> Dict[str, Any]:
        async with self._lock:
            users = {r.user_id for r in self._records.values() if r.user_id}
            return {
                "urls": len(self._records),
                "users": len(users),
                "storage": "memory",
            }

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        pass
