"""File-backed storage implementation for URL shortener.

Records are kept in memory and the whole set is rewritten to disk as JSON
lines after every mutation:

    {"short_url": "...", "original_url": "...", "user_id": "...", "is_deleted": false, "created_at": "..."}
"""

import asyncio
import json
import logging
import os
from typing import Optional, List, Dict, Sequence

from .memory import MemoryStorage
from .models import URLRecord


class FileStorage(MemoryStorage):
    """JSON-lines file storage."""

    def __init__(self, file_path: str, logger: Optional[logging.Logger] = None):
        """Initialize file storage, loading existing records if the file exists.

        Args:
            file_path: Path of the JSON-lines file
            logger: Optional logger instance
        """
        super().__init__(logger=logger)
        self.file_path = file_path

        if os.path.exists(file_path):
            self._load()

    def _load(self) -> None:
        with open(self.file_path, "r", encoding="utf-8") as f:
            for line_no, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    self._put(URLRecord.from_dict(json.loads(line)))
                except (ValueError, KeyError) as e:
                    raise ValueError(f"{self.file_path}:{line_no}: invalid record: {e}") from e

        self.logger.info(f"Loaded {len(self._records)} URLs from {self.file_path}")

    def _write(self, lines: List[str]) -> None:
        tmp_path = f"{self.file_path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.writelines(lines)
        os.replace(tmp_path, self.file_path)

    async def _flush(self) -> None:
        # Caller holds the lock, so snapshots are written in mutation order
        lines = [json.dumps(r.to_dict()) + "\n" for r in self._records.values()]
        await asyncio.to_thread(self._write, lines)

    async def save_url(self, short_id: str, original_url: str, user_id: str) -> None:
        await super().save_url(short_id, original_url, user_id)
        async with self._lock:
            await self._flush()

    async def save_url_batch(self, urls: Dict[str, str], user_id: str) -> Dict[str, str]:
        stored = await super().save_url_batch(urls, user_id)
        async with self._lock:
            await self._flush()
        return stored

    async def mark_as_deleted(self, short_ids: Sequence[str], user_id: str) -> None:
        async with self._lock:
            changed = False
            for short_id in short_ids:
                record = self._records.get(short_id)
                if record is not None and record.user_id == user_id and not record.is_deleted:
                    record.is_deleted = True
                    changed = True
            if changed:
                await self._flush()

    async def get_statistics(self):
        stats = await super().get_statistics()
        stats["storage"] = "file"
        return stats

    async def health_check(self) -> bool:
        directory = os.path.dirname(os.path.abspath(self.file_path))
        return os.path.isdir(directory) and os.access(directory, os.W_OK)
