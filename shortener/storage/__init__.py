"""Storage layer for URL shortener."""

import logging
from typing import Optional

from .base import URLStorageBase
from .file import FileStorage
from .memory import MemoryStorage
from .models import URLRecord
from .postgres import PostgresStorage


def init_storage(config, logger: Optional[logging.Logger] = None) -> URLStorageBase:
    """Create the storage backend selected by configuration.

    A database DSN selects PostgreSQL, otherwise a file path selects file
    storage, otherwise records are kept in memory.
    """
    logger = logger or logging.getLogger(__name__)

    if config.database_dsn:
        logger.info("Using PostgreSQL storage")
        return PostgresStorage(dsn=config.database_dsn, logger=logger)
    if config.file_storage_path:
        logger.info(f"Using file storage at {config.file_storage_path}")
        return FileStorage(file_path=config.file_storage_path, logger=logger)

    logger.info("Using in-memory storage")
    return MemoryStorage(logger=logger)


__all__ = [
    "URLStorageBase",
    "MemoryStorage",
    "FileStorage",
    "PostgresStorage",
    "URLRecord",
    "init_storage",
]
