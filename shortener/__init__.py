"""Core business logic for URL shortener."""

from .shortcode import ShortCodeGenerator
from .service import URLShortenerService
from .deleter import URLDeleter, DeletionReport, generate_batches
from .tasks import BackgroundTasks

__all__ = [
    "ShortCodeGenerator",
    "URLShortenerService",
    "URLDeleter",
    "DeletionReport",
    "generate_batches",
    "BackgroundTasks",
]
