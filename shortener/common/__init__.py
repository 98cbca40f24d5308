"""Common utilities for URL shortener."""

from .validators import is_valid_url
from .headers import get_real_ip, parse_subnet, ip_in_subnet
from .url_builder import build_short_url
from .logging_config import setup_logging

__all__ = [
    "is_valid_url",
    "get_real_ip",
    "parse_subnet",
    "ip_in_subnet",
    "build_short_url",
    "setup_logging",
]
