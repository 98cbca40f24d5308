"""URL building utilities for URL shortener."""


def build_short_url(short_id: str, base_url: str) -> str:
    """Build complete short URL.

    Args:
        short_id: The short id
        base_url: Base URL (e.g., https://example.com)

    Returns:
        Complete short URL
    """
    return f"{base_url.rstrip('/')}/{short_id}"
