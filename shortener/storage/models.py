"""Data models for URL shortener."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class URLRecord:
    """Represents a stored short URL."""

    short_id: str
    original_url: str
    user_id: str = ""
    is_deleted: bool = False
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        """Convert to dictionary (JSON line layout used by file storage)."""
        return {
            "short_url": self.short_id,
            "original_url": self.original_url,
            "user_id": self.user_id,
            "is_deleted": self.is_deleted,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "URLRecord":
        """Create from dictionary."""
        created_at = data.get("created_at")
        if created_at and not isinstance(created_at, datetime):
            created_at = datetime.fromisoformat(created_at)
        return cls(
            short_id=data["short_url"],
            original_url=data["original_url"],
            user_id=data.get("user_id") or "",
            is_deleted=bool(data.get("is_deleted", False)),
            created_at=created_at,
        )
