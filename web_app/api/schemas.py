"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, Field
from typing import Optional


class ShortenRequest(BaseModel):
    """Request to shorten a URL."""

    url: str = Field(..., description="The URL to shorten", min_length=1, max_length=2048)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"url": "https://example.com/very/long/path/to/resource"},
            ]
        }
    }


class ShortenResponse(BaseModel):
    """Response after shortening a URL."""

    result: str = Field(..., description="The complete short URL")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"result": "http://localhost:8080/aB3dE5fG"},
            ]
        }
    }


class BatchRequestItem(BaseModel):
    """One URL of a batch shorten request."""

    correlation_id: str
    original_url: str


class BatchResponseItem(BaseModel):
    """One short URL of a batch shorten response."""

    correlation_id: str
    short_url: str


class UserURLResponse(BaseModel):
    """A URL owned by the requesting user."""

    short_url: str
    original_url: str


class StatsResponse(BaseModel):
    """Statistics response."""

    urls: int = Field(..., description="Number of stored short URLs")
    users: int = Field(..., description="Number of distinct users")


class ErrorResponse(BaseModel):
    """Error response."""

    detail: Optional[str] = Field(None, description="Error message")
