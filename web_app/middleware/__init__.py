"""Middleware for URL shortener web app."""

from .auth import AuthMiddleware
from .gzip import GzipRequestMiddleware
from .logging import LoggingMiddleware

__all__ = ["AuthMiddleware", "GzipRequestMiddleware", "LoggingMiddleware"]
