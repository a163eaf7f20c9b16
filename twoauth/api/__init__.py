"""Signed Twitter REST API calls."""

from .client import ApiClient, ApiResponse


__all__ = ["ApiClient", "ApiResponse"]
