"""Token storage implementations."""

from .base import TokenStore
from .file import FileTokenStore
from .memory import InMemoryTokenStore


__all__ = ["TokenStore", "FileTokenStore", "InMemoryTokenStore"]
