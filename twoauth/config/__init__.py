"""Configuration package for twoauth."""

from .settings import ConfigurationError, Settings


__all__ = ["ConfigurationError", "Settings"]
