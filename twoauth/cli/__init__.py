"""Command line interface for twoauth."""

from .main import app, main


__all__ = ["app", "main"]
