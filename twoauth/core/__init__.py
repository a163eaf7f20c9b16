"""Core infrastructure: logging and HTTP transport."""
