"""Logging configuration settings."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LoggingSettings(BaseModel):
    """Logging configuration for the CLI host."""

    model_config = ConfigDict(validate_assignment=True)

    level: str = Field(
        default="WARNING",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    format: str = Field(
        default="auto",
        description="Logging output format: 'rich' for terminals, 'json' for machines, 'auto' to pick by TTY",
    )

    file: str | None = Field(
        default=None,
        description="Path to JSON log file. If specified, logs are also written to this file",
    )

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        upper_v = v.upper()
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if upper_v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper_v

    @field_validator("format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate and normalize log format."""
        lower_v = v.lower()
        valid_formats = ["auto", "rich", "json", "plain"]
        if lower_v not in valid_formats:
            raise ValueError(f"Invalid log format: {v}. Must be one of {valid_formats}")
        return lower_v

    def use_json(self, is_tty: bool) -> bool:
        """Whether events should be rendered as JSON."""
        if self.format == "json":
            return True
        if self.format == "auto":
            return not is_tty
        return False
