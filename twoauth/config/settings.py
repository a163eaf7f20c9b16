import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from twoauth.auth.models import ConsumerCredentials
from twoauth.core.logging import get_logger

from . import constants
from .logging import LoggingSettings


__all__ = ["Settings", "ConfigurationError", "find_toml_config_file"]

ENV_PREFIX = "TWOAUTH_"
NESTED_SECTIONS = ("oauth", "api", "logging")


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


def _default_tokens_dir() -> Path:
    data_home = os.environ.get("XDG_DATA_HOME")
    base = Path(data_home) if data_home else Path.home() / ".local" / "share"
    return base / "twoauth" / "tokens"


def find_toml_config_file() -> Path | None:
    """Locate a TOML config file.

    Looks for ``.twoauth.toml`` in the current directory, then
    ``config.toml`` in ``$XDG_CONFIG_HOME/twoauth/``.
    """
    local = Path.cwd() / ".twoauth.toml"
    if local.is_file():
        return local

    config_home = os.environ.get("XDG_CONFIG_HOME")
    base = Path(config_home) if config_home else Path.home() / ".config"
    candidate = base / "twoauth" / "config.toml"
    if candidate.is_file():
        return candidate
    return None


class OAuthSettings(BaseModel):
    """Consumer credentials and token storage location."""

    model_config = ConfigDict(validate_assignment=True)

    consumer_key: str = Field(
        default="",
        description="Twitter application consumer key (a.k.a. API key)",
    )

    consumer_secret: SecretStr = Field(
        default=SecretStr(""),
        description="Twitter application consumer secret (a.k.a. API secret)",
    )

    tokens_dir: Path = Field(
        default_factory=_default_tokens_dir,
        description="Directory where request and access tokens are stored",
    )

    callback: str = Field(
        default=constants.OOB_CALLBACK,
        description="oauth_callback sent with the request token call; 'oob' for PIN based authorization",
    )


class ApiSettings(BaseModel):
    """Provider endpoints and transport settings."""

    model_config = ConfigDict(validate_assignment=True)

    base_url: str = Field(
        default=constants.API_BASE_URL,
        description="Base URL that relative resource paths are resolved against",
    )
    request_token_url: str = constants.REQUEST_TOKEN_URL
    authorize_url: str = constants.AUTHORIZE_URL
    access_token_url: str = constants.ACCESS_TOKEN_URL

    timeout: float = Field(
        default=constants.DEFAULT_HTTP_TIMEOUT,
        gt=0,
        description="HTTP timeout in seconds for every provider call",
    )


class Settings(BaseSettings):
    """
    Configuration settings for twoauth.

    Settings are loaded from environment variables (``TWOAUTH_`` prefix,
    ``__`` between nested keys), a ``.env`` file and an optional TOML file.
    Environment variables take precedence over TOML values; explicit
    overrides passed to :meth:`from_config` take precedence over both.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    oauth: OAuthSettings = Field(
        default_factory=OAuthSettings,
        description="Consumer credentials and token storage",
    )

    api: ApiSettings = Field(
        default_factory=ApiSettings,
        description="Provider endpoints and HTTP settings",
    )

    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    def consumer_credentials(self) -> ConsumerCredentials:
        """Build the consumer key/secret pair used for signing."""
        return ConsumerCredentials(
            key=self.oauth.consumer_key,
            secret=self.oauth.consumer_secret.get_secret_value(),
        )

    @classmethod
    def load_toml_config(cls, toml_path: Path) -> dict[str, Any]:
        """Load configuration from a TOML file."""
        try:
            with toml_path.open("rb") as f:
                return tomllib.load(f)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read TOML config file {toml_path}: {e}"
            ) from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML syntax in {toml_path}: {e}") from e

    @classmethod
    def from_config(
        cls,
        config_path: Path | str | None = None,
        **overrides: Any,
    ) -> "Settings":
        """Create a Settings instance from env, an optional TOML file and overrides.

        Args:
            config_path: TOML file; falls back to ``TWOAUTH_CONFIG_FILE`` and
                :func:`find_toml_config_file`
            **overrides: Per-section dicts (e.g. ``oauth={"tokens_dir": ...}``)

        Raises:
            ConfigurationError: If the file cannot be read or holds invalid values
        """
        if config_path is None:
            config_path_env = os.environ.get(f"{ENV_PREFIX}CONFIG_FILE")
            if config_path_env:
                config_path = Path(config_path_env)

        if isinstance(config_path, str):
            config_path = Path(config_path)

        if config_path is None:
            config_path = find_toml_config_file()

        config_data: dict[str, Any] = {}
        if config_path is not None:
            if not config_path.exists():
                raise ConfigurationError(f"Config file not found: {config_path}")
            config_data = cls.load_toml_config(config_path)
            get_logger(__name__).debug("config_file_loaded", path=str(config_path))

        # pydantic-settings matches env names case-insensitively
        env_names = {name.upper() for name in os.environ}

        try:
            settings = cls()

            for section, values in config_data.items():
                if section not in NESTED_SECTIONS or not isinstance(values, dict):
                    continue
                nested_obj = getattr(settings, section)
                for nested_key, nested_value in values.items():
                    env_key = f"{ENV_PREFIX}{section.upper()}__{nested_key.upper()}"
                    if env_key not in env_names:
                        setattr(nested_obj, nested_key, nested_value)

            for section, values in overrides.items():
                if section not in NESTED_SECTIONS:
                    raise ConfigurationError(f"Unknown settings section: {section}")
                nested_obj = getattr(settings, section)
                for nested_key, nested_value in values.items():
                    if nested_value is not None:
                        setattr(nested_obj, nested_key, nested_value)
        except ValueError as e:
            # pydantic.ValidationError is a ValueError
            raise ConfigurationError(f"Invalid configuration: {e}") from e

        return settings
