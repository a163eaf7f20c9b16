"""Data models for consumer credentials, token pairs and signed requests."""

from dataclasses import dataclass
from enum import Enum
from typing import Any
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field

from twoauth.auth.exceptions import InvalidTokenKeyError


FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
FORBIDDEN_KEY_CHARS = ("/", "\\", "\x00")


class ConsumerCredentials(BaseModel):
    """Application key/secret pair issued by the provider."""

    model_config = ConfigDict(frozen=True)

    key: str
    secret: str = Field(repr=False)

    @property
    def is_complete(self) -> bool:
        return bool(self.key) and bool(self.secret)


class TokenPair(BaseModel):
    """A request token or access token together with its secret."""

    model_config = ConfigDict(frozen=True)

    token: str
    secret: str = Field(repr=False)

    @property
    def is_complete(self) -> bool:
        return bool(self.token) and bool(self.secret)


class TokenPhase(str, Enum):
    REQUEST_TOKEN = "request_token"
    ACCESS_TOKEN = "access_token"


def _check_key_part(value: str, field: str) -> None:
    if any(char in value for char in FORBIDDEN_KEY_CHARS):
        raise InvalidTokenKeyError(
            f"{field} must not contain path separators: {value!r}"
        )
    if value in (".", ".."):
        raise InvalidTokenKeyError(f"{field} must not be {value!r}")


@dataclass(frozen=True)
class TokenKey:
    """Storage location of a token pair.

    Request tokens are keyed by application only; access tokens by
    application and username. Both parts end up in file names, so they must
    be non-empty and free of path separators.
    """

    app_id: str
    username: str
    phase: TokenPhase

    def __post_init__(self) -> None:
        if not self.app_id:
            raise InvalidTokenKeyError("app_id must not be empty")
        _check_key_part(self.app_id, "app_id")
        if self.phase is TokenPhase.ACCESS_TOKEN:
            if not self.username:
                raise InvalidTokenKeyError(
                    "username must not be empty for access tokens"
                )
            _check_key_part(self.username, "username")
        elif self.username:
            # request tokens belong to the application, not a user
            object.__setattr__(self, "username", "")

    @classmethod
    def request_token(cls, app_id: str) -> "TokenKey":
        return cls(app_id, "", TokenPhase.REQUEST_TOKEN)

    @classmethod
    def access_token(cls, app_id: str, username: str) -> "TokenKey":
        return cls(app_id, username, TokenPhase.ACCESS_TOKEN)

    @property
    def name(self) -> str:
        """Base name, e.g. ``myapp_request_token`` or ``myapp_alice_access_token``."""
        if self.phase is TokenPhase.REQUEST_TOKEN:
            return f"{self.app_id}_{self.phase.value}"
        return f"{self.app_id}_{self.username}_{self.phase.value}"

    @property
    def secret_name(self) -> str:
        return f"{self.name}_secret"


class SignedRequest(BaseModel):
    """A request with its OAuth protocol parameters and signature.

    Built per call and never persisted.
    """

    method: str
    url: str
    query_params: list[tuple[str, str]] = Field(default_factory=list)
    body_params: list[tuple[str, str]] = Field(default_factory=list)
    oauth_params: dict[str, str] = Field(default_factory=dict)
    base_string: str = ""

    @property
    def signature(self) -> str:
        return self.oauth_params.get("oauth_signature", "")

    @property
    def authorization_header(self) -> str:
        """``OAuth k="v", ...`` with every value percent-encoded."""
        from twoauth.auth.oauth.signer import build_authorization_header

        return build_authorization_header(self.oauth_params)

    @property
    def headers(self) -> dict[str, str]:
        headers = {"Authorization": self.authorization_header}
        if self.body_params:
            headers["Content-Type"] = FORM_CONTENT_TYPE
        return headers

    def request_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``httpx.Client.request``."""
        kwargs: dict[str, Any] = {
            "method": self.method,
            "url": self.url,
            "headers": self.headers,
        }
        if self.query_params:
            kwargs["params"] = self.query_params
        if self.body_params:
            kwargs["content"] = urlencode(self.body_params).encode("ascii")
        return kwargs


class AuthorizationGrant(BaseModel):
    """Result of a completed authorization."""

    app_id: str
    username: str
    access_token: TokenPair
    user_id: str | None = None
    screen_name: str | None = None
    profile: dict[str, Any] | None = None
