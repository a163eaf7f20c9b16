"""twoauth - three-legged OAuth 1.0a client for the Twitter REST API."""

from ._version import __version__
from .api import ApiClient, ApiResponse
from .auth.exceptions import (
    AccessTokenError,
    AccessTokenInvalidError,
    ConfigurationIncompleteError,
    FetchError,
    MissingRequestTokenError,
    RequestTokenError,
    TokenNotFoundError,
    TwoAuthError,
)
from .auth.models import AuthorizationGrant, ConsumerCredentials, TokenKey, TokenPair
from .auth.oauth import FlowState, OAuthEndpoints, OAuthFlow, Signer
from .auth.storage import FileTokenStore, InMemoryTokenStore, TokenStore


__all__ = [
    "__version__",
    "AccessTokenError",
    "AccessTokenInvalidError",
    "ApiClient",
    "ApiResponse",
    "AuthorizationGrant",
    "ConfigurationIncompleteError",
    "ConsumerCredentials",
    "FetchError",
    "FileTokenStore",
    "FlowState",
    "InMemoryTokenStore",
    "MissingRequestTokenError",
    "OAuthEndpoints",
    "OAuthFlow",
    "RequestTokenError",
    "Signer",
    "TokenKey",
    "TokenNotFoundError",
    "TokenPair",
    "TokenStore",
    "TwoAuthError",
]
