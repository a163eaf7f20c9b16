"""Custom exceptions for OAuth and credential handling."""

from typing import Any


class TwoAuthError(Exception):
    """Base exception for every error raised by twoauth."""

    pass


class ConfigurationIncompleteError(TwoAuthError):
    """Raised when a consumer or access credential field is missing or empty."""

    pass


CredentialsIncompleteError = ConfigurationIncompleteError


class CredentialsError(TwoAuthError):
    """Base exception for stored credential errors."""

    pass


class TokenNotFoundError(CredentialsError):
    """Raised when a token pair, or either half of it, is absent from storage."""

    pass


class CredentialsStorageError(CredentialsError):
    """Raised when there's an error reading or writing credentials."""

    pass


class CredentialsInvalidError(CredentialsError):
    """Raised when stored credentials are found but unreadable."""

    pass


class InvalidTokenKeyError(CredentialsError, ValueError):
    """Raised when an app id or username cannot be used as a storage key."""

    pass


class OAuthError(TwoAuthError):
    """Base exception for OAuth protocol errors."""

    pass


class SignatureError(OAuthError):
    """Raised when a request cannot be signed.

    This indicates a programming error (unsupported method, malformed URL)
    rather than a runtime condition.
    """

    pass


class OAuthFlowError(OAuthError):
    """Base exception for the three-legged authorization flow.

    Carries the provider status code and raw body when a response was received.
    """

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class RequestTokenError(OAuthFlowError):
    """Raised when the provider rejects, or the transport fails, the request token call."""

    pass


class AccessTokenError(OAuthFlowError):
    """Raised when the provider rejects, or the transport fails, the verifier exchange."""

    pass


class MissingRequestTokenError(OAuthFlowError):
    """Raised when no request token is stored for the app id.

    Signals that the caller skipped the request token step.
    """

    pass


class AccessTokenInvalidError(OAuthFlowError):
    """Raised when a freshly issued access token fails verification.

    The access token has already been persisted when this is raised.
    """

    def __init__(
        self,
        message: str,
        grant: Any = None,
        status_code: int | None = None,
        body: str = "",
    ):
        super().__init__(message, status_code=status_code, body=body)
        self.grant = grant


class FetchError(TwoAuthError):
    """Raised when an API call fails.

    Carries the raw response body, and the decoded provider payload when the
    body was JSON, for diagnostics.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str = "",
        payload: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.payload = payload
