"""Signed calls to the Twitter REST API with a stored access token."""

import threading
from dataclasses import dataclass
from typing import Any
from urllib.parse import urljoin

import httpx

from twoauth.auth.exceptions import (
    ConfigurationIncompleteError,
    FetchError,
    InvalidTokenKeyError,
    TokenNotFoundError,
)
from twoauth.auth.models import ConsumerCredentials, TokenKey, TokenPair
from twoauth.auth.oauth.errors import (
    TransportErrorContext,
    extract_error_detail,
    truncate_error_text,
)
from twoauth.auth.oauth.signer import Params, Signer
from twoauth.auth.storage.base import TokenStore
from twoauth.config import constants
from twoauth.core.logging import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class ApiResponse:
    """A completed API call: status, decoded JSON payload and raw body."""

    status_code: int
    payload: Any
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class ApiClient:
    """Client for OAuth 1.0a signed API calls on behalf of one user.

    The access token is read from the token store on first use and cached
    for the lifetime of the instance. Loading is guarded by a lock, so one
    instance may be shared between threads.

    :Parameters:
        credentials : :class:`~twoauth.auth.models.ConsumerCredentials`
            The application key/secret pair.
        store : :class:`~twoauth.auth.storage.TokenStore`
            Where the access token was stored by the authorization flow.
        app_id : `str`
            Application identifier the token is stored under.
        username : `str`
            Account the token is stored under.
        http_client : ``httpx.Client``
            Transport for API calls.
        access_token : :class:`~twoauth.auth.models.TokenPair`
            Pre-loaded access token; skips the store.
    """

    def __init__(
        self,
        credentials: ConsumerCredentials,
        store: TokenStore,
        app_id: str,
        username: str,
        http_client: httpx.Client,
        *,
        signer: Signer | None = None,
        access_token: TokenPair | None = None,
        base_url: str = constants.API_BASE_URL,
    ):
        self.credentials = credentials
        self.store = store
        self.app_id = app_id
        self.username = username
        self.http_client = http_client
        self.signer = signer or Signer(credentials)
        self.base_url = base_url
        self._access_token = access_token
        self._lock = threading.Lock()

    @property
    def access_token(self) -> TokenPair:
        """The access token, loaded from the store on first use.

        Raises:
            ConfigurationIncompleteError: If no access token is stored for app id and username
        """
        with self._lock:
            if self._access_token is None:
                try:
                    key = TokenKey.access_token(self.app_id, self.username)
                    self._access_token = self.store.get(key)
                except (TokenNotFoundError, InvalidTokenKeyError) as e:
                    raise ConfigurationIncompleteError(
                        f"No access token stored for app {self.app_id!r} and user "
                        f"{self.username!r}; complete the authorization first"
                    ) from e
                logger.debug(
                    "access_token_loaded",
                    app_id=self.app_id,
                    username=self.username,
                    location=self.store.get_location(key),
                )
            return self._access_token

    def validate(self) -> None:
        """Check that every credential needed for signing is present.

        Raises:
            ConfigurationIncompleteError: If consumer key, consumer secret,
                access token or access token secret is empty
        """
        if not self.credentials.key:
            raise ConfigurationIncompleteError("Consumer key must be defined.")
        if not self.credentials.secret:
            raise ConfigurationIncompleteError("Consumer secret must be defined.")

        token = self.access_token
        if not token.token:
            raise ConfigurationIncompleteError("Access token must be defined.")
        if not token.secret:
            raise ConfigurationIncompleteError("Access token secret must be defined.")

    def resolve_url(self, url: str) -> str:
        """Resolve a resource path such as ``statuses/home_timeline.json`` against the base URL."""
        return urljoin(self.base_url, url)

    def request(
        self, url: str, params: Params | None = None, method: str = "GET"
    ) -> ApiResponse:
        """Perform a signed call and return the completed response.

        Raises:
            ConfigurationIncompleteError: Before any network call, if a credential is missing
            FetchError: On transport failure, or when the body is not JSON
        """
        self.validate()
        signed = self.signer.sign(
            method, self.resolve_url(url), params, token=self.access_token
        )

        with TransportErrorContext("fetch", FetchError):
            response = self.http_client.request(**signed.request_kwargs())

        body = response.text
        payload: Any = None
        if body.strip():
            try:
                payload = response.json()
            except ValueError as e:
                logger.error(
                    "fetch_invalid_json",
                    url=signed.url,
                    status_code=response.status_code,
                    body=truncate_error_text(body),
                )
                raise FetchError(
                    f"Cannot fetch from twitter API: HTTP {response.status_code} "
                    f"- {truncate_error_text(body)}",
                    status_code=response.status_code,
                    body=body,
                ) from e

        logger.debug(
            "fetch_completed",
            method=signed.method,
            url=signed.url,
            status_code=response.status_code,
        )
        return ApiResponse(status_code=response.status_code, payload=payload, body=body)

    def fetch(self, url: str, params: Params | None = None, method: str = "GET") -> Any:
        """Perform a signed call and return the decoded JSON body.

        Provider error payloads (``{"errors": [...]}``) are returned unchanged
        whatever the status code. Nothing is retried.

        Args:
            url: Absolute URL, or a path relative to the API base URL
            params: Query parameters (GET) or form parameters (POST)
            method: HTTP method

        Returns:
            Decoded JSON (mapping or list), or None for an empty body

        Raises:
            ConfigurationIncompleteError: Before any network call, if a credential is missing
            FetchError: On transport failure, or when the body is not JSON
        """
        return self.request(url, params, method).payload

    def _call(self, operation: str, url: str, params: Params | None, method: str) -> Any:
        response = self.request(url, params, method)
        if not response.ok:
            detail = extract_error_detail(response.body)
            logger.warning(
                f"{operation}_failed",
                status_code=response.status_code,
                error_detail=detail,
            )
            raise FetchError(
                f"{operation} failed: HTTP {response.status_code} - {detail}",
                status_code=response.status_code,
                body=response.body,
                payload=response.payload,
            )
        return response.payload

    def verify_credentials(self) -> dict[str, Any]:
        """Profile of the authorized user.

        Raises:
            FetchError: If the token is rejected
        """
        profile = self._call(
            "verify_credentials", constants.VERIFY_CREDENTIALS_PATH, None, "GET"
        )
        if not isinstance(profile, dict):
            raise FetchError(
                "verify_credentials failed: unexpected response shape",
                payload=profile,
            )
        return profile

    def retweet(self, tweet_id: int | str) -> Any:
        """Retweet a tweet by ID.

        Raises:
            FetchError: If the call fails, carrying the provider's payload
        """
        return self._call(
            "retweet",
            constants.RETWEET_PATH.format(tweet_id=tweet_id),
            None,
            "POST",
        )

    def follow(self, user_id: int | str) -> Any:
        """Follow a user by ID.

        Raises:
            FetchError: If the call fails, carrying the provider's payload
        """
        return self._call(
            "follow",
            constants.FOLLOW_PATH,
            {"user_id": user_id, "follow": True},
            "POST",
        )
