"""Three-legged OAuth 1.0a authorization with an out-of-band (PIN) verifier.

:Example:
    .. code-block:: python

        flow = OAuthFlow(consumer, FileTokenStore("~/tokens"), httpx.Client())

        # Step 1: obtain a request token and send the user to the provider
        print("Open:", flow.start_authorization("myapp"))

        # Step 2: the user authorizes the app and is shown a PIN
        pin = input("PIN: ")

        # Step 3: exchange the PIN for an access token, stored for later API calls
        grant = flow.complete_authorization("myapp", "alice", pin)
        print("Authorized as", grant.screen_name)

Steps 1 and 3 may run in separate processes: the request token travels
between them through the token store.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING
from urllib.parse import parse_qsl, urlencode, urljoin

import httpx

from twoauth.auth.exceptions import (
    AccessTokenError,
    AccessTokenInvalidError,
    CredentialsStorageError,
    MissingRequestTokenError,
    OAuthFlowError,
    RequestTokenError,
    TokenNotFoundError,
)
from twoauth.auth.models import (
    AuthorizationGrant,
    ConsumerCredentials,
    SignedRequest,
    TokenKey,
    TokenPair,
)
from twoauth.auth.oauth.errors import TransportErrorContext, truncate_error_text
from twoauth.auth.oauth.signer import Signer
from twoauth.auth.storage.base import TokenStore
from twoauth.config import constants
from twoauth.core.logging import get_logger


if TYPE_CHECKING:
    from twoauth.config.settings import Settings


logger = get_logger(__name__)


class FlowState(str, Enum):
    IDLE = "idle"
    REQUEST_TOKEN_OBTAINED = "request_token_obtained"
    AUTHORIZED = "authorized"
    ACCESS_TOKEN_OBTAINED = "access_token_obtained"


_STATE_ORDER = list(FlowState)


@dataclass(frozen=True)
class OAuthEndpoints:
    """Provider URLs used by the flow."""

    request_token_url: str = constants.REQUEST_TOKEN_URL
    authorize_url: str = constants.AUTHORIZE_URL
    access_token_url: str = constants.ACCESS_TOKEN_URL
    verify_credentials_url: str = urljoin(
        constants.API_BASE_URL, constants.VERIFY_CREDENTIALS_PATH
    )

    @classmethod
    def from_settings(cls, settings: "Settings") -> "OAuthEndpoints":
        api = settings.api
        return cls(
            request_token_url=api.request_token_url,
            authorize_url=api.authorize_url,
            access_token_url=api.access_token_url,
            verify_credentials_url=urljoin(
                api.base_url, constants.VERIFY_CREDENTIALS_PATH
            ),
        )


class OAuthFlow:
    """Drives the request token, authorization and access token steps.

    :Parameters:
        credentials : :class:`~twoauth.auth.models.ConsumerCredentials`
            The application key/secret pair.
        store : :class:`~twoauth.auth.storage.TokenStore`
            Where request and access tokens are persisted.
        http_client : ``httpx.Client``
            Transport for provider calls; its timeout is the only cancellation.
        endpoints : :class:`OAuthEndpoints`
            Provider URLs; Twitter's by default.
        signer : :class:`~twoauth.auth.oauth.signer.Signer`
            Injected for deterministic nonces/timestamps in tests.
        callback : `str`
            ``oauth_callback`` value; ``"oob"`` for the PIN flow.

    States only move forward (``IDLE`` -> ``REQUEST_TOKEN_OBTAINED`` ->
    ``AUTHORIZED`` -> ``ACCESS_TOKEN_OBTAINED``); there is no cancellation.
    Nothing is retried.
    """

    def __init__(
        self,
        credentials: ConsumerCredentials,
        store: TokenStore,
        http_client: httpx.Client,
        *,
        endpoints: OAuthEndpoints | None = None,
        signer: Signer | None = None,
        callback: str = constants.OOB_CALLBACK,
    ):
        self.credentials = credentials
        self.store = store
        self.http_client = http_client
        self.endpoints = endpoints or OAuthEndpoints()
        self.signer = signer or Signer(credentials)
        self.callback = callback
        self.state = FlowState.IDLE

    def _ensure_forward(self, state: FlowState) -> None:
        if _STATE_ORDER.index(state) < _STATE_ORDER.index(self.state):
            raise OAuthFlowError(
                f"Cannot move authorization flow from {self.state.value} back to "
                f"{state.value}; start a new flow"
            )

    def _advance(self, state: FlowState) -> None:
        self._ensure_forward(state)
        logger.debug("oauth_flow_state", previous=self.state.value, state=state.value)
        self.state = state

    def _send(self, signed: SignedRequest) -> httpx.Response:
        return self.http_client.request(**signed.request_kwargs())

    def _parse_token_response(
        self,
        response: httpx.Response,
        error_cls: type[OAuthFlowError],
        operation: str,
    ) -> dict[str, str]:
        """Parse an ``application/x-www-form-urlencoded`` token response."""
        body = response.text
        credentials = dict(parse_qsl(body.strip(), keep_blank_values=True))

        if not credentials:
            raise error_cls(
                f"{operation} failed: expected x-www-form-urlencoded response, "
                f"got {truncate_error_text(body)!r}",
                status_code=response.status_code,
                body=body,
            )

        if not credentials.get("oauth_token") or not credentials.get(
            "oauth_token_secret"
        ):
            raise error_cls(
                f"{operation} failed: response lacks token information: "
                f"{sorted(credentials)}",
                status_code=response.status_code,
                body=body,
            )

        return credentials

    def authorization_url(self, token: str) -> str:
        """URL where the user authorizes the request token and obtains a PIN."""
        return f"{self.endpoints.authorize_url}?{urlencode({'oauth_token': token})}"

    def start_authorization(self, app_id: str) -> str:
        """Obtain and store a request token.

        Args:
            app_id: Application identifier used to name the stored token

        Returns:
            The authorization URL to show the user

        Raises:
            InvalidTokenKeyError: If ``app_id`` is empty or contains path separators
            RequestTokenError: If the transport fails or the provider rejects the call
            CredentialsStorageError: If the token cannot be stored
        """
        key = TokenKey.request_token(app_id)
        self._ensure_forward(FlowState.REQUEST_TOKEN_OBTAINED)
        signed = self.signer.sign(
            "POST",
            self.endpoints.request_token_url,
            extra_oauth={"oauth_callback": self.callback},
        )

        with TransportErrorContext("request_token", RequestTokenError):
            response = self._send(signed)
            response.raise_for_status()

        credentials = self._parse_token_response(
            response, RequestTokenError, "request_token"
        )
        if credentials.get("oauth_callback_confirmed", "true") != "true":
            raise RequestTokenError(
                "request_token failed: provider did not confirm the callback",
                status_code=response.status_code,
                body=response.text,
            )

        pair = TokenPair(
            token=credentials["oauth_token"],
            secret=credentials["oauth_token_secret"],
        )
        # overwrites any stale request token of an abandoned authorization
        self.store.put(key, pair)
        self._advance(FlowState.REQUEST_TOKEN_OBTAINED)

        logger.info(
            "request_token_obtained",
            app_id=app_id,
            location=self.store.get_location(key),
        )
        return self.authorization_url(pair.token)

    def complete_authorization(
        self, app_id: str, username: str, verifier: str
    ) -> AuthorizationGrant:
        """Exchange the verifier (PIN) for an access token and verify it.

        The access token is stored before it is verified and stays stored if
        verification fails, since the provider has already issued it.

        Args:
            app_id: Application identifier given to :meth:`start_authorization`
            username: Account the access token is stored under
            verifier: PIN shown to the user by the provider

        Returns:
            The :class:`~twoauth.auth.models.AuthorizationGrant`

        Raises:
            InvalidTokenKeyError: If ``app_id`` or ``username`` is unusable
            OAuthFlowError: If ``verifier`` is empty
            MissingRequestTokenError: If no request token is stored (no network call is made)
            AccessTokenError: If the transport fails or the provider rejects the exchange
            AccessTokenInvalidError: If the verification call fails
        """
        request_key = TokenKey.request_token(app_id)
        access_key = TokenKey.access_token(app_id, username)
        verifier = verifier.strip()
        if not verifier:
            raise OAuthFlowError("verifier (PIN) must not be empty")
        self._ensure_forward(FlowState.AUTHORIZED)

        try:
            request_pair = self.store.get(request_key)
        except TokenNotFoundError as e:
            raise MissingRequestTokenError(
                f"No request token stored for app {app_id!r}; "
                "generate a request token first"
            ) from e
        self._advance(FlowState.AUTHORIZED)

        signed = self.signer.sign(
            "POST",
            self.endpoints.access_token_url,
            token=request_pair,
            extra_oauth={"oauth_verifier": verifier},
        )

        with TransportErrorContext("access_token", AccessTokenError):
            response = self._send(signed)
            response.raise_for_status()

        credentials = self._parse_token_response(
            response, AccessTokenError, "access_token"
        )
        access_pair = TokenPair(
            token=credentials["oauth_token"],
            secret=credentials["oauth_token_secret"],
        )
        self.store.put(access_key, access_pair)
        self._advance(FlowState.ACCESS_TOKEN_OBTAINED)
        logger.info(
            "access_token_saved",
            app_id=app_id,
            username=username,
            location=self.store.get_location(access_key),
        )

        try:
            self.store.delete(request_key)
        except CredentialsStorageError as e:
            # the request token is spent either way
            logger.warning("request_token_cleanup_failed", app_id=app_id, error=str(e))

        grant = AuthorizationGrant(
            app_id=app_id,
            username=username,
            access_token=access_pair,
            user_id=credentials.get("user_id"),
            screen_name=credentials.get("screen_name"),
        )
        return self._verify(grant)

    def _verify(self, grant: AuthorizationGrant) -> AuthorizationGrant:
        signed = self.signer.sign(
            "GET", self.endpoints.verify_credentials_url, token=grant.access_token
        )

        try:
            with TransportErrorContext("verify_credentials", AccessTokenInvalidError):
                response = self._send(signed)
                response.raise_for_status()
        except AccessTokenInvalidError as e:
            e.grant = grant
            raise

        try:
            profile = response.json()
        except ValueError as e:
            raise AccessTokenInvalidError(
                "verify_credentials failed: response is not JSON",
                grant=grant,
                status_code=response.status_code,
                body=response.text,
            ) from e

        if not isinstance(profile, dict):
            raise AccessTokenInvalidError(
                "verify_credentials failed: unexpected response shape",
                grant=grant,
                status_code=response.status_code,
                body=response.text,
            )

        logger.info(
            "access_token_verified",
            app_id=grant.app_id,
            username=grant.username,
            screen_name=profile.get("screen_name"),
        )
        return grant.model_copy(
            update={
                "profile": profile,
                "screen_name": profile.get("screen_name", grant.screen_name),
                "user_id": profile.get("id_str", grant.user_id),
            }
        )
