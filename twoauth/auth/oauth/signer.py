"""OAuth 1.0a request signing (HMAC-SHA1).

Thin layer over :mod:`oauthlib.oauth1.rfc5849` that builds the signature
base string, signing key and Authorization header of RFC 5849 section 3.
Nonce and timestamp are injectable so a signature can be reproduced exactly.

:Example:
    .. code-block:: python

        signer = Signer(ConsumerCredentials(key="ck", secret="cs"))
        signed = signer.sign(
            "POST",
            "https://api.twitter.com/1.1/statuses/update.json",
            {"status": "hello"},
            token=access_token,
        )
        httpx.Client().request(**signed.request_kwargs())
"""

import time
from collections.abc import Callable, Iterable, Mapping
from typing import Any
from urllib.parse import parse_qsl, urlsplit

from oauthlib.common import generate_nonce
from oauthlib.oauth1.rfc5849 import parameters, signature, utils

from twoauth.auth.exceptions import SignatureError
from twoauth.auth.models import ConsumerCredentials, SignedRequest, TokenPair
from twoauth.core.logging import get_logger


logger = get_logger(__name__)

SIGNATURE_METHOD = "HMAC-SHA1"
OAUTH_VERSION = "1.0"
OAUTH_PARAM_PREFIX = "oauth_"

SUPPORTED_METHODS = frozenset({"GET", "POST", "PUT", "DELETE", "PATCH", "HEAD"})
# methods whose request parameters travel in the query string
QUERY_METHODS = frozenset({"GET", "HEAD", "DELETE"})

Params = Mapping[str, Any] | Iterable[tuple[str, Any]]


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def percent_encode(value: Any) -> str:
    """Percent-encode ``value`` per RFC 3986, leaving only unreserved characters.

    Non-ASCII text is UTF-8 encoded first. Hex digits are upper case.
    """
    return utils.escape(_stringify(value))


def percent_decode(value: str) -> str:
    """Inverse of :func:`percent_encode`."""
    return utils.unescape(value)


def to_pairs(params: Params | None) -> list[tuple[str, str]]:
    """Flatten a mapping or iterable of pairs into string pairs.

    Sequence values in a mapping expand to repeated keys; ``None`` values are
    dropped.
    """
    if params is None:
        return []

    items: Iterable[tuple[str, Any]]
    if isinstance(params, Mapping):
        items = params.items()
    else:
        items = params

    pairs: list[tuple[str, str]] = []
    for key, value in items:
        if value is None:
            continue
        if isinstance(value, list | tuple):
            pairs.extend((_stringify(key), _stringify(v)) for v in value)
        else:
            pairs.append((_stringify(key), _stringify(value)))
    return pairs


def normalize_url(url: str) -> str:
    """Base string URI: lower-case scheme and host, no default port, query or fragment."""
    try:
        return signature.base_string_uri(url)
    except ValueError as e:
        raise SignatureError(f"Cannot sign URL {url!r}: {e}") from e


def query_pairs(url: str) -> list[tuple[str, str]]:
    """Parameters carried in the query string of ``url``."""
    return parse_qsl(urlsplit(url).query, keep_blank_values=True)


def normalize_parameters(params: Iterable[tuple[str, str]]) -> str:
    """Encode, sort (by key, then value) and join request parameters.

    ``oauth_signature`` is never part of the normalized string.
    """
    return signature.normalize_parameters(list(params))


def signature_base_string(method: str, url: str, params: Params | None = None) -> str:
    """``METHOD&enc(base URI)&enc(normalized parameters)``.

    Parameters in the query string of ``url`` are folded into ``params``.
    """
    pairs = query_pairs(url) + to_pairs(params)
    return signature.signature_base_string(
        method.upper(), normalize_url(url), normalize_parameters(pairs)
    )


def signing_key(consumer_secret: str, token_secret: str | None = None) -> str:
    """Consumer secret and token secret joined by ``&``.

    The ``&`` is present even without a token secret (request token phase).
    """
    return f"{utils.escape(consumer_secret)}&{utils.escape(token_secret or '')}"


def hmac_sha1_signature(
    base_string: str, consumer_secret: str, token_secret: str | None = None
) -> str:
    """Base64 HMAC-SHA1 of ``base_string`` keyed by :func:`signing_key`."""
    return signature.sign_hmac_sha1(base_string, consumer_secret, token_secret or "")


def build_authorization_header(oauth_params: Mapping[str, str]) -> str:
    """``OAuth k1="v1", k2="v2"`` over the ``oauth_*`` parameters, keys sorted."""
    headers = parameters.prepare_headers(sorted(oauth_params.items()))
    return headers["Authorization"]


class Signer:
    """Signs requests for one consumer with HMAC-SHA1.

    :Parameters:
        credentials : :class:`~twoauth.auth.models.ConsumerCredentials`
            The application key/secret pair.
        nonce_factory : callable
            Returns a fresh nonce. Defaults to :func:`generate_nonce`.
        clock : callable
            Returns the current Unix time. Defaults to :func:`time.time`.
    """

    signature_method = SIGNATURE_METHOD

    def __init__(
        self,
        credentials: ConsumerCredentials,
        nonce_factory: Callable[[], str] = generate_nonce,
        clock: Callable[[], float] = time.time,
    ):
        self.credentials = credentials
        self.nonce_factory = nonce_factory
        self.clock = clock

    def oauth_parameters(
        self,
        token: TokenPair | None = None,
        *,
        nonce: str | None = None,
        timestamp: str | int | None = None,
        extra: Mapping[str, str] | None = None,
    ) -> dict[str, str]:
        """Protocol parameters for one request, without the signature."""
        params = {
            "oauth_consumer_key": self.credentials.key,
            "oauth_nonce": nonce if nonce is not None else self.nonce_factory(),
            "oauth_signature_method": self.signature_method,
            "oauth_timestamp": str(
                timestamp if timestamp is not None else int(self.clock())
            ),
            "oauth_version": OAUTH_VERSION,
        }
        if token is not None and token.token:
            params["oauth_token"] = token.token

        for key, value in (extra or {}).items():
            if not key.startswith(OAUTH_PARAM_PREFIX):
                raise SignatureError(f"Not an OAuth protocol parameter: {key!r}")
            if key == "oauth_signature":
                raise SignatureError("oauth_signature cannot be supplied by the caller")
            params[key] = _stringify(value)
        return params

    def sign(
        self,
        method: str,
        url: str,
        params: Params | None = None,
        token: TokenPair | None = None,
        *,
        nonce: str | None = None,
        timestamp: str | int | None = None,
        extra_oauth: Mapping[str, str] | None = None,
    ) -> SignedRequest:
        """Sign a request.

        Args:
            method: HTTP method
            url: Request URL; its query string is folded into the signed parameters
            params: Query parameters (GET, HEAD, DELETE) or form body parameters
            token: Request or access token; ``None`` while obtaining a request token
            nonce: Fixed nonce (tests); generated when omitted
            timestamp: Fixed Unix timestamp (tests); read from the clock when omitted
            extra_oauth: Additional protocol parameters such as ``oauth_callback``
                or ``oauth_verifier``

        Returns:
            The :class:`SignedRequest`, whose ``oauth_params`` hold ``oauth_signature``

        Raises:
            SignatureError: On an unsupported method or a URL that cannot be normalized
        """
        method = method.upper()
        if method not in SUPPORTED_METHODS:
            raise SignatureError(f"Unsupported HTTP method: {method}")

        base_url = normalize_url(url)
        url_query = query_pairs(url)
        request_params = to_pairs(params)

        oauth_params = self.oauth_parameters(
            token, nonce=nonce, timestamp=timestamp, extra=extra_oauth
        )
        all_params = url_query + request_params + list(oauth_params.items())
        base_string = signature_base_string(method, base_url, all_params)
        oauth_params["oauth_signature"] = hmac_sha1_signature(
            base_string,
            self.credentials.secret,
            token.secret if token else None,
        )

        if method in QUERY_METHODS:
            query_params, body_params = url_query + request_params, []
        else:
            query_params, body_params = url_query, request_params

        logger.debug(
            "request_signed",
            method=method,
            url=base_url,
            has_token=token is not None,
            param_count=len(request_params),
        )

        return SignedRequest(
            method=method,
            url=base_url,
            query_params=query_params,
            body_params=body_params,
            oauth_params=oauth_params,
            base_string=base_string,
        )

    def signature(
        self,
        method: str,
        url: str,
        params: Params | None = None,
        token: TokenPair | None = None,
        *,
        nonce: str | None = None,
        timestamp: str | int | None = None,
        extra_oauth: Mapping[str, str] | None = None,
    ) -> str:
        """Just the ``oauth_signature`` value of :meth:`sign`."""
        return self.sign(
            method,
            url,
            params,
            token,
            nonce=nonce,
            timestamp=timestamp,
            extra_oauth=extra_oauth,
        ).signature
