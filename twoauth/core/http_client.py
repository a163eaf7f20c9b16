"""HTTP client construction for provider calls.

All provider traffic goes through one ``httpx.Client`` built here, so timeout,
proxy and TLS settings are applied the same way for the authorization flow
and for API calls.
"""

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx

from twoauth._version import __version__
from twoauth.config.constants import DEFAULT_HTTP_TIMEOUT
from twoauth.core.logging import get_logger


if TYPE_CHECKING:
    from twoauth.config.settings import Settings


logger = get_logger(__name__)

USER_AGENT = f"twoauth/{__version__}"


class HTTPClientFactory:
    """Factory for configured ``httpx.Client`` instances."""

    @staticmethod
    def create_client(
        *,
        settings: "Settings | None" = None,
        timeout: float | None = None,
        verify: bool | str = True,
        **kwargs: Any,
    ) -> httpx.Client:
        """Create an HTTP client.

        Args:
            settings: Optional settings; ``api.timeout`` is used when ``timeout`` is not given
            timeout: Timeout in seconds for connect, read, write and pool
            verify: SSL verification (True/False or path to CA bundle)
            **kwargs: Additional ``httpx.Client`` arguments (e.g. ``transport``)

        Returns:
            Configured ``httpx.Client``; the caller owns and closes it
        """
        if timeout is None:
            timeout = settings.api.timeout if settings else DEFAULT_HTTP_TIMEOUT

        if isinstance(verify, bool) and verify:
            verify = _get_ssl_context()

        headers = {"User-Agent": USER_AGENT}
        if "headers" in kwargs:
            headers.update(kwargs.pop("headers"))

        client_config: dict[str, Any] = {
            "timeout": httpx.Timeout(timeout),
            "headers": headers,
            "verify": verify,
            **kwargs,
        }
        if "transport" not in kwargs:
            client_config["proxy"] = _get_proxy_url()

        logger.debug(
            "http_client_created",
            timeout=timeout,
            custom_transport="transport" in kwargs,
        )
        return httpx.Client(**client_config)


def _get_proxy_url() -> str | None:
    """Get proxy URL from environment variables.

    Returns:
        str or None: Proxy URL if any proxy is set
    """
    # For HTTPS requests, prioritize HTTPS_PROXY
    https_proxy = os.environ.get("HTTPS_PROXY") or os.environ.get("https_proxy")
    all_proxy = os.environ.get("ALL_PROXY")
    http_proxy = os.environ.get("HTTP_PROXY") or os.environ.get("http_proxy")

    proxy_url = https_proxy or all_proxy or http_proxy

    if proxy_url:
        logger.debug("proxy_configured", proxy_url=proxy_url)

    return proxy_url


def _get_ssl_context() -> str | bool:
    """Get SSL verification configuration from environment variables.

    Returns:
        Path to a CA bundle file, or True for default verification
    """
    ca_bundle = os.environ.get("REQUESTS_CA_BUNDLE") or os.environ.get("SSL_CERT_FILE")

    if ca_bundle and Path(ca_bundle).exists():
        logger.debug("ssl_ca_bundle_configured", ca_bundle_path=ca_bundle)
        return ca_bundle
    return True
