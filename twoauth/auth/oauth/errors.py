"""Translation of httpx transport failures into twoauth errors."""

import json
from typing import Any

import httpx

from twoauth.auth.exceptions import FetchError, OAuthFlowError
from twoauth.core.logging import get_logger


logger = get_logger(__name__)

ProviderErrorType = type[OAuthFlowError] | type[FetchError]


def extract_http_error_detail(response: httpx.Response) -> str:
    """Extract a human-readable error detail from a provider response."""
    return extract_error_detail(response.text)


def extract_error_detail(body: str) -> str:
    """Extract a human-readable error detail from a response body.

    Understands Twitter's ``{"errors": [{"code": .., "message": ..}]}`` payload
    and the plain ``{"error": ..}`` form, falling back to the truncated body.
    """
    try:
        error_data = json.loads(body)

        if isinstance(error_data, dict):
            errors = error_data.get("errors")
            if isinstance(errors, list) and errors:
                first = errors[0]
                if isinstance(first, dict) and "message" in first:
                    code = first.get("code")
                    if code is not None:
                        return f"{first['message']} (code {code})"
                    return str(first["message"])
            if "error" in error_data:
                return str(error_data["error"])
            if "message" in error_data:
                return str(error_data["message"])

        return truncate_error_text(str(error_data))

    except (json.JSONDecodeError, KeyError, TypeError):
        return truncate_error_text(body)


def truncate_error_text(text: str, max_length: int = 200) -> str:
    """Truncate error text to a reasonable length for messages and logs."""
    if len(text) <= max_length:
        return text

    # For long errors, show beginning and end
    if len(text) > max_length * 2:
        return f"{text[:max_length]}...{text[-50:]}"
    else:
        return f"{text[:max_length]}..."


class TransportErrorContext:
    """Context manager that turns httpx failures into ``error_cls``.

    Nothing is retried: the failure is logged once and re-raised as the
    operation's error type with the original exception chained.

    Example:
        with TransportErrorContext("request_token", RequestTokenError):
            response = client.post(url, headers=headers)
            response.raise_for_status()
    """

    def __init__(self, operation: str, error_cls: ProviderErrorType):
        """Initialize error context.

        Args:
            operation: Name of the operation for logging and messages
            error_cls: Error type raised for transport and HTTP status failures
        """
        self.operation = operation
        self.error_cls = error_cls

    def __enter__(self) -> "TransportErrorContext":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> bool:
        if exc_type is None:
            return False

        if isinstance(exc_val, httpx.HTTPStatusError):
            response = exc_val.response
            error_detail = extract_http_error_detail(response)
            logger.error(
                f"{self.operation}_http_error",
                status_code=response.status_code,
                error_detail=error_detail,
                operation=self.operation,
            )
            raise self.error_cls(
                f"{self.operation} failed: HTTP {response.status_code} - {error_detail}",
                status_code=response.status_code,
                body=response.text,
            ) from exc_val

        elif isinstance(exc_val, httpx.TimeoutException):
            logger.error(
                f"{self.operation}_timeout",
                operation=self.operation,
                error=str(exc_val),
            )
            raise self.error_cls(f"{self.operation} timed out") from exc_val

        elif isinstance(exc_val, httpx.ConnectError):
            logger.error(
                f"{self.operation}_connection_error",
                operation=self.operation,
                error=str(exc_val),
            )
            raise self.error_cls(
                f"{self.operation} failed: Connection error - {exc_val}"
            ) from exc_val

        elif isinstance(exc_val, httpx.HTTPError):
            logger.error(
                f"{self.operation}_network_error",
                operation=self.operation,
                error=str(exc_val),
            )
            raise self.error_cls(
                f"{self.operation} failed: Network error - {exc_val}"
            ) from exc_val

        # anything else, including our own errors, propagates unchanged
        return False
