"""Tests for the twoauth error hierarchy."""

import pytest

from twoauth.auth.exceptions import (
    AccessTokenError,
    AccessTokenInvalidError,
    ConfigurationIncompleteError,
    CredentialsError,
    CredentialsIncompleteError,
    FetchError,
    InvalidTokenKeyError,
    MissingRequestTokenError,
    OAuthError,
    OAuthFlowError,
    RequestTokenError,
    SignatureError,
    TokenNotFoundError,
    TwoAuthError,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    "error_cls, parent",
    [
        (ConfigurationIncompleteError, TwoAuthError),
        (TokenNotFoundError, CredentialsError),
        (InvalidTokenKeyError, ValueError),
        (SignatureError, OAuthError),
        (RequestTokenError, OAuthFlowError),
        (AccessTokenError, OAuthFlowError),
        (MissingRequestTokenError, OAuthFlowError),
        (AccessTokenInvalidError, OAuthFlowError),
        (OAuthFlowError, TwoAuthError),
        (FetchError, TwoAuthError),
    ],
)
def test_hierarchy(error_cls, parent):
    assert issubclass(error_cls, parent)


@pytest.mark.unit
def test_incomplete_alias():
    assert CredentialsIncompleteError is ConfigurationIncompleteError


@pytest.mark.unit
def test_flow_error_context():
    error = AccessTokenInvalidError("verify failed", grant="g", status_code=401, body="x")
    assert (error.grant, error.status_code, error.body) == ("g", 401, "x")
    assert str(error) == "verify failed"


@pytest.mark.unit
def test_fetch_error_context():
    error = FetchError("boom", status_code=500, body="{}", payload={})
    assert error.payload == {}
    assert error.status_code == 500
