"""Shared test fixtures and configuration for twoauth tests.

Fixtures work with real components (signer, file store, flow) and stub only
the provider, through ``pytest-httpx``.
"""

import os
from collections.abc import Generator
from pathlib import Path

import httpx
import pytest

from twoauth.auth.models import ConsumerCredentials, TokenKey, TokenPair
from twoauth.auth.oauth.signer import Signer
from twoauth.auth.storage.file import FileTokenStore
from twoauth.core.logging import setup_logging


FIXED_NONCE = "kYjzVBB8Y0ZFabxSWbWovY3uYSQ2pTgmZeNu2VS4cg"
FIXED_TIMESTAMP = 1318622958


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom settings."""
    # Reuse the application logging pipeline so structlog events render
    # the same way in tests.
    setup_logging(json_logs=False, log_level_name="DEBUG")


@pytest.fixture(autouse=True)
def isolated_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[None, None, None]:
    """Keep the host's config files, tokens and TWOAUTH_* variables out of tests."""
    for name in list(os.environ):
        if name.startswith("TWOAUTH_"):
            monkeypatch.delenv(name)
    for name in ("HTTPS_PROXY", "https_proxy", "ALL_PROXY", "HTTP_PROXY", "http_proxy"):
        monkeypatch.delenv(name, raising=False)

    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg-data"))
    monkeypatch.chdir(tmp_path)
    yield
    # CLI commands reconfigure logging onto the runner's captured streams
    setup_logging(json_logs=False, log_level_name="DEBUG")


@pytest.fixture
def consumer() -> ConsumerCredentials:
    return ConsumerCredentials(key="consumer-key", secret="consumer-secret")


@pytest.fixture
def fixed_signer(consumer: ConsumerCredentials) -> Signer:
    """Signer with a constant nonce and clock."""
    return Signer(
        consumer,
        nonce_factory=lambda: FIXED_NONCE,
        clock=lambda: float(FIXED_TIMESTAMP),
    )


@pytest.fixture
def tokens_dir(tmp_path: Path) -> Path:
    return tmp_path / "tokens"


@pytest.fixture
def file_store(tokens_dir: Path) -> FileTokenStore:
    return FileTokenStore(tokens_dir)


@pytest.fixture
def access_pair() -> TokenPair:
    return TokenPair(token="access-token", secret="access-secret")


@pytest.fixture
def stored_access_token(file_store: FileTokenStore, access_pair: TokenPair) -> TokenPair:
    """Access token for app ``myapp`` and user ``alice`` already in the store."""
    file_store.put(TokenKey.access_token("myapp", "alice"), access_pair)
    return access_pair


@pytest.fixture
def http_client() -> Generator[httpx.Client, None, None]:
    """Plain client; requests are intercepted by the ``httpx_mock`` fixture."""
    with httpx.Client(timeout=5.0) as client:
        yield client
