"""Tests for the twoauth command line interface."""

import httpx
import pytest
from typer.testing import CliRunner

from twoauth._version import __version__
from twoauth.auth.models import TokenKey, TokenPair
from twoauth.auth.storage import FileTokenStore
from twoauth.cli.main import app


REQUEST_TOKEN_URL = "https://api.twitter.com/oauth/request_token"
ACCESS_TOKEN_URL = "https://api.twitter.com/oauth/access_token"
API = "https://api.twitter.com/1.1"


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def consumer_env(monkeypatch):
    monkeypatch.setenv("TWOAUTH_OAUTH__CONSUMER_KEY", "consumer-key")
    monkeypatch.setenv("TWOAUTH_OAUTH__CONSUMER_SECRET", "consumer-secret")


@pytest.fixture
def store(tokens_dir) -> FileTokenStore:
    return FileTokenStore(tokens_dir)


def _invoke(runner, tokens_dir, *args):
    return runner.invoke(app, ["--tokens-dir", str(tokens_dir), *args])


@pytest.mark.unit
class TestGlobalOptions:
    def test_version(self, runner):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"twoauth {__version__}" in result.output

    def test_help_lists_commands(self, runner):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("generate-request-token", "generate-access-token", "verify"):
            assert command in result.output

    def test_invalid_config_file(self, runner, tmp_path, consumer_env, httpx_mock):
        cfg = tmp_path / "broken.toml"
        cfg.write_text("[oauth\n", encoding="utf-8")

        result = runner.invoke(app, ["--config", str(cfg), "verify", "myapp", "alice"])

        assert result.exit_code == 1
        assert "Configuration error" in result.output
        assert not httpx_mock.get_requests()

    def test_invalid_log_level(self, runner, tokens_dir, consumer_env):
        result = _invoke(runner, tokens_dir, "--log-level", "LOUD", "verify", "a", "b")
        assert result.exit_code == 1
        assert "Configuration error" in result.output

    def test_consumer_from_config_file(
        self, runner, tmp_path, tokens_dir, store, httpx_mock
    ):
        cfg = tmp_path / "config.toml"
        cfg.write_text(
            '[oauth]\nconsumer_key = "toml-key"\nconsumer_secret = "toml-secret"\n',
            encoding="utf-8",
        )
        store.put(
            TokenKey.access_token("myapp", "alice"), TokenPair(token="t", secret="s")
        )
        httpx_mock.add_response(
            method="GET",
            url=f"{API}/account/verify_credentials.json",
            json={"screen_name": "alice"},
        )

        result = runner.invoke(
            app,
            ["-c", str(cfg), "--tokens-dir", str(tokens_dir), "verify", "myapp", "alice"],
        )

        assert result.exit_code == 0
        assert 'oauth_consumer_key="toml-key"' in (
            httpx_mock.get_request().headers["Authorization"]
        )


@pytest.mark.unit
class TestGenerateRequestToken:
    def test_prints_authorization_url(
        self, runner, tokens_dir, store, consumer_env, httpx_mock
    ):
        httpx_mock.add_response(
            method="POST",
            url=REQUEST_TOKEN_URL,
            text="oauth_token=abc&oauth_token_secret=xyz&oauth_callback_confirmed=true",
        )

        result = _invoke(runner, tokens_dir, "generate-request-token", "myapp")

        assert result.exit_code == 0, result.output
        assert "https://api.twitter.com/oauth/authorize?oauth_token=abc" in result.output
        assert store.get(TokenKey.request_token("myapp")) == TokenPair(
            token="abc", secret="xyz"
        )

    def test_missing_consumer_credentials(self, runner, tokens_dir, httpx_mock):
        result = _invoke(runner, tokens_dir, "generate-request-token", "myapp")

        assert result.exit_code == 1
        assert "Consumer key" in result.output
        assert not httpx_mock.get_requests()

    def test_provider_rejection(self, runner, tokens_dir, consumer_env, httpx_mock):
        httpx_mock.add_response(method="POST", url=REQUEST_TOKEN_URL, status_code=401)

        result = _invoke(runner, tokens_dir, "generate-request-token", "myapp")

        assert result.exit_code == 1
        assert "401" in result.output

    def test_missing_argument(self, runner, tokens_dir):
        result = _invoke(runner, tokens_dir, "generate-request-token")
        assert result.exit_code == 2


@pytest.mark.unit
class TestGenerateAccessToken:
    def test_prints_screen_name(self, runner, tokens_dir, store, consumer_env, httpx_mock):
        store.put(TokenKey.request_token("myapp"), TokenPair(token="abc", secret="xyz"))
        httpx_mock.add_response(
            method="POST",
            url=ACCESS_TOKEN_URL,
            text="oauth_token=AT&oauth_token_secret=ATS&screen_name=alice",
        )
        httpx_mock.add_response(
            method="GET",
            url=f"{API}/account/verify_credentials.json",
            json={"screen_name": "alice", "id_str": "42"},
        )

        result = _invoke(
            runner, tokens_dir, "generate-access-token", "myapp", "1234567", "alice"
        )

        assert result.exit_code == 0, result.output
        assert "alice" in result.output
        assert (tokens_dir / "myapp_alice_access_token").read_text() == "AT"
        assert (tokens_dir / "myapp_alice_access_token_secret").read_text() == "ATS"
        assert not store.exists(TokenKey.request_token("myapp"))

    def test_falls_back_to_username_without_screen_name(
        self, runner, tokens_dir, store, consumer_env, httpx_mock
    ):
        store.put(TokenKey.request_token("myapp"), TokenPair(token="abc", secret="xyz"))
        httpx_mock.add_response(
            method="POST",
            url=ACCESS_TOKEN_URL,
            text="oauth_token=AT&oauth_token_secret=ATS",
        )
        httpx_mock.add_response(
            method="GET",
            url=f"{API}/account/verify_credentials.json",
            json={"id_str": "42"},
        )

        result = _invoke(
            runner, tokens_dir, "generate-access-token", "myapp", "1234567", "alice"
        )

        assert result.exit_code == 0, result.output
        assert "@None" not in result.output
        assert "@alice" in result.output

    def test_without_request_token(self, runner, tokens_dir, consumer_env, httpx_mock):
        result = _invoke(
            runner, tokens_dir, "generate-access-token", "myapp", "1234567", "alice"
        )

        assert result.exit_code == 1
        assert "generate-request-token" in result.output
        assert not httpx_mock.get_requests()

    def test_verification_failure(
        self, runner, tokens_dir, store, consumer_env, httpx_mock
    ):
        store.put(TokenKey.request_token("myapp"), TokenPair(token="abc", secret="xyz"))
        httpx_mock.add_response(
            method="POST",
            url=ACCESS_TOKEN_URL,
            text="oauth_token=AT&oauth_token_secret=ATS",
        )
        httpx_mock.add_response(
            method="GET",
            url=f"{API}/account/verify_credentials.json",
            status_code=401,
        )

        result = _invoke(
            runner, tokens_dir, "generate-access-token", "myapp", "1234567", "alice"
        )

        assert result.exit_code == 1
        assert store.exists(TokenKey.access_token("myapp", "alice"))


@pytest.mark.unit
class TestApiCommands:
    @pytest.fixture(autouse=True)
    def stored_token(self, store, consumer_env):
        store.put(
            TokenKey.access_token("myapp", "alice"),
            TokenPair(token="access-token", secret="access-secret"),
        )

    def test_verify(self, runner, tokens_dir, httpx_mock):
        httpx_mock.add_response(
            method="GET",
            url=f"{API}/account/verify_credentials.json",
            json={"screen_name": "alice"},
        )

        result = _invoke(runner, tokens_dir, "verify", "myapp", "alice")

        assert result.exit_code == 0, result.output
        assert "alice" in result.output

    def test_verify_unknown_user(self, runner, tokens_dir, httpx_mock):
        result = _invoke(runner, tokens_dir, "verify", "myapp", "bob")

        assert result.exit_code == 1
        assert not httpx_mock.get_requests()

    def test_retweet(self, runner, tokens_dir, httpx_mock):
        httpx_mock.add_response(
            method="POST",
            url=f"{API}/statuses/retweet/1234567890.json",
            json={"id_str": "999"},
        )

        result = _invoke(runner, tokens_dir, "retweet", "myapp", "alice", "1234567890")

        assert result.exit_code == 0, result.output
        assert '"id_str": "999"' in result.output

    def test_retweet_failure(self, runner, tokens_dir, httpx_mock):
        httpx_mock.add_response(
            method="POST",
            url=f"{API}/statuses/retweet/1.json",
            status_code=403,
            json={"errors": [{"code": 327, "message": "Already retweeted."}]},
        )

        result = _invoke(runner, tokens_dir, "retweet", "myapp", "alice", "1")

        assert result.exit_code == 1
        assert "327" in result.output

    def test_follow(self, runner, tokens_dir, httpx_mock):
        httpx_mock.add_response(
            method="POST",
            url=f"{API}/friendships/create.json",
            json={"screen_name": "twitter"},
        )

        result = _invoke(runner, tokens_dir, "follow", "myapp", "alice", "783214")

        assert result.exit_code == 0, result.output
        assert b"user_id=783214" in httpx_mock.get_request().content

    def test_follow_transport_failure(self, runner, tokens_dir, httpx_mock):
        httpx_mock.add_exception(httpx.ConnectError("connection refused"))

        result = _invoke(runner, tokens_dir, "follow", "myapp", "alice", "783214")

        assert result.exit_code == 1
