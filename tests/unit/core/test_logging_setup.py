"""Tests for structlog configuration."""

import json
import logging
import os
import subprocess
import sys
import textwrap

import pytest
import structlog

from twoauth.core.logging import get_logger, setup_logging


@pytest.mark.unit
class TestSetupLogging:
    def test_level_is_applied_and_noisy_loggers_quieted(self):
        setup_logging(json_logs=False, log_level_name="error")

        assert logging.getLogger().level == logging.ERROR
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING

    def test_json_file_output(self, tmp_path):
        log_file = tmp_path / "twoauth.log"
        setup_logging(json_logs=True, log_level_name="INFO", log_file=str(log_file))

        get_logger("twoauth.test").info("token_store_write", key="myapp_request_token")
        for handler in logging.getLogger().handlers:
            handler.flush()

        event = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert event["event"] == "token_store_write"
        assert event["key"] == "myapp_request_token"
        assert event["level"] == "info"
        assert event["logger"] == "twoauth.test"
        assert "timestamp" in event

    def test_events_below_level_are_dropped(self, tmp_path):
        log_file = tmp_path / "twoauth.log"
        setup_logging(log_level_name="WARNING", log_file=str(log_file))

        get_logger("twoauth.test").debug("request_signed")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "request_signed" not in log_file.read_text()


UNCONFIGURED_FLOW_SCRIPT = textwrap.dedent(
    """
    import sys

    import httpx

    from twoauth import ConsumerCredentials, FileTokenStore, OAuthFlow


    def provider(request):
        return httpx.Response(
            200,
            text="oauth_token=rt&oauth_token_secret=rs&oauth_callback_confirmed=true",
        )


    with httpx.Client(transport=httpx.MockTransport(provider)) as client:
        flow = OAuthFlow(
            ConsumerCredentials(key="ck", secret="cs"),
            FileTokenStore(sys.argv[1]),
            client,
        )
        url = flow.start_authorization("myapp")
    assert url.endswith("oauth_token=rt"), url
    """
)


@pytest.mark.unit
class TestUnconfiguredLogging:
    """Library use without setup_logging stays silent."""

    def test_get_logger_wraps_stdlib_logger(self):
        logger = get_logger("twoauth.test")
        assert isinstance(logger.bind(), structlog.stdlib.BoundLogger)

    def test_package_logger_has_null_handler(self):
        handlers = logging.getLogger("twoauth").handlers
        assert any(isinstance(h, logging.NullHandler) for h in handlers)

    def test_flow_writes_nothing_to_stdout(self, tmp_path):
        result = subprocess.run(
            [sys.executable, "-c", UNCONFIGURED_FLOW_SCRIPT, str(tmp_path / "tokens")],
            capture_output=True,
            text=True,
            env=os.environ.copy(),
            timeout=60,
        )

        assert result.returncode == 0, result.stderr
        assert result.stdout == ""
        assert "request_token_obtained" not in result.stderr
        assert (tmp_path / "tokens" / "myapp_request_token").read_text() == "rt"
