from pathlib import Path

import pytest

from twoauth.config.settings import ConfigurationError, Settings


@pytest.mark.unit
def test_defaults(tmp_path):
    settings = Settings.from_config()
    assert settings.oauth.consumer_key == ""
    assert settings.oauth.callback == "oob"
    assert settings.oauth.tokens_dir == tmp_path / "xdg-data" / "twoauth" / "tokens"
    assert settings.api.timeout == 30.0
    assert settings.logging.level == "WARNING"


@pytest.mark.unit
def test_toml_values(tmp_path):
    cfg = tmp_path / "config.toml"
    cfg.write_text(
        """
    [oauth]
    consumer_key = "ck"
    consumer_secret = "cs"
    tokens_dir = "/var/lib/twoauth"

    [api]
    timeout = 5
    """,
        encoding="utf-8",
    )

    settings = Settings.from_config(config_path=cfg)
    assert settings.oauth.tokens_dir == Path("/var/lib/twoauth")
    assert settings.api.timeout == 5.0

    credentials = settings.consumer_credentials()
    assert credentials.key == "ck"
    assert credentials.secret == "cs"


@pytest.mark.unit
def test_env_overrides_toml(tmp_path, monkeypatch):
    cfg = tmp_path / "config.toml"
    cfg.write_text(
        """
    [oauth]
    consumer_key = "from-toml"
    consumer_secret = "toml-secret"
    """,
        encoding="utf-8",
    )

    monkeypatch.setenv("TWOAUTH_OAUTH__CONSUMER_KEY", "from-env")

    settings = Settings.from_config(config_path=cfg)
    assert settings.oauth.consumer_key == "from-env"  # env > toml
    assert settings.oauth.consumer_secret.get_secret_value() == "toml-secret"


@pytest.mark.unit
def test_lower_case_env_overrides_toml(tmp_path, monkeypatch):
    cfg = tmp_path / "config.toml"
    cfg.write_text(
        """
    [oauth]
    consumer_key = "from-toml"
    """,
        encoding="utf-8",
    )

    monkeypatch.setenv("twoauth_oauth__consumer_key", "from-env")

    settings = Settings.from_config(config_path=cfg)
    assert settings.oauth.consumer_key == "from-env"


@pytest.mark.unit
def test_cli_overrides_env(monkeypatch):
    # env sets INFO, CLI sets DEBUG
    monkeypatch.setenv("TWOAUTH_LOGGING__LEVEL", "INFO")

    settings = Settings.from_config(config_path=None, logging={"level": "DEBUG"})
    assert settings.logging.level == "DEBUG"  # cli > env


@pytest.mark.unit
def test_cli_overrides_toml(tmp_path):
    cfg = tmp_path / "config.toml"
    cfg.write_text(
        """
    [oauth]
    tokens_dir = "/from/toml"
    """,
        encoding="utf-8",
    )

    settings = Settings.from_config(
        config_path=cfg, oauth={"tokens_dir": tmp_path / "cli"}
    )
    assert settings.oauth.tokens_dir == tmp_path / "cli"  # cli > toml


@pytest.mark.unit
def test_none_overrides_are_ignored(monkeypatch):
    monkeypatch.setenv("TWOAUTH_LOGGING__LEVEL", "ERROR")

    settings = Settings.from_config(logging={"level": None})
    assert settings.logging.level == "ERROR"


@pytest.mark.unit
def test_config_file_from_env(tmp_path, monkeypatch):
    cfg = tmp_path / "elsewhere.toml"
    cfg.write_text('[oauth]\nconsumer_key = "env-file"\n', encoding="utf-8")
    monkeypatch.setenv("TWOAUTH_CONFIG_FILE", str(cfg))

    assert Settings.from_config().oauth.consumer_key == "env-file"


@pytest.mark.unit
def test_local_config_file_is_discovered(tmp_path):
    # the working directory is tmp_path
    (tmp_path / ".twoauth.toml").write_text(
        '[oauth]\nconsumer_key = "local"\n', encoding="utf-8"
    )

    assert Settings.from_config().oauth.consumer_key == "local"


@pytest.mark.unit
def test_xdg_config_file_is_discovered(tmp_path):
    config_dir = tmp_path / "xdg-config" / "twoauth"
    config_dir.mkdir(parents=True)
    (config_dir / "config.toml").write_text(
        '[oauth]\nconsumer_key = "xdg"\n', encoding="utf-8"
    )

    assert Settings.from_config().oauth.consumer_key == "xdg"


@pytest.mark.unit
def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        Settings.from_config(config_path=tmp_path / "absent.toml")


@pytest.mark.unit
def test_invalid_toml(tmp_path):
    cfg = tmp_path / "config.toml"
    cfg.write_text("[oauth\nconsumer_key = ", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Invalid TOML"):
        Settings.from_config(config_path=cfg)


@pytest.mark.unit
@pytest.mark.parametrize(
    "overrides",
    [
        {"logging": {"level": "LOUD"}},
        {"logging": {"format": "xml"}},
        {"api": {"timeout": 0}},
    ],
)
def test_invalid_values(overrides):
    with pytest.raises(ConfigurationError, match="Invalid configuration"):
        Settings.from_config(**overrides)


@pytest.mark.unit
def test_unknown_override_section():
    with pytest.raises(ConfigurationError, match="Unknown settings section"):
        Settings.from_config(server={"port": 1})


@pytest.mark.unit
def test_secret_is_masked():
    settings = Settings.from_config(oauth={"consumer_secret": "hunter2"})
    assert "hunter2" not in repr(settings)
    assert "hunter2" not in repr(settings.consumer_credentials())


@pytest.mark.unit
@pytest.mark.parametrize(
    "fmt, is_tty, expected",
    [
        ("auto", True, False),
        ("auto", False, True),
        ("json", True, True),
        ("rich", False, False),
        ("plain", False, False),
    ],
)
def test_log_format_selection(fmt, is_tty, expected):
    settings = Settings.from_config(logging={"format": fmt})
    assert settings.logging.use_json(is_tty) is expected
