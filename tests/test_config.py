"""Tests for configuration loading."""

import logging
from unittest.mock import patch

from cerebro.config import (
    get_config_path,
    get_db_path,
    load_config,
    load_session,
    parse_authorized_users,
    setup_logging,
)


class TestPaths:
    """XDG and CEREBRO_HOME handling."""

    def test_paths_follow_environment(self, tmp_path):
        assert get_config_path() == tmp_path / "config" / "cerebro" / "config.toml"
        assert get_db_path() == tmp_path / "home" / "cerebro.db"


class TestLoadConfig:
    """Defaults, file and environment layering."""

    def test_defaults(self):
        config = load_config()

        assert config["classifier"]["function_name"] == "classify-entry"
        assert config["classifier"]["timeout"] == 30.0
        assert config["llm"]["provider"] == "gemini"
        assert config["session"]["user_id"] is None

    def test_file_overrides_defaults(self):
        path = get_config_path()
        path.parent.mkdir(parents=True)
        path.write_text(
            '[classifier]\n'
            'functions_url = "https://project.example.co"\n'
            'timeout = 10.0\n'
            '\n'
            '[session]\n'
            'user_id = "from-file"\n'
        )

        config = load_config()

        assert config["classifier"]["functions_url"] == "https://project.example.co"
        assert config["classifier"]["timeout"] == 10.0
        assert config["classifier"]["function_name"] == "classify-entry"
        assert config["session"]["user_id"] == "from-file"

    def test_environment_wins(self, monkeypatch):
        path = get_config_path()
        path.parent.mkdir(parents=True)
        path.write_text('[session]\nuser_id = "from-file"\n')
        monkeypatch.setenv("CEREBRO_USER_ID", "from-env")
        monkeypatch.setenv("CEREBRO_ANON_KEY", "anon")

        config = load_config()

        assert config["session"]["user_id"] == "from-env"
        assert config["classifier"]["anon_key"] == "anon"


class TestSession:
    """Session from config."""

    def test_signed_out(self):
        assert load_session(load_config()) is None

    def test_signed_in(self, monkeypatch):
        monkeypatch.setenv("CEREBRO_USER_ID", "user-1")
        monkeypatch.setenv("CEREBRO_ACCESS_TOKEN", "token")

        session = load_session(load_config())

        assert session.user_id == "user-1"
        assert session.access_token == "token"


class TestAuthorizedUsers:
    """Telegram allow-list."""

    def test_from_config(self):
        assert parse_authorized_users({"authorized_users": [1, "2"]}) == {1, 2}

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("CEREBRO_TELEGRAM_USERS", "10, 20,")

        assert parse_authorized_users({}) == {10, 20}

    def test_none(self):
        assert parse_authorized_users({}) == set()


class TestSetupLogging:
    """Log level resolution."""

    def test_caller_default_applies(self):
        with patch("cerebro.config.logging.basicConfig") as basic_config:
            setup_logging(load_config(), default_level="INFO")

        assert basic_config.call_args.kwargs["level"] == logging.INFO

    def test_warning_without_defaults(self):
        with patch("cerebro.config.logging.basicConfig") as basic_config:
            setup_logging(load_config())

        assert basic_config.call_args.kwargs["level"] == logging.WARNING

    def test_configured_level_wins(self, monkeypatch):
        monkeypatch.setenv("CEREBRO_LOG_LEVEL", "debug")

        with patch("cerebro.config.logging.basicConfig") as basic_config:
            setup_logging(load_config(), default_level="INFO")

        assert basic_config.call_args.kwargs["level"] == logging.DEBUG
