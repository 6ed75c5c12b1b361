"""
Configuration management for Cerebro.

Uses XDG base directories:
- Config: ~/.config/cerebro/config.toml
- Data: ~/cerebro/ (database lives here)
"""

import logging
import os
from pathlib import Path
from typing import Any

from cerebro.models import Session

# XDG defaults
DEFAULT_CONFIG_HOME = Path.home() / ".config"
DEFAULT_DATA_HOME = Path.home() / "cerebro"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Environment variables that override config.toml, keyed by (section, key)
ENV_OVERRIDES = {
    ("session", "user_id"): "CEREBRO_USER_ID",
    ("session", "access_token"): "CEREBRO_ACCESS_TOKEN",
    ("classifier", "functions_url"): "CEREBRO_FUNCTIONS_URL",
    ("classifier", "anon_key"): "CEREBRO_ANON_KEY",
    ("llm", "gemini_api_key"): "GEMINI_API_KEY",
    ("llm", "anthropic_api_key"): "ANTHROPIC_API_KEY",
    ("llm", "openai_api_key"): "OPENAI_API_KEY",
    ("telegram", "token"): "CEREBRO_TELEGRAM_TOKEN",
    ("logging", "level"): "CEREBRO_LOG_LEVEL",
}


def get_config_dir() -> Path:
    """Get the config directory (XDG_CONFIG_HOME/cerebro)."""
    base = Path(os.environ.get("XDG_CONFIG_HOME", DEFAULT_CONFIG_HOME))
    return base / "cerebro"


def get_cerebro_home() -> Path:
    """Get the cerebro data directory (~/cerebro or CEREBRO_HOME)."""
    if env_home := os.environ.get("CEREBRO_HOME"):
        return Path(env_home)
    return DEFAULT_DATA_HOME


def get_config_path() -> Path:
    """Get the path to config.toml."""
    return get_config_dir() / "config.toml"


def get_db_path() -> Path:
    """Get the path to cerebro.db."""
    return get_cerebro_home() / "cerebro.db"


def ensure_dirs() -> None:
    """Ensure all required directories exist."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_cerebro_home().mkdir(parents=True, exist_ok=True)


def load_config() -> dict[str, Any]:
    """
    Load configuration from config.toml, layered over the defaults.

    Environment variables win over both.
    """
    config = get_default_config()
    config_path = get_config_path()

    if config_path.exists():
        # Lazy import tomli only when needed
        import tomli

        with open(config_path, "rb") as f:
            for section, values in tomli.load(f).items():
                if isinstance(values, dict):
                    config.setdefault(section, {}).update(values)
                else:
                    config[section] = values

    for (section, key), env_var in ENV_OVERRIDES.items():
        if value := os.environ.get(env_var):
            config.setdefault(section, {})[key] = value

    return config


def get_default_config() -> dict[str, Any]:
    """Return default configuration."""
    return {
        "cerebro": {
            "home": str(get_cerebro_home()),
        },
        "session": {
            "user_id": None,
            "access_token": None,
        },
        "classifier": {
            "functions_url": None,
            "function_name": "classify-entry",
            "anon_key": None,
            "timeout": 30.0,
        },
        "llm": {
            "provider": "gemini",  # or "anthropic", "openai"
            "model": None,  # provider default
        },
        "telegram": {},
        "logging": {
            "level": None,  # caller default, WARNING if none
        },
    }


def load_session(config: dict[str, Any]) -> Session | None:
    """Build the authenticated session from config, or None if signed out."""
    session_config = config.get("session", {})
    user_id = session_config.get("user_id")
    if not user_id:
        return None
    return Session(
        user_id=str(user_id),
        access_token=session_config.get("access_token"),
    )


def setup_logging(config: dict[str, Any], default_level: str | None = None) -> None:
    """Configure root logging from the [logging] section."""
    level_name = config.get("logging", {}).get("level") or default_level or "WARNING"
    logging.basicConfig(
        format=LOG_FORMAT,
        level=getattr(logging, str(level_name).upper(), logging.WARNING),
    )


def parse_authorized_users(telegram_config: dict[str, Any]) -> set[int]:
    """Telegram user IDs allowed to use the bot (config list or CEREBRO_TELEGRAM_USERS)."""
    authorized = telegram_config.get("authorized_users", [])
    if not authorized:
        env_users = os.environ.get("CEREBRO_TELEGRAM_USERS", "")
        authorized = [uid.strip() for uid in env_users.split(",") if uid.strip()]
    return {int(uid) for uid in authorized}
