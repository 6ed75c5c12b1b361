"""Shared test fixtures for Cerebro."""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from cerebro.classifier import ClassifierOutcome  # noqa: E402
from cerebro.config import ENV_OVERRIDES  # noqa: E402
from cerebro.db import Database  # noqa: E402
from cerebro.models import ClassificationResult, Session  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point config and data dirs at tmp and clear credentials from the environment."""
    monkeypatch.setenv("CEREBRO_HOME", str(tmp_path / "home"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("NO_COLOR", "1")
    for env_var in list(ENV_OVERRIDES.values()) + ["CEREBRO_TELEGRAM_USERS"]:
        monkeypatch.delenv(env_var, raising=False)


@pytest.fixture
def db(tmp_path):
    """Fresh database with seeded categories."""
    return Database(tmp_path / "cerebro.db")


@pytest.fixture
def session():
    """A signed-in user."""
    return Session(user_id="user-1", access_token="session-token")


@pytest.fixture
def classifier_config():
    """Classifier settings pointing at a fake project."""
    return {
        "classifier": {
            "functions_url": "https://project.example.co",
            "function_name": "classify-entry",
            "anon_key": "anon-key",
            "timeout": 5.0,
        },
    }


@pytest.fixture
def fake_classifier():
    """Factory for a classifier stub returning a fixed outcome."""

    def _make(result=None, error="Connection refused"):
        if isinstance(result, dict):
            result = ClassificationResult.model_validate(result)
        classifier = MagicMock()
        classifier.invoke.return_value = ClassifierOutcome(
            result=result,
            transport="managed" if result else "unavailable",
            error=None if result else error,
            processing_time_ms=12,
        )
        return classifier

    return _make
