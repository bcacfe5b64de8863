"""Shared fixtures for the Concoro notifier test-suite."""

import pytest

from concoro.logging.context import clear_log_context
from concoro.persistence import close_database, init_database


@pytest.fixture
def database():
    """Fresh in-memory SQLite database with the full schema."""
    init_database("sqlite:///:memory:")
    yield
    close_database()


@pytest.fixture(autouse=True)
def clean_log_context():
    """Keep log context fields from leaking between tests."""
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Set a complete, valid environment."""
    env = {
        "BREVO_API_KEY": "xkeysib-test",
        "DATABASE_URL": "sqlite:///:memory:",
        "LOG_LEVEL": "INFO",
        "PROFILE_WEBHOOK_URL": "https://hooks.example.com/profile",
        "ENVIRONMENT": "test",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable the notifier reads."""
    for key in ("BREVO_API_KEY", "DATABASE_URL", "LOG_LEVEL", "PROFILE_WEBHOOK_URL", "ENVIRONMENT"):
        monkeypatch.delenv(key, raising=False)
