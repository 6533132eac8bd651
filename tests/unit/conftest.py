"""Unit test fixtures."""

from contextlib import contextmanager
from unittest.mock import Mock

import pytest

from config.settings import Settings
from core.ratelimit import reset_rate_limiting


@contextmanager
def override_deps(app, overrides):
    """Set FastAPI dependency overrides and clear them on exit.

    Args:
        app: The FastAPI application.
        overrides: A dict mapping dependency functions to their replacement values.
    """

    def _make_override(val):
        return lambda: val

    for dep_fn, provider in overrides.items():
        app.dependency_overrides[dep_fn] = _make_override(provider)
    try:
        yield app
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def mock_settings(monkeypatch, tmp_path):
    """Settings with safe test defaults (no real secrets/DSNs, uploads in tmp_path)."""
    monkeypatch.setenv("SENTRY_DSN", "")
    monkeypatch.setenv("POSTHOG_API_KEY", "")
    monkeypatch.setenv("ENABLE_TELEMETRY", "false")
    monkeypatch.setenv("EMAIL_USER", "")
    monkeypatch.setenv("EMAIL_PASS", "")
    return Settings(
        environment="development",
        jwt_secret=None,
        sentry_dsn=None,
        posthog_api_key=None,
        enable_telemetry=False,
        email_user=None,
        email_pass=None,
        upload_dir=tmp_path / "uploads",
    )


@pytest.fixture
def production_settings(tmp_path):
    """Production settings with a signing secret configured."""
    return Settings(
        environment="production",
        jwt_secret="test-secret",
        admin_username="admin",
        admin_password="s3cret",
        sentry_dsn=None,
        posthog_api_key=None,
        enable_telemetry=False,
        email_user=None,
        email_pass=None,
        upload_dir=tmp_path / "uploads",
    )


@pytest.fixture
def mock_posthog_client():
    """Mock PostHog client."""
    client = Mock()
    client.capture = Mock()
    client.flush = Mock()
    client.shutdown = Mock()
    return client


@pytest.fixture(autouse=True)
def reset_limits():
    """Clear rate limiting state between tests."""
    yield
    reset_rate_limiting()
