"""Integration test fixtures.

Provides a real CatalogDB against the MongoDB server named by
``MONGODB_TEST_URI``, using a throwaway database per test. Tests are
skipped when the variable is unset.
"""

import os
import uuid

import pytest
import pytest_asyncio

from catalog.db import CatalogDB
from config.settings import Settings
from core.ratelimit import reset_rate_limiting

MONGODB_TEST_URI = os.environ.get("MONGODB_TEST_URI")

requires_mongodb = pytest.mark.skipif(
    not MONGODB_TEST_URI, reason="MONGODB_TEST_URI not set"
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def catalog_db():
    """Real CatalogDB on a fresh database, dropped afterwards."""
    db = CatalogDB(MONGODB_TEST_URI, f"excess_music_test_{uuid.uuid4().hex[:12]}", timeout_ms=3000)
    await db.connect()
    await db.ensure_indexes()

    yield db

    await db._client.drop_database(db.db_name)
    await db.close()


@pytest.fixture
def test_settings(tmp_path):
    """Development settings with no mail, telemetry or signing secret."""
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


@pytest_asyncio.fixture
async def app_client(catalog_db, test_settings):
    """httpx AsyncClient with the real store but no PostHog or mail."""
    from httpx import ASGITransport, AsyncClient

    from config.settings import get_settings
    from core.dependencies import get_catalog_db, get_mailer, get_posthog_client
    from main import app

    app.dependency_overrides[get_catalog_db] = lambda: catalog_db
    app.dependency_overrides[get_posthog_client] = lambda: None
    app.dependency_overrides[get_mailer] = lambda: None
    app.dependency_overrides[get_settings] = lambda: test_settings

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()
    reset_rate_limiting()
