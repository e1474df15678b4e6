"""Shared test fixtures.

Settings are read at import time and JWT_SECRET / PAYSTACK_SECRET_KEY have no
defaults, so test values are set before anything imports src.main.
"""

import os

os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("PAYSTACK_SECRET_KEY", "sk_test_webhook_secret")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.main import app  # noqa: E402


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
