# ─────────────────────────────────────────────────────────────────────────────
# Test Fixtures - shared across all tests
# ─────────────────────────────────────────────────────────────────────────────

import os
from collections.abc import Callable
from typing import Any

import pytest
from fastapi.testclient import TestClient

from editgate.auth import BasicAuthenticator
from editgate.config import Settings
from editgate.main import create_app
from editgate.rate_limit import FixedWindowRateLimiter
from editgate.services.metrics import EditMetrics
from editgate.services.orchestrator import EditOrchestrator
from support import TEST_PASSWORD, TEST_USER, FakeProvider


@pytest.fixture
def test_settings() -> Settings:
    """Settings configured for testing - fast polling, short timeout, no JSON logs."""
    return Settings(
        replicate_api_token="test-token",
        user_name=TEST_USER,
        password=TEST_PASSWORD,
        poll_interval_seconds=0.01,
        generation_timeout_seconds=1.0,
        rate_limit_requests=10,
        enable_debug_routes=True,
        log_json=False,
        log_level="DEBUG",
    )


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider.succeeding(["https://cdn.example.com/x.webp"])


@pytest.fixture
def make_client() -> Callable[..., TestClient]:
    """Build a TestClient whose app.state holds the given settings and provider.

    The lifespan never runs (no ``with`` block), so state is attached here
    the same way the lifespan would attach it.
    """
    from editgate.config import get_settings

    def _make(settings: Settings, provider: Any) -> TestClient:
        get_settings.cache_clear()
        env_overrides = {
            "LOG_JSON": "false",
            "LOG_LEVEL": "DEBUG",
            "ENABLE_DEBUG_ROUTES": "true" if settings.enable_debug_routes else "false",
            "ALLOWED_ORIGINS": "*",
        }
        for k, v in env_overrides.items():
            os.environ[k] = v
        try:
            app = create_app()
        finally:
            for k in env_overrides:
                os.environ.pop(k, None)
            get_settings.cache_clear()

        authenticator = BasicAuthenticator(
            settings.user_name, settings.password.get_secret_value(), realm=settings.auth_realm
        )
        rate_limiter = FixedWindowRateLimiter(
            limit=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
        metrics = EditMetrics()
        app.state.settings = settings
        app.state.provider = provider
        app.state.authenticator = authenticator
        app.state.rate_limiter = rate_limiter
        app.state.metrics = metrics
        app.state.orchestrator = EditOrchestrator(
            settings, authenticator, rate_limiter, provider, metrics=metrics
        )
        return TestClient(app)

    return _make


@pytest.fixture
def client(
    make_client: Callable[..., TestClient], test_settings: Settings, fake_provider: FakeProvider
) -> TestClient:
    """FastAPI TestClient with a scripted provider that succeeds after one poll."""
    return make_client(test_settings, fake_provider)
