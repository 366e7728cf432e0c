# ─────────────────────────────────────────────────────────────────────────────
# Tests - Settings, logging redaction, app factory wiring
# ─────────────────────────────────────────────────────────────────────────────

import pytest

from editgate.config import Settings, get_settings
from editgate.logging_config import redact_sensitive
from editgate.main import _parse_origins, create_app


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("REPLICATE_API_TOKEN", "r8_env")
        monkeypatch.setenv("USER_NAME", "ops")
        monkeypatch.setenv("PASSWORD", "pw")
        monkeypatch.setenv("RATE_LIMIT_REQUESTS", "25")
        monkeypatch.setenv("RATE_LIMIT_WINDOW_MS", "1500")
        monkeypatch.setenv("MAX_FILE_SIZE_MB", "4")
        monkeypatch.setenv("IMAGE_INPUT_MODE", "file_upload")

        settings = Settings(_env_file=None)

        assert settings.provider_configured is True
        assert settings.auth_configured is True
        assert settings.rate_limit_requests == 25
        assert settings.rate_limit_window_seconds == 1.5
        assert settings.max_file_size_bytes == 4 * 1024 * 1024
        assert settings.image_input_mode == "file_upload"

    def test_defaults_fail_closed(self, monkeypatch):
        for var in ("REPLICATE_API_TOKEN", "USER_NAME", "PASSWORD"):
            monkeypatch.delenv(var, raising=False)
        settings = Settings(_env_file=None)
        assert settings.provider_configured is False
        assert settings.auth_configured is False
        assert settings.default_model == "qwen/qwen-image-edit"
        assert settings.generation_timeout_seconds == 60.0

    def test_secrets_hidden_from_repr(self):
        settings = Settings(_env_file=None, replicate_api_token="r8_secret", password="hunter2")
        assert "r8_secret" not in repr(settings)
        assert "hunter2" not in repr(settings)

    def test_rejects_unknown_input_mode(self):
        with pytest.raises(ValueError):
            Settings(_env_file=None, image_input_mode="carrier_pigeon")


class TestRedaction:
    def test_sensitive_keys_replaced(self):
        event = {"event": "x", "authorization": "Basic abc", "image": b"\xff", "user": "ops"}
        assert redact_sensitive(None, "info", event) == {
            "event": "x",
            "authorization": "[redacted]",
            "image": "[redacted]",
            "user": "ops",
        }


class TestAppFactory:
    def test_parse_origins(self):
        assert _parse_origins("") == []
        assert _parse_origins("https://a.example, https://b.example,") == [
            "https://a.example",
            "https://b.example",
        ]

    def test_debug_routes_mounted_only_when_enabled(self, monkeypatch):
        monkeypatch.setenv("LOG_JSON", "false")
        monkeypatch.setenv("ENABLE_DEBUG_ROUTES", "false")
        paths = create_app().openapi()["paths"]
        assert "/api/generate" in paths
        assert "/api/auth/check" in paths
        assert "/debug/status" not in paths

        get_settings.cache_clear()
        monkeypatch.setenv("ENABLE_DEBUG_ROUTES", "true")
        paths = create_app().openapi()["paths"]
        assert "/debug/status" in paths
        assert "/debug/provider" in paths
