# ─────────────────────────────────────────────────────────────────────────────
# Settings - Pydantic v2 BaseSettings
# ─────────────────────────────────────────────────────────────────────────────


from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Server configuration sourced from environment variables.

    Uses pydantic-settings v2 (separate package from pydantic).
    """

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    # ── Provider ─────────────────────────────────────────────────────────────
    # SecretStr keeps the token out of logs, repr(), and model_dump().
    # Empty string = provider not configured; /api/generate answers 503.
    replicate_api_token: SecretStr = SecretStr("")
    replicate_api_base: str = "https://api.replicate.com/v1"
    default_model: str = "qwen/qwen-image-edit"
    # "data_url" inlines the image as base64; "file_upload" sends raw bytes
    # to the provider's file store and passes the returned URL.
    image_input_mode: Literal["data_url", "file_upload"] = "data_url"
    provider_http_timeout_seconds: float = 30.0

    # ── Security ─────────────────────────────────────────────────────────────
    # Expected Basic-auth credentials. Either one empty = every request 401.
    user_name: str = ""
    password: SecretStr = SecretStr("")
    auth_realm: str = "API Access"

    # Comma-separated origins for CORS. Empty string = deny all cross-origin requests.
    allowed_origins: str = ""

    # ── Rate limiting (fixed window, per client) ─────────────────────────────
    rate_limit_requests: int = Field(10, ge=1)
    rate_limit_window_ms: int = Field(60_000, ge=1)
    rate_limit_max_clients: int = Field(10_000, ge=1)
    # Only enable behind exactly one trusted proxy: the limiter then keys on
    # the right-most X-Forwarded-For hop, the one that proxy appended.
    trust_forwarded_for: bool = False

    # ── Limits ───────────────────────────────────────────────────────────────
    max_file_size_mb: int = Field(10, ge=1)
    max_prompt_length: int = Field(1000, ge=1)
    generation_timeout_seconds: float = Field(60.0, gt=0)
    poll_interval_seconds: float = Field(1.0, gt=0)

    # ── Feature flags ────────────────────────────────────────────────────────
    enable_debug_routes: bool = False

    # ── Logging ──────────────────────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool = True

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024

    @property
    def rate_limit_window_seconds(self) -> float:
        return self.rate_limit_window_ms / 1000

    @property
    def provider_configured(self) -> bool:
        return bool(self.replicate_api_token.get_secret_value())

    @property
    def auth_configured(self) -> bool:
        return bool(self.user_name and self.password.get_secret_value())


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
