from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

REPO_ROOT = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    """
    Process configuration, read from `APP_*` environment variables.

    Defaults point at a local SQLite file and a local auth service, so the API
    starts (and seeds demo tenants) without any hosted project.
    """

    model_config = SettingsConfigDict(env_prefix="APP_", extra="ignore")

    db_url: str | None = None
    security_config_path: str | None = None
    log_level: str = "INFO"
    seed_demo_data: bool = True
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Hosted auth service (GoTrue-compatible).
    auth_url: str = "http://localhost:54321"
    auth_anon_key: str = ""
    auth_service_role_key: str = ""
    auth_request_timeout_seconds: float = 10.0

    # Session tokens issued by the hosted auth service.
    jwt_secret: str = "super-secret-jwt-token-with-at-least-32-characters"
    jwt_audience: str = "authenticated"
    jwt_leeway_seconds: int = 60

    # Client library: where the hrdesk API lives, and how long to wait for a profile.
    api_base_url: str = "http://localhost:8000"
    profile_lookup_timeout_seconds: float = 5.0

    def resolved_db_url(self) -> str:
        return self.db_url or f"sqlite:///{REPO_ROOT / 'hrdesk.db'}"

    def resolved_security_config_path(self) -> Path:
        if self.security_config_path is None:
            return REPO_ROOT / "config" / "security_config.yaml"
        return Path(self.security_config_path)


@lru_cache
def get_settings() -> Settings:
    return Settings()
