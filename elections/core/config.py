"""Configuration management for the election platform."""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    app_name: str = Field(default="Election Platform")
    version: str = Field(default="0.1.0")
    docs_url: str | None = Field(default="/docs")
    redoc_url: str | None = Field(default="/redoc")
    openapi_url: str = Field(default="/openapi.json")
    environment: Literal["development", "test", "production"] = Field(default="development")

    database_url: str = Field(default="sqlite+pysqlite:///./elections.db")

    jwt_secret: str = Field(default="dev-election-secret-change-me")
    jwt_algorithm: str = Field(default="HS256")
    admin_token_expire_hours: int = Field(default=24)
    admin_max_failed_attempts: int = Field(default=5)
    admin_lockout_minutes: int = Field(default=30)
    seed_admin_email: str = Field(default="admin@unb.ca")
    seed_admin_password: str = Field(default="changeme")

    otp_ttl_minutes: int = Field(default=30)
    otp_max_attempts: int = Field(default=5)
    nomination_session_minutes: int = Field(default=30)
    withdrawal_session_minutes: int = Field(default=30)
    voting_session_minutes: int = Field(default=60)
    allowed_email_domain: str = Field(default="unb.ca")

    cookie_domain: str | None = Field(default=None)
    cookie_secure: bool = Field(default=False)
    frontend_url: str = Field(default="http://localhost:3000")

    email_backend: Literal["smtp", "memory"] = Field(default="smtp")
    smtp_host: str = Field(default="localhost")
    smtp_port: int = Field(default=587)
    smtp_user: str | None = Field(default=None)
    smtp_password: str | None = Field(default=None)
    smtp_from: str = Field(default="noreply@unb.ca")
    smtp_timeout_seconds: float = Field(default=10.0)

    rate_limit_max_requests: int = Field(default=10)
    rate_limit_window_seconds: int = Field(default=15 * 60)
    trust_forwarded_headers: bool = Field(default=False)

    geoip_url: str | None = Field(default=None)
    geoip_timeout_seconds: float = Field(default=2.0)

    enable_metrics: bool = Field(default=True)
    enable_tracing: bool = Field(default=False)
    enable_audit_log: bool = Field(default=True)
    otel_exporter_endpoint: str | None = Field(default=None)


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


__all__ = ["Settings", "get_settings"]
