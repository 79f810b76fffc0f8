"""
═══════════════════════════════════════════════════════════════════════════════
Vrai — Service configuration (Application Configuration)
═══════════════════════════════════════════════════════════════════════════════

VraiSettings holds everything the service reads from the environment:
    • Remote Data Service (hosted database, auth, storage, functions)
    • API server (host, port, CORS)
    • Token signing for the in-memory backend
    • Upload limits and storage bucket names
    • Report generation and dashboard options
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Annotated, List

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class VraiSettings(BaseSettings):
    """
    Settings of the Vrai service.

    All values come from environment variables or a ``.env`` file. No prefix
    is used so the variable names match the ones the hosted platform already
    documents (SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY and so on).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── Runtime environment ──────────────────────────────────────────────
    app_env: str = Field(
        default="development",
        description="Application environment: development | staging | production",
    )

    # ── Remote Data Service ──────────────────────────────────────────────
    supabase_url: str = Field(default="", description="Base URL of the hosted platform")
    supabase_service_role_key: str = Field(default="", description="Service role key (bypasses RLS)")
    supabase_anon_key: str = Field(default="", description="Public anon key used for auth endpoints")
    remote_timeout_seconds: float = Field(default=30.0, gt=0)
    use_memory_store: bool = Field(
        default=False,
        description="Force the in-memory backend even when remote credentials are set",
    )

    # ── API server ───────────────────────────────────────────────────────
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=3000, ge=1, le=65535)
    log_level: str = Field(default="INFO")
    cors_origins: Annotated[List[str], NoDecode] = Field(default=["*"])

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors(cls, v: str | List[str]) -> List[str]:
        """Parses CORS_ORIGINS from a JSON string or a bare ``*``."""
        if isinstance(v, str):
            if v.strip() == "*":
                return ["*"]
            return json.loads(v)
        return v

    # ── Token signing (in-memory backend) ────────────────────────────────
    jwt_secret_key: str = Field(default="CHANGE_ME_IN_PRODUCTION")
    jwt_algorithm: str = Field(default="HS256")
    jwt_access_token_expire_minutes: int = Field(default=60)

    # ── Upload limits ────────────────────────────────────────────────────
    max_file_size: int = Field(default=10 * 1024 * 1024, description="Generic upload size limit (bytes)")
    max_files_per_upload: int = Field(default=5, ge=1)
    auth_photo_max_size: int = Field(default=20 * 1024 * 1024, description="Wizard photo size limit (bytes)")
    auth_photo_max_files: int = Field(default=10, ge=1)

    # ── Storage buckets ──────────────────────────────────────────────────
    photos_bucket: str = Field(default="auth-photos")
    reports_bucket: str = Field(default="reports")
    avatars_bucket: str = Field(default="avatars")

    # ── Report generation ────────────────────────────────────────────────
    report_function_name: str = Field(default="generate-pdf-report")
    report_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Client-side abort timer for the PDF generation call",
    )

    # ── Admin dashboard ──────────────────────────────────────────────────
    dashboard_timezone: str = Field(
        default="",
        description="IANA zone for the 'processed today' window; empty = server local time",
    )
    recent_activity_limit: int = Field(default=5, ge=1)

    @property
    def has_remote_credentials(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role_key)

    # ── Production safety checks ─────────────────────────────────────────
    @model_validator(mode="after")
    def _validate_remote_credentials(self) -> "VraiSettings":
        """
        Production must talk to the hosted platform.

        Exception: an explicit USE_MEMORY_STORE=true (demo deployments).
        """
        if self.app_env == "production" and not self.use_memory_store:
            if not self.has_remote_credentials:
                raise ValueError(
                    "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set for production "
                    "(or set USE_MEMORY_STORE=true for a demo deployment)."
                )
        return self


@lru_cache
def get_settings() -> VraiSettings:
    """Returns the single VraiSettings instance (created on first call)."""
    return VraiSettings()


__all__ = ["VraiSettings", "get_settings"]
