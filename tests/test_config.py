import pytest
from pydantic import ValidationError

from vrai.config import VraiSettings


def test_cors_origins_from_environment(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "*")
    assert VraiSettings(_env_file=None).cors_origins == ["*"]

    monkeypatch.setenv("CORS_ORIGINS", '["https://vrai.example", "http://localhost:5173"]')
    assert VraiSettings(_env_file=None).cors_origins == ["https://vrai.example", "http://localhost:5173"]


def test_production_requires_remote_credentials():
    with pytest.raises(ValidationError, match="SUPABASE_URL"):
        VraiSettings(_env_file=None, app_env="production")

    demo = VraiSettings(_env_file=None, app_env="production", use_memory_store=True)
    assert demo.has_remote_credentials is False

    hosted = VraiSettings(
        _env_file=None,
        app_env="production",
        supabase_url="https://project.supabase.co",
        supabase_service_role_key="service-key",
    )
    assert hosted.has_remote_credentials is True
