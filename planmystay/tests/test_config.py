"""
test_config.py — settings loading and the production fail-fast rule.
"""
import pytest
from pydantic import ValidationError

from planmystay.config import Settings, load_settings


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ("NODE_ENV", "DATABASE_URL", "ATLAS_URI", "SECRET", "PORT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_development_uses_named_fallbacks(clean_env) -> None:
    settings = load_settings()
    assert not settings.is_production
    assert settings.database_url == settings.dev_database_url
    assert settings.secret == settings.dev_secret
    assert settings.port == 3000


def test_production_without_secret_refuses_to_start(clean_env, monkeypatch) -> None:
    monkeypatch.setenv("NODE_ENV", "production")
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@db/planmystay")
    with pytest.raises(ValidationError, match="SECRET"):
        load_settings()


def test_production_without_database_url_refuses_to_start(clean_env, monkeypatch) -> None:
    monkeypatch.setenv("NODE_ENV", "production")
    monkeypatch.setenv("SECRET", "prod-secret")
    with pytest.raises(ValidationError, match="DATABASE_URL"):
        load_settings()


def test_atlas_uri_is_accepted_as_database_url(clean_env, monkeypatch) -> None:
    monkeypatch.setenv("NODE_ENV", "production")
    monkeypatch.setenv("ATLAS_URI", "postgresql+asyncpg://u:p@atlas/planmystay")
    monkeypatch.setenv("SECRET", "prod-secret")
    monkeypatch.setenv("PORT", "10000")
    settings = load_settings()
    assert settings.is_production
    assert settings.database_url == "postgresql+asyncpg://u:p@atlas/planmystay"
    assert settings.secret == "prod-secret"
    assert settings.port == 10000


def test_env_file_supplements_outside_production(clean_env) -> None:
    (clean_env / ".env").write_text("SECRET=from-dotenv\n", encoding="utf-8")
    assert load_settings().secret == "from-dotenv"


def test_env_file_ignored_in_production(clean_env, monkeypatch) -> None:
    (clean_env / ".env").write_text("SECRET=from-dotenv\n", encoding="utf-8")
    monkeypatch.setenv("NODE_ENV", "production")
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@db/planmystay")
    with pytest.raises(ValidationError):
        load_settings()


def test_explicit_overrides_win(clean_env) -> None:
    settings = Settings(_env_file=None, secret="override", database_url="sqlite+aiosqlite://")
    assert settings.secret == "override"
    assert settings.database_url == "sqlite+aiosqlite://"


def test_session_store_must_outlive_touch_window(clean_env) -> None:
    with pytest.raises(ValidationError, match="session_store_ttl"):
        Settings(_env_file=None, session_store_ttl=3600, session_touch_after=86400)
