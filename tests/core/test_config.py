from __future__ import annotations

import pytest

from institute.core.config import AppEnv, Settings, load_settings

# ---- valid values ----


def test_load_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "APP_ENV",
        "LOG_LEVEL",
        "ADMIN_EMAIL",
        "STORAGE_BUCKET",
        "SIGNED_URL_TTL_SECONDS",
        "NOTIFICATION_TTL_SECONDS",
        "GEMINI_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    settings = load_settings()
    assert settings.app_env == "dev"
    assert settings.log_level == "info"
    assert settings.admin_email == "admin@inst.example"
    assert settings.storage_bucket == "app-files"
    assert settings.signed_url_ttl_seconds == 86400
    assert settings.notification_ttl_seconds == 6
    assert settings.gemini_api_key is None


def test_load_settings_respects_env_vars(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "prod")
    monkeypatch.setenv("LOG_LEVEL", "error")
    monkeypatch.setenv("STORAGE_BUCKET", "institute-media")
    monkeypatch.setenv("VIDEO_POLL_MAX_ATTEMPTS", "5")
    monkeypatch.setenv("VIDEO_JOB_RETENTION_SECONDS", "120")
    settings = load_settings()
    assert settings.app_env == "prod"
    assert settings.log_level == "error"
    assert settings.storage_bucket == "institute-media"
    assert settings.video_poll_max_attempts == 5
    assert settings.video_job_retention_seconds == 120


def test_load_settings_normalizes_case(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "PROD")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("ADMIN_EMAIL", "  Boss@Inst.Example ")
    settings = load_settings()
    assert settings.app_env == "prod"
    assert settings.log_level == "debug"
    assert settings.admin_email == "boss@inst.example"


def test_blank_optional_urls_mean_not_configured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SUPABASE_URL", "   ")
    monkeypatch.setenv("SUPABASE_KEY", "")
    monkeypatch.setenv("REDIS_URL", "")
    settings = load_settings()
    assert settings.supabase_url is None
    assert settings.redis_url is None
    assert settings.uses_supabase is False


# ---- invalid values ----


def test_load_settings_rejects_invalid_app_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "staging")
    with pytest.raises(ValueError, match="APP_ENV must be dev|test|prod"):
        load_settings()


def test_load_settings_rejects_invalid_log_level(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("APP_ENV", "dev")
    monkeypatch.setenv("LOG_LEVEL", "verbose")
    with pytest.raises(ValueError, match="LOG_LEVEL must be debug|info|warning|error"):
        load_settings()


def test_load_settings_rejects_non_numeric_port(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORT", "eighty")
    with pytest.raises(ValueError, match="PORT must be an integer"):
        load_settings()


@pytest.mark.parametrize("raw", ["soon", "0", "-5"])
def test_load_settings_rejects_bad_ttl(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("SIGNED_URL_TTL_SECONDS", raw)
    with pytest.raises(ValueError, match="SIGNED_URL_TTL_SECONDS"):
        load_settings()


def test_load_settings_rejects_admin_email_without_at(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("ADMIN_EMAIL", "administrator")
    with pytest.raises(ValueError, match="ADMIN_EMAIL"):
        load_settings()


# ---- Settings properties ----


def _make_settings(
    app_env: AppEnv = "dev", supabase_url: str | None = None, supabase_key: str | None = None
) -> Settings:
    return Settings(  # type: ignore[arg-type]
        app_env=app_env,
        log_level="info",
        log_json=False,
        port=8000,
        supabase_url=supabase_url,
        supabase_key=supabase_key,
        storage_bucket="app-files",
        database_url=None,
        redis_url=None,
        admin_email="admin@inst.example",
    )


def test_settings_env_flags() -> None:
    assert _make_settings("dev").is_dev is True
    assert _make_settings("test").is_test is True
    prod = _make_settings("prod")
    assert prod.is_prod is True
    assert prod.is_dev is False


def test_supabase_needs_both_url_and_key() -> None:
    assert _make_settings(supabase_url="https://x.supabase.co").uses_supabase is False
    assert (
        _make_settings(supabase_url="https://x.supabase.co", supabase_key="k").uses_supabase
        is True
    )


def test_settings_is_frozen() -> None:
    s = _make_settings()
    with pytest.raises(AttributeError):
        s.app_env = "prod"  # type: ignore[misc]
