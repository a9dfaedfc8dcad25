from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]


def _getenv(name: str, default: str) -> str:
    return os.environ.get(name, default).strip()


def _getint(name: str, default: int) -> int:
    raw = _getenv(name, str(default))
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive (got {value})")
    return value


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    supabase_url: str | None
    supabase_key: str | None
    storage_bucket: str
    database_url: str | None
    redis_url: str | None
    admin_email: str
    signed_url_ttl_seconds: int = 86400
    notification_ttl_seconds: int = 6
    gemini_api_key: str | None = None
    gemini_chat_model: str = "gemini-2.5-flash"
    gemini_video_model: str = "veo-2.0-generate-001"
    video_poll_interval_seconds: int = 10
    video_poll_max_attempts: int = 60
    video_job_timeout_seconds: int = 900
    video_job_retention_seconds: int = 3600

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"

    @property
    def uses_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    port_raw = _getenv("PORT", "8000")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    admin_email = _getenv("ADMIN_EMAIL", "admin@inst.example").lower()
    if "@" not in admin_email:
        raise ValueError(f"ADMIN_EMAIL must be an email address (got {admin_email!r})")

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=_getenv("LOG_JSON", "false").lower() in ("1", "true", "yes"),
        port=port,
        supabase_url=_getenv("SUPABASE_URL", "") or None,
        supabase_key=_getenv("SUPABASE_KEY", "") or None,
        storage_bucket=_getenv("STORAGE_BUCKET", "app-files"),
        database_url=_getenv("DATABASE_URL", "") or None,
        redis_url=_getenv("REDIS_URL", "") or None,
        admin_email=admin_email,
        signed_url_ttl_seconds=_getint("SIGNED_URL_TTL_SECONDS", 86400),
        notification_ttl_seconds=_getint("NOTIFICATION_TTL_SECONDS", 6),
        gemini_api_key=_getenv("GEMINI_API_KEY", "") or None,
        gemini_chat_model=_getenv("GEMINI_CHAT_MODEL", "gemini-2.5-flash"),
        gemini_video_model=_getenv("GEMINI_VIDEO_MODEL", "veo-2.0-generate-001"),
        video_poll_interval_seconds=_getint("VIDEO_POLL_INTERVAL_SECONDS", 10),
        video_poll_max_attempts=_getint("VIDEO_POLL_MAX_ATTEMPTS", 60),
        video_job_timeout_seconds=_getint("VIDEO_JOB_TIMEOUT_SECONDS", 900),
        video_job_retention_seconds=_getint("VIDEO_JOB_RETENTION_SECONDS", 3600),
    )


# Module-level singleton so imports are cheap
SETTINGS = load_settings()
