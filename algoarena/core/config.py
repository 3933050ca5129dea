from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]


def _getenv(name: str, default: str) -> str:
    # Centralize env access so every setting is stripped the same way
    return os.environ.get(name, default).strip()


def _getenv_int(name: str, default: int, *, minimum: int = 0) -> int:
    raw = _getenv(name, str(default))
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum} (got {value})")
    return value


def _getenv_bool(name: str, default: bool) -> bool:
    raw = _getenv(name, "true" if default else "false").lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"{name} must be a boolean (got {raw!r})")


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    redis_url: str | None

    # Cache behaviour.  TTLs are the safety net; explicit invalidation
    # is what keeps entries fresh after writes.
    cache_timeout_seconds: float = 0.25
    cache_ttl_progress: int = 3600
    cache_ttl_stats: int = 1800
    cache_ttl_categories: int = 1800
    cache_ttl_questions: int = 600

    # Progress statistics
    streak_lookback: int = 30  # most recent solved records considered
    recent_window_days: int = 7

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


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

    timeout_raw = _getenv("CACHE_TIMEOUT_SECONDS", "0.25")
    try:
        cache_timeout = float(timeout_raw)
    except ValueError:
        raise ValueError(
            f"CACHE_TIMEOUT_SECONDS must be a number (got {timeout_raw!r})"
        ) from None
    if cache_timeout <= 0:
        raise ValueError(f"CACHE_TIMEOUT_SECONDS must be > 0 (got {cache_timeout})")

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=_getenv_bool("LOG_JSON", False),
        port=port,
        database_url=_getenv("DATABASE_URL", "") or None,
        redis_url=_getenv("REDIS_URL", "") or None,
        cache_timeout_seconds=cache_timeout,
        cache_ttl_progress=_getenv_int("CACHE_TTL_PROGRESS", 3600, minimum=1),
        cache_ttl_stats=_getenv_int("CACHE_TTL_STATS", 1800, minimum=1),
        cache_ttl_categories=_getenv_int("CACHE_TTL_CATEGORIES", 1800, minimum=1),
        cache_ttl_questions=_getenv_int("CACHE_TTL_QUESTIONS", 600, minimum=1),
        streak_lookback=_getenv_int("STREAK_LOOKBACK", 30, minimum=1),
        recent_window_days=_getenv_int("RECENT_WINDOW_DAYS", 7, minimum=1),
    )


# Module-level singleton so imports are cheap
SETTINGS = load_settings()
