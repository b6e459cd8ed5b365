from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]


def _getenv(name: str, default: str) -> str:
    # Centralize env access so type casting and validation live in one place
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
class PolicyDefaults:
    """Numeric policy applied when a quiz or assignment does not set its own."""

    quiz_max_attempts: int = 3
    quiz_cooldown_hours: int = 24
    quiz_passing_score: int = 60
    quiz_pass_bonus_points: int = 20
    lesson_completion_points: int = 10
    assignment_late_penalty_per_day: int = 10
    assignment_max_late_days: int = 7
    unenroll_progress_limit: int = 50


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    redis_url: str | None
    policy: PolicyDefaults = PolicyDefaults()

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_policy() -> PolicyDefaults:
    passing_score = _getenv_int("QUIZ_PASSING_SCORE", 60)
    if passing_score > 100:
        raise ValueError(f"QUIZ_PASSING_SCORE must be <= 100 (got {passing_score})")

    penalty_per_day = _getenv_int("ASSIGNMENT_LATE_PENALTY_PER_DAY", 10)
    if penalty_per_day > 100:
        raise ValueError(
            f"ASSIGNMENT_LATE_PENALTY_PER_DAY must be <= 100 (got {penalty_per_day})"
        )

    unenroll_limit = _getenv_int("UNENROLL_PROGRESS_LIMIT", 50)
    if unenroll_limit > 100:
        raise ValueError(
            f"UNENROLL_PROGRESS_LIMIT must be <= 100 (got {unenroll_limit})"
        )

    return PolicyDefaults(
        quiz_max_attempts=_getenv_int("QUIZ_MAX_ATTEMPTS", 3, minimum=1),
        quiz_cooldown_hours=_getenv_int("QUIZ_COOLDOWN_HOURS", 24),
        quiz_passing_score=passing_score,
        quiz_pass_bonus_points=_getenv_int("QUIZ_PASS_BONUS_POINTS", 20),
        lesson_completion_points=_getenv_int("LESSON_COMPLETION_POINTS", 10),
        assignment_late_penalty_per_day=penalty_per_day,
        assignment_max_late_days=_getenv_int("ASSIGNMENT_MAX_LATE_DAYS", 7),
        unenroll_progress_limit=unenroll_limit,
    )


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

    database_url = _getenv("DATABASE_URL", "") or None
    redis_url = _getenv("REDIS_URL", "") or None

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=_getenv_bool("LOG_JSON", False),
        port=port,
        database_url=database_url,
        redis_url=redis_url,
        policy=load_policy(),
    )


# Module-level singleton so imports are cheap
SETTINGS = load_settings()
