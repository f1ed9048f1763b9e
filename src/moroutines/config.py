# src/moroutines/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole process ("settings layer").
- Nothing required at import time; every field has a default.
- Runtime/driver pieces take settings explicitly; get_settings() is only the default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "MOROUTINES"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


# Local .env never overrides variables that are already set.
load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int | None) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str = "moroutines"
    log_level: str = "INFO"
    log_dir: Path = Path(".local/moroutines")
    log_to_file: bool = False

    # ---- Driver ----
    tick_interval_seconds: float = 1 / 60
    max_ticks: int | None = 10_000

    # ---- Tasks ----
    default_auto_destroy: bool = False

    @staticmethod
    def from_env() -> "Settings":
        defaults = Settings()

        app_name = _env(_k("APP_NAME"), defaults.app_name) or defaults.app_name
        log_level = _env(_k("LOG_LEVEL"), defaults.log_level).upper()
        log_dir = _env_path(_k("LOG_DIR"), defaults.log_dir)
        log_to_file = _env_bool(_k("LOG_TO_FILE"), defaults.log_to_file)

        tick_interval_seconds = max(0.0, _env_float(_k("TICK_INTERVAL_SECONDS"), defaults.tick_interval_seconds))
        max_ticks = _env_int(_k("MAX_TICKS"), defaults.max_ticks)
        if max_ticks is not None and max_ticks <= 0:
            # 0 / negative means "no cap".
            max_ticks = None

        default_auto_destroy = _env_bool(_k("DEFAULT_AUTO_DESTROY"), defaults.default_auto_destroy)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            log_dir=log_dir,
            log_to_file=log_to_file,
            tick_interval_seconds=tick_interval_seconds,
            max_ticks=max_ticks,
            default_auto_destroy=default_auto_destroy,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
