from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from persistence.favorites import DEFAULT_ID_FIELD
from persistence.paths import cache_file, data_dir, favorites_file
from persistence.recipe_cache import DEFAULT_TTL


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_seconds(name: str, default: timedelta) -> timedelta:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        seconds = float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from e
    if seconds <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return timedelta(seconds=seconds)


def _env_path(name: str, default: Path) -> Path:
    raw = (os.getenv(name) or "").strip()
    return Path(raw).expanduser() if raw else default


@dataclass(frozen=True)
class Settings:
    # Locations
    data_dir: Path
    cache_file: Path
    favorites_file: Path

    # Cache
    cache_ttl: timedelta
    sweep_on_startup: bool

    # Favorites
    favorites_id_field: str

    # Logging
    log_level: str


def get_settings() -> Settings:
    base = _env_path("RECIPE_DATA_DIR", data_dir())

    id_field = (os.getenv("RECIPE_FAVORITES_ID_FIELD") or "").strip() or DEFAULT_ID_FIELD

    return Settings(
        data_dir=base,
        cache_file=_env_path("RECIPE_CACHE_FILE", cache_file(base)),
        favorites_file=_env_path("RECIPE_FAVORITES_FILE", favorites_file(base)),
        cache_ttl=_env_seconds("RECIPE_CACHE_TTL_SECONDS", DEFAULT_TTL),
        sweep_on_startup=_env_bool("RECIPE_SWEEP_ON_STARTUP", True),
        favorites_id_field=id_field,
        log_level=(os.getenv("RECIPE_LOG_LEVEL", "INFO")).strip().upper() or "INFO",
    )
