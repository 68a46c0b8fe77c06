"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[2]

DEFAULT_ROOMS: tuple[tuple[str, str], ...] = (
    ("Game Room", "https://via.placeholder.com/300x200/4CAF50/white?text=Game+Room"),
    ("Meeting Room1", "https://via.placeholder.com/300x200/2196F3/white?text=Meeting+Room+1"),
    ("Meeting Room2", "https://via.placeholder.com/300x200/FF9800/white?text=Meeting+Room+2"),
    ("Cooking Room", "https://via.placeholder.com/300x200/E91E63/white?text=Cooking+Room"),
    ("Facial Sauna Room", "https://via.placeholder.com/300x200/9C27B0/white?text=Sauna+Room"),
    ("Karaoke Room", "https://via.placeholder.com/300x200/FF5722/white?text=Karaoke+Room"),
)


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    host: str
    port: int
    database_path: Path
    sqlite_timeout_seconds: float
    log_level: str
    timezone_name: str
    jwt_secret: str
    jwt_algorithm: str
    jwt_expiry_hours: int
    admin_token: str
    default_admin_username: str
    default_admin_password: str
    default_rooms: tuple[tuple[str, str], ...]
    slot_grid_start_hour: int
    slot_grid_end_hour: int
    slot_duration_minutes: int
    availability_mode: str
    access_code_min: int
    access_code_max: int


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings once per process; tests derive variants with replace()."""
    return Settings(
        app_name=os.getenv("APP_NAME", "Smart Room Access"),
        app_version=os.getenv("APP_VERSION", "1.0.0"),
        host=os.getenv("HOST", "0.0.0.0"),
        port=_env_int("PORT", 3000),
        database_path=Path(
            os.getenv("DATABASE_PATH", str(PROJECT_ROOT / "data" / "room_access.db"))
        ),
        sqlite_timeout_seconds=_env_float("SQLITE_TIMEOUT_SECONDS", 10.0),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        timezone_name=os.getenv("APP_TIMEZONE", "Asia/Bangkok"),
        jwt_secret=os.getenv("JWT_SECRET", "change-me-in-production"),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        jwt_expiry_hours=_env_int("JWT_EXPIRY_HOURS", 24),
        admin_token=os.getenv("ADMIN_TOKEN", ""),
        default_admin_username=os.getenv("DEFAULT_ADMIN_USERNAME", "admin"),
        default_admin_password=os.getenv("DEFAULT_ADMIN_PASSWORD", "1234"),
        default_rooms=DEFAULT_ROOMS,
        slot_grid_start_hour=_env_int("SLOT_GRID_START_HOUR", 0),
        slot_grid_end_hour=_env_int("SLOT_GRID_END_HOUR", 24),
        slot_duration_minutes=_env_int("SLOT_DURATION_MINUTES", 60),
        availability_mode=os.getenv("AVAILABILITY_MODE", "overlap"),
        access_code_min=_env_int("ACCESS_CODE_MIN", 100000),
        access_code_max=_env_int("ACCESS_CODE_MAX", 999999),
    )
