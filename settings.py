from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


_STORAGE_BACKEND_ENV = "STORAGE_BACKEND"
_JSON_PATH_ENV = "JSON_STORAGE_PATH"
_DATABASE_URL_ENV = "DATABASE_URL"
_SENSOR_URL_ENV = "SENSOR_API_URL"
_CONFIG_URL_ENV = "PLANT_CONFIG_API_URL"
_TIMEOUT_ENV = "UPSTREAM_TIMEOUT_SECONDS"
_TRAY_PREFIX_ENV = "TRAY_ID_PREFIX"
_LOG_LEVEL_ENV = "LOG_LEVEL"

BACKEND_MEMORY = "memory"
BACKEND_JSON = "json"
BACKEND_RELATIONAL = "relational"

_BACKEND_ALIASES = {
    "memory": BACKEND_MEMORY,
    "inmemory": BACKEND_MEMORY,
    "in-memory": BACKEND_MEMORY,
    "json": BACKEND_JSON,
    "relational": BACKEND_RELATIONAL,
    "sql": BACKEND_RELATIONAL,
    "postgresql": BACKEND_RELATIONAL,
}


@dataclass(frozen=True)
class Settings:
    storage_backend: str
    json_storage_path: str
    database_url: str
    sensor_api_url: str
    plant_config_api_url: str
    upstream_timeout: float
    tray_id_prefix: str
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_storage_backend(default: str) -> str:
    value = os.getenv(_STORAGE_BACKEND_ENV)
    if value is None:
        return default
    return _BACKEND_ALIASES.get(value.strip().lower(), default)


def _read_timeout(default: float) -> float:
    value = os.getenv(_TIMEOUT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        storage_backend=_read_storage_backend(BACKEND_MEMORY),
        json_storage_path=_read_str_env(_JSON_PATH_ENV, "./tmp/plant_data.json"),
        database_url=_read_str_env(_DATABASE_URL_ENV, "sqlite:///./tmp/plant_data.db"),
        sensor_api_url=_read_str_env(_SENSOR_URL_ENV, "http://localhost:8010/sensor-readings"),
        plant_config_api_url=_read_str_env(
            _CONFIG_URL_ENV, "http://localhost:8020/plant-configurations"
        ),
        upstream_timeout=_read_timeout(30.0),
        tray_id_prefix=_read_str_env(_TRAY_PREFIX_ENV, "TRAY"),
        log_level=_read_log_level("INFO"),
    )
