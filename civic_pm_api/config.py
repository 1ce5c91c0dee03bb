"""Centralised configuration for the civic project-management API."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import dotenv_values

logger = logging.getLogger(__name__)


def _dotenv_path() -> Optional[Path]:
    explicit = os.getenv("CIVIC_PM_DOTENV")
    if explicit:
        return Path(explicit)
    candidate = Path.cwd() / ".env"
    if candidate.is_file():
        return candidate
    return None


def _load_environment() -> Dict[str, str]:
    """Merge .env file values with the real environment (environment variables take precedence)."""
    path = _dotenv_path()
    file_values: Dict[str, str] = {}
    if path is not None and path.is_file():
        file_values = {k: v for k, v in dotenv_values(dotenv_path=path).items() if v is not None}
        logger.debug(f"Loaded {len(file_values)} values from {path}")
    return {**file_values, **os.environ}


def _int_setting(env: Dict[str, str], name: str, default: int) -> int:
    value = env.get(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer, got {value!r}") from exc


def _str_setting(env: Dict[str, str], name: str, default: str) -> str:
    return env.get(name, default)


def _bool_setting(env: Dict[str, str], name: str, default: bool) -> bool:
    value = env.get(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _list_setting(env: Dict[str, str], name: str, default: List[str]) -> List[str]:
    value = env.get(name)
    if value is None or value.strip() == "":
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    """Runtime settings resolved once at import time."""

    database_url: str = "sqlite:///./civic_pm.db"
    cloud_mode: bool = False
    dev_auth: bool = False
    log_level: str = "INFO"
    cors_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"]
    )
    default_page_limit: int = 20
    max_page_limit: int = 100
    default_currency: str = "GYD"
    top_risks_limit: int = 5


def load_settings() -> Settings:
    env = _load_environment()
    defaults = Settings()
    default_limit = _int_setting(env, "CIVIC_PM_DEFAULT_PAGE_LIMIT", defaults.default_page_limit)
    max_limit = _int_setting(env, "CIVIC_PM_MAX_PAGE_LIMIT", defaults.max_page_limit)
    if default_limit > max_limit:
        raise ValueError("CIVIC_PM_DEFAULT_PAGE_LIMIT cannot be greater than CIVIC_PM_MAX_PAGE_LIMIT")
    return Settings(
        database_url=_str_setting(env, "DATABASE_URL", defaults.database_url),
        cloud_mode=_bool_setting(env, "CIVIC_PM_CLOUD_MODE", defaults.cloud_mode),
        dev_auth=_bool_setting(env, "CIVIC_PM_DEV_AUTH", defaults.dev_auth),
        log_level=_str_setting(env, "CIVIC_PM_LOG_LEVEL", defaults.log_level).upper(),
        cors_origins=_list_setting(env, "CIVIC_PM_CORS_ORIGINS", defaults.cors_origins),
        default_page_limit=default_limit,
        max_page_limit=max_limit,
        default_currency=_str_setting(env, "CIVIC_PM_CURRENCY", defaults.default_currency),
        top_risks_limit=_int_setting(env, "CIVIC_PM_TOP_RISKS_LIMIT", defaults.top_risks_limit),
    )


SETTINGS = load_settings()
