# src/opsdesk/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time (the API token is only needed for real calls).
- Identity (user id / role) is read here once and then passed explicitly as an Actor.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "OPSDESK"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


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
    app_name: str
    log_level: str

    # ---- Remote API ----
    api_base_url: str
    api_token: str | None
    connect_timeout_seconds: float
    read_timeout_seconds: float
    load_status_refs: bool

    # ---- Acting user ----
    user_id: str
    role: str

    # ---- Console ----
    console_enabled: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "opsdesk") or "opsdesk"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        # NEXT_PUBLIC_API_URL is what the dashboard front end uses; accept it as a fallback.
        api_base_url = (
            _first_env(_k("API_BASE_URL"), "NEXT_PUBLIC_API_URL", default="http://localhost:5000/api")
            or ""
        ).strip()
        api_token = _first_env(_k("API_TOKEN"), default=None)

        connect_timeout = _env_float(_k("CONNECT_TIMEOUT_SECONDS"), 5.0)
        read_timeout = _env_float(_k("READ_TIMEOUT_SECONDS"), 20.0)
        load_status_refs = _env_bool(_k("LOAD_STATUS_REFS"), False)

        user_id = (_env(_k("USER_ID"), "") or "").strip()
        role = (_env(_k("ROLE"), "author") or "author").strip().lower()

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/opsdesk"))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            api_base_url=api_base_url,
            api_token=api_token,
            connect_timeout_seconds=connect_timeout,
            read_timeout_seconds=read_timeout,
            load_status_refs=load_status_refs,
            user_id=user_id,
            role=role,
            console_enabled=console_enabled,
            data_dir=data_dir,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
