from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - NOTES_REMOTE_URL: SQLAlchemy database URL of the remote notes table
    - NOTES_REMOTE_KEY: access key for the remote database (sent as the password)
    - NOTES_DATA_DIR: directory holding the local storage slot. Default './data'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: logging level name (default: INFO)

    Remote storage is used only when both NOTES_REMOTE_URL and NOTES_REMOTE_KEY are set.
    """

    remote_url: Optional[str]
    remote_key: Optional[str]
    data_dir: str
    cors_allow_origins: List[str]
    log_level: str

    @property
    def remote_configured(self) -> bool:
        return bool(self.remote_url and self.remote_key)


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _get_optional_env(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    log_level = _get_env("LOG_LEVEL", "INFO").strip().upper()

    return Settings(
        remote_url=_get_optional_env("NOTES_REMOTE_URL"),
        remote_key=_get_optional_env("NOTES_REMOTE_KEY"),
        data_dir=_get_env("NOTES_DATA_DIR", "./data").strip(),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        log_level=log_level,
    )
