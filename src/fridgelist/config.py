"""Application configuration helpers."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

ENV_FILE_CANDIDATES = (Path(".env"), Path(".env.local"))

DEFAULT_TIMEOUT_SECONDS = 30.0


class GatewayConfig(BaseModel):
    """Connection parameters for the remote fridge API.

    Passed explicitly to the gateway at construction time; reconfiguring builds a new
    instance rather than mutating shared state.
    """

    base_url: str = Field(default="", description="Base URL of the fridge API, e.g. http://host:5000/api/v1/.")
    api_key: str = Field(default="", description="Value sent in the X-API-Key header.")
    timeout: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        gt=0,
        description="Connect/read/write timeout in seconds.",
    )

    model_config = ConfigDict(frozen=True)

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url.strip()) and bool(self.api_key.strip())


class Settings(BaseModel):
    """Global application settings loaded from environment variables or .env files."""

    database_path: Path = Field(
        default=Path("./data/fridgelist.db"),
        description="SQLite cache location.",
    )
    api_url: Optional[str] = Field(
        default=None,
        description="Fridge API base URL.",
    )
    api_key: Optional[str] = Field(
        default=None,
        description="API key sent with every request.",
    )
    request_timeout: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        description="Connect/read/write timeout for API calls, in seconds.",
    )
    log_level: str = Field(default="INFO", description="Logging level (DEBUG/INFO/WARNING/ERROR)")
    log_format: str = Field(
        default="plain",
        description="Logging format (plain/json).",
    )

    model_config = ConfigDict(frozen=True)

    def gateway_config(
        self,
        *,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
    ) -> GatewayConfig:
        """Build the gateway configuration, letting explicit values win over settings."""

        timeout = self.request_timeout if self.request_timeout > 0 else DEFAULT_TIMEOUT_SECONDS
        return GatewayConfig(
            base_url=base_url or self.api_url or "",
            api_key=api_key or self.api_key or "",
            timeout=timeout,
        )


def _parse_env_file(path: Path) -> dict[str, str]:
    payload: dict[str, str] = {}
    try:
        with path.open("r", encoding="utf-8") as handle:
            for raw_line in handle:
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, raw_value = line.split("=", 1)
                payload[key.strip()] = raw_value.strip()
    except FileNotFoundError:
        return {}
    return payload


def _load_env_file_values() -> dict[str, str]:
    values: dict[str, str] = {}
    for candidate in ENV_FILE_CANDIDATES:
        values.update(_parse_env_file(candidate))
    return values


def _load_from_env() -> dict[str, object]:
    """Load optional overrides from env vars (with .env fallbacks)."""

    file_values = _load_env_file_values()

    def _env(key: str) -> Optional[str]:
        return os.environ.get(key) or file_values.get(key)

    payload: dict[str, object] = {}
    if (db_path := _env("FRIDGELIST_DATABASE_PATH")):
        payload["database_path"] = Path(db_path)
    if (api_url := _env("FRIDGELIST_API_URL")):
        payload["api_url"] = api_url
    if (api_key := _env("FRIDGELIST_API_KEY")):
        payload["api_key"] = api_key
    if (timeout := _env("FRIDGELIST_REQUEST_TIMEOUT")):
        try:
            payload["request_timeout"] = float(timeout)
        except ValueError:
            pass
    if (log_level := _env("FRIDGELIST_LOG_LEVEL")):
        payload["log_level"] = log_level
    if (log_format := _env("FRIDGELIST_LOG_FORMAT")):
        payload["log_format"] = log_format
    return payload


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings(**_load_from_env())


__all__ = ["GatewayConfig", "Settings", "get_settings"]
