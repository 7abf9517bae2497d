"""Scraper settings, layered from TOML files and ``SCRAPER_*`` variables.

Layers, lowest to highest priority::

    config/settings.default.toml
    config/settings.<SCRAPER_ENV>.toml
    config/settings.local.toml        (git-ignored)
    BROWSER_WS_ENDPOINT               (service endpoint only)
    SCRAPER_* environment variables   (``__`` separates sections)
    CLI flags, where a command offers one

Proxy credentials are not settings; they keep their own ``PROXY_<TYPE>_*``
variables, see ``remote_scraper.settings.proxies``.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Iterable, Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_VAR_NAME = "SCRAPER_ENV"
# Endpoint variable understood by existing deployments of the service client
ENDPOINT_ENV_VAR = "BROWSER_WS_ENDPOINT"
DEFAULT_ENV = "local"

PROJECT_ROOT = Path(os.getenv("SCRAPER_PROJECT_ROOT") or Path(__file__).resolve().parents[3])
CONFIG_DIR = PROJECT_ROOT / "config"


def _resolve_env(explicit: Any = None) -> str:
    return str(explicit or os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()


def _read_layer(name: str) -> dict[str, Any]:
    """Parse ``config/<name>``; a missing file is an empty layer."""
    path = CONFIG_DIR / name
    if not path.is_file():
        return {}
    with path.open("rb") as fh:
        return tomllib.load(fh)


def _layer_names(env_name: str) -> list[str]:
    return ["settings.default.toml", f"settings.{env_name}.toml", "settings.local.toml"]


def _endpoint_layer() -> dict[str, Any]:
    endpoint = os.getenv(ENDPOINT_ENV_VAR)
    return {"service": {"ws_endpoint": endpoint}} if endpoint else {}


def _merge_layers(layers: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    """Merge *layers* left to right. Tables merge one level deep; scalars replace."""
    merged: dict[str, Any] = {}
    for layer in layers:
        for key, value in layer.items():
            current = merged.get(key)
            if isinstance(value, Mapping) and isinstance(current, Mapping):
                merged[key] = {**current, **value}
            else:
                merged[key] = value
    return merged


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


class ServiceSettings(BaseSettings):
    """Remote automation service endpoint."""

    model_config = SettingsConfigDict(env_prefix="SCRAPER_SERVICE__")

    ws_endpoint: str = "ws://127.0.0.1"
    connect_timeout_ms: int = Field(default=30_000, ge=0)


class ScrapeSettings(BaseSettings):
    """Defaults applied to requests that leave them unset."""

    model_config = SettingsConfigDict(env_prefix="SCRAPER_SCRAPE__")

    timeout_ms: int = Field(default=60_000, ge=0)


class ProxySettings(BaseSettings):
    """Proxy resolution policy."""

    model_config = SettingsConfigDict(env_prefix="SCRAPER_PROXY__")

    # Fail the request instead of connecting with an empty proxy server
    strict: bool = False


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """All scraper settings."""

    model_config = SettingsConfigDict(env_prefix="SCRAPER_", env_nested_delimiter="__", extra="ignore")

    env: str = Field(default_factory=_resolve_env)
    project_root: Path = PROJECT_ROOT
    debug: bool = False
    log_level: str = "INFO"

    service: ServiceSettings = Field(default_factory=ServiceSettings)
    scrape: ScrapeSettings = Field(default_factory=ScrapeSettings)
    proxy: ProxySettings = Field(default_factory=ProxySettings)

    @model_validator(mode="before")
    @classmethod
    def _apply_config_files(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Put the TOML layers and ``BROWSER_WS_ENDPOINT`` underneath the explicit and ``SCRAPER_*`` values."""
        files = [_read_layer(name) for name in _layer_names(_resolve_env(values.get("env")))]
        return _merge_layers([*files, _endpoint_layer(), values])

    @model_validator(mode="after")
    def _normalize(self) -> "Settings":
        self.log_level = self.log_level.upper()
        self.service.ws_endpoint = self.service.ws_endpoint.rstrip("/")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, built on first use."""
    return Settings()
