"""Request configuration for a single scrape.

``ScrapeConfig`` is the canonical, immutable form of a scrape request. Callers
usually hand over a loosely-typed mapping (query parameters, JSON bodies) in
which booleans arrive as strings such as ``"yes"`` or ``"off"`` and numbers as
strings; the ``mode="before"`` validators below coerce those into canonical
values so the rest of the package never sees the raw input.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

_TRUE_STRINGS = frozenset({"true", "1", "yes", "on", "enabled"})

_WAIT_UNTIL_ALIASES: dict[str, str] = {
    "dom-ready": "domcontentloaded",
    "domready": "domcontentloaded",
    "network-idle": "networkidle",
}

VIEW_SOURCE_PREFIX = "view-source:"


class ProxyType(str, Enum):
    """Proxy pools a request can be routed through."""

    NONE = "none"
    IPV6 = "ipv6"
    MOBILE = "mobile"
    RESIDENTIAL = "residential"
    DATACENTER = "datacenter"
    CUSTOM = "custom"


class BrowserType(str, Enum):
    """Browser engine families offered by the automation service."""

    CHROMIUM = "chromium"
    FIREFOX = "firefox"
    WEBKIT = "webkit"


class WaitUntil(str, Enum):
    """Navigation lifecycle event to wait for before continuing."""

    LOAD = "load"
    DOMCONTENTLOADED = "domcontentloaded"
    NETWORKIDLE = "networkidle"
    COMMIT = "commit"


def parse_bool(value: Any, default: bool = True) -> bool:
    """Coerce a string-boolean into a ``bool``.

    ``true``, ``1``, ``yes``, ``on`` and ``enabled`` (any case) are true; every
    other string is false. ``None`` yields *default*.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_STRINGS


@dataclass(frozen=True)
class ProxyCredentials:
    """Connection details for one proxy pool. Unset members are empty strings."""

    server: str = ""
    username: str = ""
    password: str = ""
    bypass: str = ""

    def to_playwright(self) -> dict[str, str]:
        """Return the mapping Playwright expects for its ``proxy`` option."""
        proxy = {"server": self.server}
        for key in ("username", "password", "bypass"):
            value = getattr(self, key)
            if value:
                proxy[key] = value
        return proxy

    def to_launch_payload(self) -> dict[str, str]:
        """Return all four members, as serialized into the launch descriptor."""
        return {
            "server": self.server,
            "username": self.username,
            "password": self.password,
            "bypass": self.bypass,
        }


class ScrapeConfig(BaseModel):
    """Canonical, immutable configuration of one scrape request."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    url: str = Field(min_length=1)
    proxy_type: ProxyType = ProxyType.NONE
    browser_type: BrowserType = BrowserType.CHROMIUM
    headless: bool = True
    stealth: bool = True
    block_ads: bool = True
    timeout: int | None = Field(default=None, ge=0)
    block_resources: str | None = None
    wait_until: WaitUntil = WaitUntil.DOMCONTENTLOADED
    eval_js: str | None = None
    view_source: bool = False
    screenshot: bool = False
    wait_for: int | None = Field(default=None, ge=0)
    wait_for_css: str | None = None

    @field_validator("headless", "stealth", "block_ads", mode="before")
    @classmethod
    def _default_on_flags(cls, value: Any) -> bool:
        return parse_bool(value, default=True)

    @field_validator("view_source", "screenshot", mode="before")
    @classmethod
    def _default_off_flags(cls, value: Any) -> bool:
        return parse_bool(value, default=False)

    @field_validator("proxy_type", mode="before")
    @classmethod
    def _normalize_proxy_type(cls, value: Any) -> Any:
        if value is None or value == "":
            return ProxyType.NONE
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("browser_type", mode="before")
    @classmethod
    def _normalize_browser_type(cls, value: Any) -> BrowserType:
        if isinstance(value, BrowserType):
            return value
        candidate = str(value or "").strip().lower()
        try:
            return BrowserType(candidate)
        except ValueError:
            if candidate:
                logger.warning("Unknown browser type %r, falling back to chromium", value)
            return BrowserType.CHROMIUM

    @field_validator("wait_until", mode="before")
    @classmethod
    def _normalize_wait_until(cls, value: Any) -> Any:
        if value is None or value == "":
            return WaitUntil.DOMCONTENTLOADED
        if isinstance(value, str):
            candidate = value.strip().lower()
            return _WAIT_UNTIL_ALIASES.get(candidate, candidate)
        return value

    @field_validator("timeout", "wait_for", mode="before")
    @classmethod
    def _blank_number_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("block_resources", "eval_js", "wait_for_css", mode="before")
    @classmethod
    def _blank_string_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def blocked_resources(self) -> tuple[str, ...]:
        """Resource categories to abort, parsed from ``block_resources``."""
        if not self.block_resources:
            return ()
        categories = (part.strip().lower() for part in self.block_resources.split(","))
        return tuple(dict.fromkeys(c for c in categories if c))

    @property
    def target_url(self) -> str:
        """URL actually navigated to (source view when ``view_source`` is set)."""
        if self.view_source:
            return f"{VIEW_SOURCE_PREFIX}{self.url}"
        return self.url

    def effective_timeout(self, default_ms: int) -> int:
        """Return the request timeout, or *default_ms* when none was given."""
        return self.timeout if self.timeout is not None else default_ms
