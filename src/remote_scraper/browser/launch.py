"""Launch parameters for the remote automation service.

The service accepts a different feature set per browser family, so each
family gets its own frozen parameter class carrying only the options it
supports:

=========  =========  =======  ========
family     proxy      stealth  blockAds
=========  =========  =======  ========
chromium   yes        yes      yes
firefox    yes        no       no
webkit     no         no       no
=========  =========  =======  ========

Usage::

    from remote_scraper.browser.launch import build_launch_parameters, connection_descriptor

    params = build_launch_parameters(config, load_proxy_credentials())
    browser = await pw.chromium.connect(connection_descriptor(endpoint, params))
    context = await browser.new_context(**params.context_options())
"""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, ClassVar, Union
from urllib.parse import quote

from remote_scraper.exceptions import ProxyConfigError
from remote_scraper.models.config import BrowserType, ProxyCredentials, ProxyType, ScrapeConfig

logger = logging.getLogger(__name__)

# Merged under every family's options before serialization
LAUNCH_DEFAULTS: dict[str, Any] = {
    "headless": True,
    "ignoreDefaultArgs": ["--headless"],
}


# ---------------------------------------------------------------------------
# Per-family parameters
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _BaseLaunchParameters:
    family: ClassVar[BrowserType]

    headless: bool = True

    def launch_options(self) -> dict[str, Any]:
        """Return the JSON payload describing how the service should launch the browser."""
        options = copy.deepcopy(LAUNCH_DEFAULTS)
        options["headless"] = self.headless
        return options

    def context_options(self) -> dict[str, Any]:
        """Return keyword arguments for ``Browser.new_context``."""
        return {}


@dataclass(frozen=True)
class _ProxiedLaunchParameters(_BaseLaunchParameters):
    proxy: ProxyCredentials | None = None

    def launch_options(self) -> dict[str, Any]:
        options = super().launch_options()
        if self.proxy is not None:
            options["proxy"] = self.proxy.to_launch_payload()
        return options

    def context_options(self) -> dict[str, Any]:
        if self.proxy is None:
            return {}
        return {"proxy": self.proxy.to_playwright()}


@dataclass(frozen=True)
class WebkitLaunchParameters(_BaseLaunchParameters):
    """Webkit: headless only. The service cannot proxy webkit sessions."""

    family: ClassVar[BrowserType] = BrowserType.WEBKIT


@dataclass(frozen=True)
class FirefoxLaunchParameters(_ProxiedLaunchParameters):
    """Firefox: headless and proxy."""

    family: ClassVar[BrowserType] = BrowserType.FIREFOX


@dataclass(frozen=True)
class ChromiumLaunchParameters(_ProxiedLaunchParameters):
    """Chromium: the full feature set, including stealth and ad blocking."""

    family: ClassVar[BrowserType] = BrowserType.CHROMIUM

    stealth: bool = True
    block_ads: bool = True

    def launch_options(self) -> dict[str, Any]:
        options = super().launch_options()
        options["stealth"] = self.stealth
        options["blockAds"] = self.block_ads
        return options


LaunchParameters = Union[ChromiumLaunchParameters, FirefoxLaunchParameters, WebkitLaunchParameters]


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


def resolve_proxy(
    proxy_type: ProxyType,
    proxies: Mapping[ProxyType, ProxyCredentials],
    *,
    strict: bool = False,
) -> ProxyCredentials | None:
    """Look up the credentials for *proxy_type*.

    Returns ``None`` for ``ProxyType.NONE``. A type missing from *proxies*
    resolves to empty credentials.

    Raises:
        ProxyConfigError: In *strict* mode, when the resolved server is empty.
    """
    if proxy_type is ProxyType.NONE:
        return None

    credentials = proxies.get(proxy_type) or ProxyCredentials()
    if not credentials.server:
        if strict:
            raise ProxyConfigError(proxy_type.value)
        logger.warning("Proxy type %s requested but no server is configured", proxy_type.value)
    return credentials


def build_launch_parameters(
    config: ScrapeConfig,
    proxies: Mapping[ProxyType, ProxyCredentials],
    *,
    strict_proxy: bool = False,
) -> LaunchParameters:
    """Compute the launch parameters for *config*.

    Args:
        config: The normalized request.
        proxies: Credential map, usually from ``load_proxy_credentials()``.
        strict_proxy: Raise instead of warning when a proxy has no server.

    Returns:
        The family-specific parameter object.
    """
    proxy = resolve_proxy(config.proxy_type, proxies, strict=strict_proxy)

    if config.browser_type is BrowserType.WEBKIT:
        if proxy is not None:
            logger.info("webkit does not support proxies, dropping %s proxy", config.proxy_type.value)
        return WebkitLaunchParameters(headless=config.headless)

    if config.browser_type is BrowserType.FIREFOX:
        return FirefoxLaunchParameters(headless=config.headless, proxy=proxy)

    return ChromiumLaunchParameters(
        headless=config.headless,
        proxy=proxy,
        stealth=config.stealth,
        block_ads=config.block_ads,
    )


def connection_descriptor(endpoint: str, params: LaunchParameters) -> str:
    """Return the websocket URL that asks the service for a browser of *params*.

    The launch options travel as URL-quoted compact JSON in the ``launch``
    query parameter. The result may contain proxy credentials; do not log it.
    """
    payload = json.dumps(params.launch_options(), separators=(",", ":"))
    return f"{endpoint.rstrip('/')}/{params.family.value}/playwright?launch={quote(payload, safe='')}"
