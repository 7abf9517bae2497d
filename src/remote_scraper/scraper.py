"""Public entry point: ``run(config) -> ScrapeResult``.

``run`` accepts either a ``ScrapeConfig`` or a loosely-typed mapping (as
received from a query string or JSON body), and always returns an envelope:

.. code-block:: python

    from remote_scraper.scraper import run

    result = await run({"url": "https://example.com", "screenshot": "true"})
    if result.success:
        print(result.status_code, len(result.body))
    else:
        print(result.error)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from playwright.async_api import async_playwright

from remote_scraper.browser.launch import LaunchParameters, build_launch_parameters
from remote_scraper.browser.session import ScrapeSession
from remote_scraper.models.config import ProxyCredentials, ProxyType, ScrapeConfig
from remote_scraper.models.results import ScrapeFailure, ScrapeResult
from remote_scraper.settings import Settings, get_settings, load_proxy_credentials

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from playwright.async_api import Playwright


def _requested_url(config: ScrapeConfig | Mapping[str, Any]) -> str:
    if isinstance(config, ScrapeConfig):
        return config.url
    try:
        return str(config.get("url") or "")
    except Exception:
        return ""


class Scraper:
    """Runs scrape sessions against the configured automation service.

    Args:
        settings: Resolved settings; defaults to ``get_settings()``.
        proxies: Proxy credential map; defaults to ``load_proxy_credentials()``.
        playwright: A started ``Playwright`` to reuse across runs. When omitted,
            each run starts and stops its own driver.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        proxies: Mapping[ProxyType, ProxyCredentials] | None = None,
        playwright: Playwright | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.proxies = dict(proxies) if proxies is not None else load_proxy_credentials()
        self._playwright = playwright

    async def run(self, config: ScrapeConfig | Mapping[str, Any]) -> ScrapeResult:
        """Fetch one page under *config*. Never raises."""
        url = _requested_url(config)
        try:
            scrape_config = config if isinstance(config, ScrapeConfig) else ScrapeConfig.model_validate(config)
            params = build_launch_parameters(
                scrape_config,
                self.proxies,
                strict_proxy=self.settings.proxy.strict,
            )
            if self._playwright is not None:
                return await self._session(scrape_config, params, self._playwright).execute()
            async with async_playwright() as pw:
                return await self._session(scrape_config, params, pw).execute()
        except Exception as exc:
            logger.error("Scrape of %s rejected: %s", url or "<missing url>", exc)
            return ScrapeFailure.from_error(url, exc)

    def _session(self, config: ScrapeConfig, params: LaunchParameters, playwright: Playwright) -> ScrapeSession:
        return ScrapeSession(
            config,
            params,
            playwright,
            endpoint=self.settings.service.ws_endpoint,
            connect_timeout_ms=self.settings.service.connect_timeout_ms,
            default_timeout_ms=self.settings.scrape.timeout_ms,
        )


async def run(
    config: ScrapeConfig | Mapping[str, Any],
    *,
    settings: Settings | None = None,
    proxies: Mapping[ProxyType, ProxyCredentials] | None = None,
) -> ScrapeResult:
    """Fetch one page under *config* with a one-off ``Scraper``. Never raises."""
    try:
        scraper = Scraper(settings=settings, proxies=proxies)
    except Exception as exc:
        logger.error("Scraper setup failed: %s", exc)
        return ScrapeFailure.from_error(_requested_url(config), exc)
    return await scraper.run(config)
