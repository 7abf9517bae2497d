"""Per-request network policy: abort sub-requests by resource category.

The ``ResourceInterceptor`` is installed on a page **before** navigation so
that no sub-request escapes the policy:

.. code-block:: python

    interceptor = ResourceInterceptor(["image", "media"])
    await interceptor.install(page)
    await page.goto(url)
    ...
    await interceptor.remove(page)   # before page.close()

Categories are Playwright resource types (``document``, ``stylesheet``,
``image``, ``media``, ``font``, ``script``, ``xhr``, ``fetch``, ...).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from playwright.async_api import Error as PlaywrightError

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from playwright.async_api import Page, Route

# Catch-all pattern; every request of the page goes through the handler
ROUTE_PATTERN = "**/*"


class ResourceInterceptor:
    """Aborts requests whose resource type is blocked and continues the rest.

    If deciding about a request fails, the request is continued rather than
    left pending.

    Args:
        blocked: Resource categories to abort (case-insensitive).
    """

    def __init__(self, blocked: Iterable[str]) -> None:
        self.blocked = frozenset(c.strip().lower() for c in blocked if c and c.strip())
        self.blocked_count = 0
        self.allowed_count = 0
        self._page: Page | None = None

    @property
    def installed(self) -> bool:
        return self._page is not None

    def should_block(self, resource_type: str) -> bool:
        return resource_type.lower() in self.blocked

    async def install(self, page: Page) -> None:
        """Route every request of *page* through :meth:`handle`."""
        await page.route(ROUTE_PATTERN, self.handle)
        self._page = page
        logger.debug("Resource interceptor installed (blocking: %s)", ", ".join(sorted(self.blocked)))

    async def remove(self, page: Page) -> None:
        """Remove the route installed by :meth:`install`."""
        if self._page is None:
            return
        self._page = None
        await page.unroute(ROUTE_PATTERN, self.handle)
        logger.debug(
            "Resource interceptor removed (%d blocked, %d allowed)",
            self.blocked_count,
            self.allowed_count,
        )

    async def handle(self, route: Route) -> None:
        """Abort or continue a single intercepted request."""
        try:
            block = self.should_block(route.request.resource_type)
        except Exception as exc:
            logger.error("Resource decision failed, continuing request: %s", exc)
            block = False

        try:
            if block:
                await route.abort()
                self.blocked_count += 1
            else:
                await route.continue_()
                self.allowed_count += 1
        except PlaywrightError as exc:
            # Route already handled, or the page went away mid-request
            logger.debug("Could not %s request: %s", "abort" if block else "continue", exc)
