"""Page event channel — crash, close and dialog handling for one session.

Playwright delivers page events on its own schedule, concurrently with the
session's awaited operations, and an exception raised inside an event handler
never reaches the code awaiting ``page.goto``. The channel turns the two
terminal events into a single ``asyncio.Future`` that each stage is raced
against with :meth:`PageEventChannel.guard`:

* ``crash`` — the remote render process died → ``PageCrashError``.
* ``close`` — the page was closed from outside the session → ``PageClosedError``.

The first terminal event wins; later ones are only logged. Native dialogs
(``alert``/``confirm``/``prompt``/``beforeunload``) are dismissed as they
appear so the page can never block on them.

Listeners must be removed with :meth:`detach` before the page is closed so
that the session's own ``page.close()`` is not reported as an external close.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import TYPE_CHECKING, TypeVar

from playwright.async_api import Error as PlaywrightError

from remote_scraper.exceptions import PageClosedError, PageCrashError, ScraperError

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from playwright.async_api import Dialog, Page

T = TypeVar("T")


class PageEventChannel:
    """Collects terminal page events and races them against session stages."""

    def __init__(self) -> None:
        self._page: Page | None = None
        self._terminal: asyncio.Future[None] | None = None
        self.dialogs_dismissed = 0

    @property
    def attached(self) -> bool:
        return self._page is not None

    @property
    def terminated(self) -> bool:
        return self._terminal is not None and self._terminal.done()

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def attach(self, page: Page) -> None:
        """Subscribe to crash, close and dialog events of *page*."""
        self._terminal = asyncio.get_running_loop().create_future()
        page.on("crash", self._on_crash)
        page.on("close", self._on_close)
        page.on("dialog", self._on_dialog)
        self._page = page

    def detach(self) -> None:
        """Unsubscribe every listener registered by :meth:`attach`."""
        page, self._page = self._page, None
        if page is None:
            return
        page.remove_listener("crash", self._on_crash)
        page.remove_listener("close", self._on_close)
        page.remove_listener("dialog", self._on_dialog)
        if self._terminal is not None and self._terminal.done():
            # Mark the exception as retrieved even if no stage awaited it
            self._terminal.exception()

    # ------------------------------------------------------------------
    # Racing
    # ------------------------------------------------------------------

    async def guard(self, operation: Awaitable[T]) -> T:
        """Await *operation*, unless a terminal page event happens first.

        Raises:
            PageCrashError | PageClosedError: When the page crashed or was
                closed before *operation* finished. *operation* is cancelled.
        """
        terminal = self._terminal
        if terminal is None:
            return await operation

        task = asyncio.ensure_future(operation)
        if not terminal.done():
            try:
                await asyncio.wait({task, terminal}, return_when=asyncio.FIRST_COMPLETED)
            except BaseException:
                # Caller cancelled; the page operation must not outlive it
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
                raise
            if task.done():
                return task.result()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise terminal.exception()  # type: ignore[misc]

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _fire(self, error: ScraperError) -> None:
        if self._terminal is None or self._terminal.done():
            logger.debug("Ignoring page event after termination: %s", error)
            return
        self._terminal.set_exception(error)

    def _on_crash(self, page: Page) -> None:
        logger.error("Page crashed on %s", page.url or "unknown")
        self._fire(PageCrashError(page.url or "unknown"))

    def _on_close(self, page: Page) -> None:
        logger.warning("Page closed on %s", page.url or "unknown")
        self._fire(PageClosedError(page.url or "unknown"))

    async def _on_dialog(self, dialog: Dialog) -> None:
        logger.info("Dismissing %s dialog: %s", dialog.type, dialog.message[:200])
        try:
            await dialog.dismiss()
            self.dialogs_dismissed += 1
        except PlaywrightError as exc:
            logger.warning("Could not dismiss %s dialog: %s", dialog.type, exc)
