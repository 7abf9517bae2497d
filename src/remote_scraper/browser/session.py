"""Scrape session orchestrator.

A ``ScrapeSession`` owns exactly one request against the remote automation
service and walks it through the stages of ``SessionState``::

    IDLE → CONNECTING → CONTEXT_READY → PAGE_READY → NAVIGATING
         → POST_ACTIONS → CAPTURING → TEARING_DOWN → DONE

Resources are acquired in strict order (connection → context → page →
interception → listeners) and registered on an ``AsyncExitStack`` as they are
acquired, so teardown always runs, always in reverse order, and always in
full: each release step is best-effort and a failure in one is logged without
stopping the next.

Any exception raised by any stage is caught once in :meth:`ScrapeSession.execute`
and turned into a ``ScrapeFailure``; ``execute`` itself never raises.
"""

from __future__ import annotations

import base64
import inspect
import logging
import time
from collections.abc import Callable
from contextlib import AsyncExitStack
from typing import TYPE_CHECKING, Any
from urllib.parse import unquote

from playwright.async_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeout

from remote_scraper.browser.events import PageEventChannel
from remote_scraper.browser.interceptor import ResourceInterceptor
from remote_scraper.browser.launch import LaunchParameters, connection_descriptor
from remote_scraper.exceptions import (
    BrowserConnectionError,
    NavigationError,
    ScriptError,
    SelectorTimeoutError,
)
from remote_scraper.models.config import ScrapeConfig
from remote_scraper.models.results import PageCapture, ScrapeFailure, ScrapeResult, ScrapeSuccess
from remote_scraper.models.states import STATE_TRANSITIONS, TEARDOWN_STATES, SessionState

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from playwright.async_api import Browser, BrowserContext, Page, Playwright, Response


class ScrapeSession:
    """Drives a single scrape from connection to teardown.

    Args:
        config: The normalized request.
        params: Launch parameters computed for *config*.
        playwright: A started ``Playwright`` instance used to reach the service.
        endpoint: Service websocket endpoint, e.g. ``ws://127.0.0.1:3000``.
        connect_timeout_ms: Bound on establishing the connection.
        default_timeout_ms: Page timeout when *config* does not set one.
    """

    def __init__(
        self,
        config: ScrapeConfig,
        params: LaunchParameters,
        playwright: Playwright,
        *,
        endpoint: str,
        connect_timeout_ms: int = 30_000,
        default_timeout_ms: int = 60_000,
    ) -> None:
        self.config = config
        self.params = params
        self.endpoint = endpoint.rstrip("/")
        self.connect_timeout_ms = connect_timeout_ms
        self.timeout_ms = config.effective_timeout(default_timeout_ms)

        self.state = SessionState.IDLE
        self.failed_state: SessionState | None = None
        self.events = PageEventChannel()
        self.interceptor = ResourceInterceptor(config.blocked_resources) if config.blocked_resources else None

        self._playwright = playwright
        self._browser: Browser | None = None

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def execute(self) -> ScrapeResult:
        """Run the session and return its envelope. Never raises."""
        started = time.monotonic()
        logger.info(
            "Scraping %s (browser=%s, proxy=%s, timeout=%dms)",
            self.config.url,
            self.params.family.value,
            self.config.proxy_type.value,
            self.timeout_ms,
        )

        result: ScrapeResult
        try:
            if self.state is not SessionState.IDLE:
                raise RuntimeError(f"Session already ran (state={self.state.value})")
            async with AsyncExitStack() as resources:
                try:
                    capture = await self._drive(resources)
                except Exception:
                    self.failed_state = self.state
                    raise
                finally:
                    self._transition(SessionState.TEARING_DOWN)
            result = ScrapeSuccess.from_capture(capture)
        except Exception as exc:
            stage = self.failed_state.value if self.failed_state else self.state.value
            logger.error("Scrape of %s failed during %s: %s", self.config.url, stage, exc)
            result = ScrapeFailure.from_error(self.config.url, exc)

        self._transition(SessionState.DONE)
        logger.info(
            "Finished %s with status %d in %.2fs",
            self.config.url,
            result.status_code,
            time.monotonic() - started,
        )
        return result

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def _drive(self, resources: AsyncExitStack) -> PageCapture:
        """Acquire resources and run every stage, registering releases on *resources*."""
        self._transition(SessionState.CONNECTING)
        browser = await self._connect()
        self._browser = browser
        resources.push_async_callback(self._release, "connection", self._close_browser)

        self._transition(SessionState.CONTEXT_READY)
        context = await browser.new_context(**self.params.context_options())
        resources.push_async_callback(self._release, "context", context.close)

        self._transition(SessionState.PAGE_READY)
        page = await context.new_page()
        resources.push_async_callback(self._release, "page", page.close)
        page.set_default_timeout(self.timeout_ms)
        if self.interceptor is not None:
            await self.interceptor.install(page)
            resources.push_async_callback(self._release, "interception", self.interceptor.remove, page)
        self.events.attach(page)
        resources.push_async_callback(self._release, "listeners", self.events.detach)

        capture = PageCapture()

        self._transition(SessionState.NAVIGATING)
        response = await self._navigate(page)
        if response is None:
            logger.info("No response object for %s, recording status 0", self.config.target_url)
        else:
            capture.headers = dict(response.headers)
            capture.status_code = response.status

        self._transition(SessionState.POST_ACTIONS)
        await self._post_actions(page, capture)

        self._transition(SessionState.CAPTURING)
        await self._capture(page, context, capture)
        return capture

    async def _connect(self) -> Browser:
        family = self.params.family.value
        browser_type = getattr(self._playwright, family)
        descriptor = connection_descriptor(self.endpoint, self.params)
        redacted = f"{self.endpoint}/{family}"
        logger.debug("Connecting to %s (timeout=%dms)", redacted, self.connect_timeout_ms)
        try:
            return await browser_type.connect(descriptor, timeout=self.connect_timeout_ms)
        except PlaywrightError as exc:
            # The descriptor carries proxy credentials; keep it out of the message
            reason = exc.message.replace(descriptor, redacted)
            raise BrowserConnectionError(redacted, reason) from exc

    async def _navigate(self, page: Page) -> Response | None:
        url = self.config.target_url
        wait_until = self.config.wait_until.value
        logger.debug("goto %s (wait_until=%s)", url, wait_until)
        try:
            return await self.events.guard(page.goto(url, wait_until=wait_until))
        except PlaywrightError as exc:
            raise NavigationError(url, exc.message) from exc

    async def _post_actions(self, page: Page, capture: PageCapture) -> None:
        """Run the optional post-navigation actions in their fixed order."""
        cfg = self.config

        if cfg.wait_for:
            logger.debug("Waiting %dms", cfg.wait_for)
            await self.events.guard(page.wait_for_timeout(cfg.wait_for))

        if cfg.wait_for_css:
            logger.debug("Waiting for selector %r", cfg.wait_for_css)
            try:
                await self.events.guard(page.wait_for_selector(cfg.wait_for_css, timeout=self.timeout_ms))
            except PlaywrightTimeout as exc:
                raise SelectorTimeoutError(cfg.wait_for_css, self.timeout_ms) from exc

        if cfg.eval_js is not None:
            script = unquote(cfg.eval_js)
            try:
                capture.eval_result = await self.events.guard(page.evaluate(script))
            except PlaywrightError as exc:
                raise ScriptError(exc.message) from exc
            capture.has_eval_result = True

        if cfg.screenshot:
            # Capture gets half of the request timeout
            image = await self.events.guard(page.screenshot(full_page=True, timeout=self.timeout_ms / 2))
            capture.screenshot = base64.b64encode(image).decode("ascii")
            capture.has_screenshot = True

    async def _capture(self, page: Page, context: BrowserContext, capture: PageCapture) -> None:
        capture.final_url = page.url
        capture.body = await self.events.guard(page.content())
        capture.cookies = [dict(cookie) for cookie in await self.events.guard(context.cookies())]

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    async def _close_browser(self) -> None:
        browser = self._browser
        if browser is None:
            return
        if not browser.is_connected():
            logger.debug("Connection already closed")
            return
        await browser.close()

    async def _release(self, name: str, release: Callable[..., Any], *args: Any) -> None:
        """Run one teardown step, logging instead of raising on failure."""
        try:
            outcome = release(*args)
            if inspect.isawaitable(outcome):
                await outcome
            logger.debug("Released %s", name)
        except Exception as exc:
            logger.warning("Failed to release %s: %s", name, exc)

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def _transition(self, new_state: SessionState) -> None:
        allowed = STATE_TRANSITIONS.get(self.state, [])
        if new_state not in allowed and new_state not in TEARDOWN_STATES:
            logger.warning(
                "Non-standard transition: %s → %s (allowed: %s)",
                self.state.value,
                new_state.value,
                [s.value for s in allowed],
            )
        logger.debug("State: %s → %s", self.state.value, new_state.value)
        self.state = new_state
