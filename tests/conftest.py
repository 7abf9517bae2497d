"""Scraper test configuration — shared fixtures and in-process Playwright fakes."""

from __future__ import annotations

import inspect
from typing import Any

import pytest
from playwright.async_api import Error as PlaywrightError


@pytest.fixture()
def anyio_backend() -> str:
    """Run anyio-marked tests on asyncio only (Playwright is asyncio-based)."""
    return "asyncio"


# ---------------------------------------------------------------------------
# Settings / environment
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Clear the settings LRU cache between tests."""
    from remote_scraper.settings.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _isolate_proxy_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep PROXY_* and BROWSER_WS_ENDPOINT from the developer's shell out of the tests."""
    import os

    for key in list(os.environ):
        if key.startswith("PROXY_") or key == "BROWSER_WS_ENDPOINT":
            monkeypatch.delenv(key, raising=False)


# ---------------------------------------------------------------------------
# Playwright fakes
#
# Small async stand-ins for Browser / BrowserContext / Page that record every
# lifecycle call in a shared ``log`` so tests can assert ordering.
# ---------------------------------------------------------------------------


class FakeResponse:
    def __init__(self, status: int = 200, headers: dict[str, str] | None = None) -> None:
        self.status = status
        self.headers = headers if headers is not None else {"content-type": "text/html; charset=utf-8"}


class FakeDialog:
    def __init__(self, type: str = "alert", message: str = "Hello!", fail: bool = False) -> None:
        self.type = type
        self.message = message
        self.fail = fail
        self.dismissed = False

    async def dismiss(self) -> None:
        if self.fail:
            raise PlaywrightError("Target page, context or browser has been closed")
        self.dismissed = True


class FakePage:
    def __init__(self, log: list[str]) -> None:
        self.log = log
        self.url = "about:blank"
        self.listeners: dict[str, list[Any]] = {}
        self.routes: list[tuple[str, Any]] = []
        self.default_timeout: float | None = None
        self.calls: list[tuple[Any, ...]] = []

        # Behaviour knobs
        self.response: FakeResponse | None = FakeResponse()
        self.redirect_to: str | None = None
        self.html = "<html><head></head><body><h1>ok</h1></body></html>"
        self.on_goto: Any = None
        self.goto_error: Exception | None = None
        self.selector_error: Exception | None = None
        self.evaluate_result: Any = None
        self.evaluate_error: Exception | None = None
        self.screenshot_bytes = b"\x89PNG\r\n\x1a\nfake"
        self.close_error: Exception | None = None

    # events ------------------------------------------------------------

    def on(self, event: str, handler: Any) -> None:
        self.listeners.setdefault(event, []).append(handler)

    def remove_listener(self, event: str, handler: Any) -> None:
        self.listeners.get(event, []).remove(handler)
        self.log.append(f"page.off:{event}")

    def listener_count(self) -> int:
        return sum(len(handlers) for handlers in self.listeners.values())

    async def emit(self, event: str, arg: Any) -> None:
        for handler in list(self.listeners.get(event, [])):
            outcome = handler(arg)
            if inspect.isawaitable(outcome):
                await outcome

    # page API ----------------------------------------------------------

    def set_default_timeout(self, timeout: float) -> None:
        self.default_timeout = timeout

    async def route(self, pattern: str, handler: Any) -> None:
        self.routes.append((pattern, handler))
        self.log.append("page.route")

    async def unroute(self, pattern: str, handler: Any = None) -> None:
        self.routes = [r for r in self.routes if r != (pattern, handler)]
        self.log.append("page.unroute")

    async def goto(self, url: str, wait_until: str | None = None) -> FakeResponse | None:
        self.calls.append(("goto", url, wait_until))
        self.log.append("page.goto")
        if self.on_goto is not None:
            await self.on_goto(self)
        if self.goto_error is not None:
            raise self.goto_error
        self.url = self.redirect_to or url
        return self.response

    async def wait_for_timeout(self, timeout: float) -> None:
        self.calls.append(("wait_for_timeout", timeout))

    async def wait_for_selector(self, selector: str, timeout: float | None = None) -> None:
        self.calls.append(("wait_for_selector", selector, timeout))
        if self.selector_error is not None:
            raise self.selector_error

    async def evaluate(self, expression: str) -> Any:
        self.calls.append(("evaluate", expression))
        if self.evaluate_error is not None:
            raise self.evaluate_error
        return self.evaluate_result

    async def screenshot(self, full_page: bool = False, timeout: float | None = None) -> bytes:
        self.calls.append(("screenshot", full_page, timeout))
        return self.screenshot_bytes

    async def content(self) -> str:
        return self.html

    async def close(self) -> None:
        self.log.append("page.close")
        if self.close_error is not None:
            raise self.close_error
        # A real page reports its own close to whoever still listens
        await self.emit("close", self)


class FakeContext:
    def __init__(self, log: list[str], page: FakePage) -> None:
        self.log = log
        self.page = page
        self.cookie_jar: list[dict[str, Any]] = [
            {"name": "sid", "value": "abc123", "domain": "example.com", "path": "/"},
        ]
        self.close_error: Exception | None = None

    async def new_page(self) -> FakePage:
        self.log.append("context.new_page")
        return self.page

    async def cookies(self) -> list[dict[str, Any]]:
        return list(self.cookie_jar)

    async def close(self) -> None:
        self.log.append("context.close")
        if self.close_error is not None:
            raise self.close_error


class FakeBrowser:
    def __init__(self, log: list[str], context: FakeContext) -> None:
        self.log = log
        self.context = context
        self.connected = True
        self.context_kwargs: dict[str, Any] | None = None
        self.close_error: Exception | None = None

    def is_connected(self) -> bool:
        return self.connected

    async def new_context(self, **kwargs: Any) -> FakeContext:
        self.log.append("browser.new_context")
        self.context_kwargs = kwargs
        return self.context

    async def close(self) -> None:
        self.log.append("browser.close")
        if self.close_error is not None:
            raise self.close_error
        self.connected = False


class FakeBrowserType:
    def __init__(self, name: str, log: list[str], browser: FakeBrowser) -> None:
        self.name = name
        self.log = log
        self.browser = browser
        self.connect_error: Exception | None = None
        self.connections: list[tuple[str, float | None]] = []

    async def connect(self, ws_endpoint: str, timeout: float | None = None) -> FakeBrowser:
        self.connections.append((ws_endpoint, timeout))
        self.log.append(f"{self.name}.connect")
        if self.connect_error is not None:
            raise self.connect_error
        return self.browser


class FakePlaywright:
    """One pre-wired connection → context → page chain per instance."""

    def __init__(self) -> None:
        self.log: list[str] = []
        self.page = FakePage(self.log)
        self.context = FakeContext(self.log, self.page)
        self.browser = FakeBrowser(self.log, self.context)
        self.chromium = FakeBrowserType("chromium", self.log, self.browser)
        self.firefox = FakeBrowserType("firefox", self.log, self.browser)
        self.webkit = FakeBrowserType("webkit", self.log, self.browser)


@pytest.fixture()
def fake_pw() -> FakePlaywright:
    """Return a fresh ``FakePlaywright``."""
    return FakePlaywright()


@pytest.fixture()
def fake_dialog():
    """Factory for ``FakeDialog`` objects."""
    return FakeDialog


@pytest.fixture()
def fake_response():
    """Factory for ``FakeResponse`` objects."""
    return FakeResponse


@pytest.fixture()
def make_session(fake_pw: FakePlaywright):
    """Factory building a ``ScrapeSession`` wired to ``fake_pw``.

    Keyword arguments become ``ScrapeConfig`` fields; ``url`` defaults to
    ``https://example.com``. Pass ``proxies=`` to supply a credential map.
    """
    from remote_scraper.browser.launch import build_launch_parameters
    from remote_scraper.browser.session import ScrapeSession
    from remote_scraper.models.config import ScrapeConfig

    def _factory(proxies: dict | None = None, **fields: Any) -> ScrapeSession:
        fields.setdefault("url", "https://example.com")
        config = ScrapeConfig(**fields)
        params = build_launch_parameters(config, proxies or {})
        return ScrapeSession(
            config,
            params,
            fake_pw,
            endpoint="ws://service:3000",
            connect_timeout_ms=5_000,
            default_timeout_ms=60_000,
        )

    return _factory


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests that require a running automation service")
    config.addinivalue_line("markers", "slow: marks tests that take more than a few seconds")
