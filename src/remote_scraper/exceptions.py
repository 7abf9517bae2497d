"""Scraper exception hierarchy.

Every error raised inside a scrape session derives from ``ScraperError`` and is
normalized into a ``ScrapeFailure`` envelope at the ``run`` boundary.
"""

from __future__ import annotations


class ScraperError(Exception):
    """Base exception for all scraper-specific errors."""


class BrowserConnectionError(ScraperError):
    """Raised when the remote automation service cannot be reached.

    Attributes:
        endpoint: The service endpoint (without launch parameters).
        reason: Underlying error message.
    """

    def __init__(self, endpoint: str, reason: str) -> None:
        self.endpoint = endpoint
        self.reason = reason
        super().__init__(f"Could not connect to {endpoint}: {reason}")


class NavigationError(ScraperError):
    """Raised when navigation fails (timeout, DNS, TLS, connection reset)."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Navigation to {url} failed: {reason}")


class ScriptError(ScraperError):
    """Raised when the user-supplied script throws inside the page."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Script evaluation failed: {reason}")


class SelectorTimeoutError(ScraperError):
    """Raised when a wait-for selector does not appear within the timeout."""

    def __init__(self, selector: str, timeout_ms: int) -> None:
        self.selector = selector
        self.timeout_ms = timeout_ms
        super().__init__(f"Selector {selector!r} did not appear within {timeout_ms}ms")


class PageCrashError(ScraperError):
    """Raised when the remote render process dies."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"Page crashed on {url}")


class PageClosedError(ScraperError):
    """Raised when the page is closed by someone other than the session."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"Page closed on {url}")


class ProxyConfigError(ScraperError):
    """Raised in strict proxy mode when a proxy type has no server configured."""

    def __init__(self, proxy_type: str) -> None:
        self.proxy_type = proxy_type
        super().__init__(
            f"Proxy type {proxy_type!r} requested but PROXY_{proxy_type.upper()}_SERVER is not set"
        )
