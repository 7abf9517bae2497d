"""Request, result and state models."""

from remote_scraper.models.config import (
    BrowserType,
    ProxyCredentials,
    ProxyType,
    ScrapeConfig,
    WaitUntil,
    parse_bool,
)
from remote_scraper.models.results import PageCapture, ScrapeFailure, ScrapeResult, ScrapeSuccess
from remote_scraper.models.states import SessionState

__all__ = [
    "BrowserType",
    "PageCapture",
    "ProxyCredentials",
    "ProxyType",
    "ScrapeConfig",
    "ScrapeFailure",
    "ScrapeResult",
    "ScrapeSuccess",
    "SessionState",
    "WaitUntil",
    "parse_bool",
]
