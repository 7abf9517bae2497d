"""Remote Scraper — fetch pages through a remote Playwright service under a per-request policy."""

from __future__ import annotations

try:
    from importlib.metadata import version

    __version__ = version("remote-scraper")
except Exception:
    __version__ = "0.0.0"
