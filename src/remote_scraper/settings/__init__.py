"""Settings package: pydantic-settings config and the proxy credential map."""

from remote_scraper.settings.config import Settings, get_settings
from remote_scraper.settings.proxies import load_proxy_credentials

__all__ = ["Settings", "get_settings", "load_proxy_credentials"]
