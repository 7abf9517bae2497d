"""Proxy credential map, read once from ``PROXY_<TYPE>_*`` variables.

Each proxy type other than ``none`` has four variables, for example::

    PROXY_RESIDENTIAL_SERVER=http://proxy.example:3128
    PROXY_RESIDENTIAL_USERNAME=user
    PROXY_RESIDENTIAL_PASSWORD=secret
    PROXY_RESIDENTIAL_BYPASS=.internal,localhost

Unset variables resolve to empty strings. The resulting map is handed to
``build_launch_parameters`` so the builder itself never touches the
process environment.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from remote_scraper.models.config import ProxyCredentials, ProxyType

_FIELDS = ("server", "username", "password", "bypass")


def proxy_env_key(proxy_type: ProxyType, field: str) -> str:
    """Return the variable name holding *field* for *proxy_type*."""
    return f"PROXY_{proxy_type.value.upper()}_{field.upper()}"


def load_proxy_credentials(environ: Mapping[str, str] | None = None) -> dict[ProxyType, ProxyCredentials]:
    """Build the credential map for every proxy type except ``none``.

    Args:
        environ: Source of variables; defaults to ``os.environ``.
    """
    env = os.environ if environ is None else environ
    credentials: dict[ProxyType, ProxyCredentials] = {}
    for proxy_type in ProxyType:
        if proxy_type is ProxyType.NONE:
            continue
        values = {name: env.get(proxy_env_key(proxy_type, name), "") for name in _FIELDS}
        credentials[proxy_type] = ProxyCredentials(**values)
    return credentials
