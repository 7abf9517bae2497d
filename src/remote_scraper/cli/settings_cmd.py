"""``settings`` sub-commands: print and check the resolved configuration."""

from __future__ import annotations

import json

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

settings_app = typer.Typer(help="Inspect and validate scraper configuration.")
console = Console()


@settings_app.command("show")
def show_settings() -> None:
    """Print the resolved settings as JSON."""
    from remote_scraper.settings import get_settings

    try:
        settings = get_settings()
    except ValidationError as exc:
        console.print(f"[red]✗[/red] Invalid settings:\n{escape(str(exc))}")
        raise typer.Exit(code=1)
    console.print_json(json.dumps(settings.model_dump(mode="json"), default=str))


@settings_app.command("validate")
def validate_settings() -> None:
    """Load the settings and summarize what a scrape would use."""
    from remote_scraper.settings import get_settings, load_proxy_credentials

    try:
        settings = get_settings()
    except ValidationError as exc:
        console.print(f"[red]✗[/red] Invalid settings:\n{escape(str(exc))}")
        raise typer.Exit(code=1)

    proxies = sorted(p.value for p, creds in load_proxy_credentials().items() if creds.server)

    console.print("[green]✓[/green] Settings are valid.")
    console.print(f"  Environment: {settings.env}")
    console.print(f"  Service endpoint: {settings.service.ws_endpoint}")
    console.print(f"  Connect timeout: {settings.service.connect_timeout_ms}ms")
    console.print(f"  Default timeout: {settings.scrape.timeout_ms}ms")
    console.print(f"  Proxies with a server: {', '.join(proxies) or 'none'}")
    if settings.proxy.strict:
        console.print("  Strict proxy mode: requests for unconfigured proxies will fail")
