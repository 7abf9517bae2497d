"""CLI commands for scraping a single URL."""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import typer
from rich.console import Console

scrape_app = typer.Typer(help="Fetch pages through the remote automation service.")
console = Console()
err_console = Console(stderr=True)


@scrape_app.command("url")
def scrape_url(
    url: str = typer.Argument(..., help="The URL to fetch."),
    browser: str = typer.Option("chromium", "--browser", "-b", help="Browser family: chromium, firefox or webkit."),
    proxy: str = typer.Option("none", "--proxy", "-p", help="Proxy type: none, ipv6, mobile, residential, datacenter, custom."),
    headless: str = typer.Option("true", "--headless", help="Run the browser headless (string-boolean)."),
    stealth: str = typer.Option("true", "--stealth", help="Stealth mode, chromium only (string-boolean)."),
    block_ads: str = typer.Option("true", "--block-ads", help="Ad blocking, chromium only (string-boolean)."),
    timeout: Optional[int] = typer.Option(None, "--timeout", "-t", min=0, help="Timeout in ms (0 disables)."),
    block_resources: Optional[str] = typer.Option(None, "--block", help="Comma-separated resource types to block, e.g. image,media."),
    wait_until: str = typer.Option("domcontentloaded", "--wait-until", help="load, domcontentloaded, networkidle or commit."),
    eval_js: Optional[str] = typer.Option(None, "--eval", help="Percent-encoded JavaScript to evaluate in the page."),
    view_source: bool = typer.Option(False, "--view-source", help="Return the unrendered source."),
    screenshot: bool = typer.Option(False, "--screenshot", help="Include a base64 full-page screenshot."),
    wait_for: Optional[int] = typer.Option(None, "--wait-for", min=0, help="Fixed delay in ms after navigation."),
    wait_for_css: Optional[str] = typer.Option(None, "--wait-for-css", help="CSS selector to wait for."),
    endpoint: Optional[str] = typer.Option(None, "--endpoint", help="Override the service websocket endpoint."),
    compact: bool = typer.Option(False, "--compact", help="Print single-line JSON."),
) -> None:
    """Fetch URL and print the result envelope as JSON.

    Exits with code 1 when the envelope is a failure.
    """
    from remote_scraper.scraper import run
    from remote_scraper.settings import get_settings

    settings = get_settings()
    if endpoint:
        settings = settings.model_copy(
            update={"service": settings.service.model_copy(update={"ws_endpoint": endpoint.rstrip("/")})}
        )

    request: dict[str, Any] = {
        "url": url,
        "browser_type": browser,
        "proxy_type": proxy,
        "headless": headless,
        "stealth": stealth,
        "block_ads": block_ads,
        "timeout": timeout,
        "block_resources": block_resources,
        "wait_until": wait_until,
        "eval_js": eval_js,
        "view_source": view_source,
        "screenshot": screenshot,
        "wait_for": wait_for,
        "wait_for_css": wait_for_css,
    }

    result = asyncio.run(run(request, settings=settings))

    if compact:
        typer.echo(result.to_json(indent=None))
    else:
        console.print_json(result.to_json())

    if not result.success:
        err_console.print(f"[red]✗[/red] Scrape failed: {result.error}")
        raise typer.Exit(code=1)
