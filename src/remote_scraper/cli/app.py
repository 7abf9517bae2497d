"""``remote-scraper`` command-line entry point.

Settings come from ``config/settings*.toml`` and ``SCRAPER_*`` variables;
command flags override both for a single invocation.
"""

from __future__ import annotations

import logging
import sys
from importlib.metadata import PackageNotFoundError, version as package_version

import typer
from pydantic import ValidationError

from remote_scraper.cli.scrape_cmd import scrape_app
from remote_scraper.cli.settings_cmd import settings_app

try:
    VERSION = package_version("remote-scraper")
except PackageNotFoundError:
    VERSION = "unknown"

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s — %(message)s"

app = typer.Typer(
    add_completion=True,
    help="remote-scraper: fetch pages through a remote Playwright service.",
)
app.add_typer(scrape_app, name="scrape")
app.add_typer(settings_app, name="settings")


def _configure_logging(level_name: str) -> None:
    # stderr only; stdout carries the JSON envelope
    logging.basicConfig(
        level=getattr(logging, level_name.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%dT%H:%M:%S",
        stream=sys.stderr,
    )
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def _print_version(value: bool) -> None:
    if value:
        typer.echo(f"remote-scraper {VERSION}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", callback=_print_version, is_eager=True, help="Show version and exit."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
) -> None:
    """Fetch pages through a remote Playwright service."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()

    from remote_scraper.settings import get_settings

    try:
        level = get_settings().log_level
    except ValidationError:
        # Left for the sub-command to report (``settings validate`` explains it)
        level = "INFO"
    _configure_logging("DEBUG" if verbose else level)


if __name__ == "__main__":
    app()
