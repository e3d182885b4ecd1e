"""
profilecrawl CLI - Main entry point.

A terminal-first two-stage crawler: discover profiles from a search
listing, then enrich each discovered profile from its detail page.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.traceback import install as install_rich_traceback

from profilecrawl import __app_name__, __version__

# Load environment variables from .env (if present)
load_dotenv()

# Install rich traceback for better error display
install_rich_traceback(show_locals=False, width=120)

console = Console()
err_console = Console(stderr=True)

# Create main app
app = typer.Typer(
    name=__app_name__,
    help="Two-stage people-search crawler",
    rich_markup_mode="rich",
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]{__app_name__}[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """profilecrawl - discover and enrich public profiles."""
    pass


# =============================================================================
# Import and register subcommand modules
# =============================================================================

from .commands import crawl  # noqa: E402

app.add_typer(crawl.app, name="crawl", help="Run crawl jobs")


# =============================================================================
# Init Command
# =============================================================================


DEFAULT_APP_CONFIG = """\
# profilecrawl configuration
# Values of the form ${VAR} or ${VAR:-default} are read from the environment
# (a .env file in the working directory is loaded first).

crawl:
  keywords:
    - bill gates
    - elon musk
  location: us
  batch_size: 5
  max_attempts: 3
  retry_backoff_seconds: 0

proxy:
  api_key: ${SCRAPEOPS_API_KEY:-}
  endpoint: https://proxy.scrapeops.io/v1/

browser:
  browser: chromium
  headless: true
  navigation_timeout_ms: 0
  stealth: true

output:
  directory: data
  enrichment_suffix: -profiles

logging:
  level: INFO
  file: logs/profilecrawl.log
  json_format: true
  rich_console: true
"""


@app.command()
def init(
    path: Path = typer.Option(
        Path("configs/app.yaml"),
        "--path",
        "-p",
        help="Where to write the configuration file",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration",
    ),
) -> None:
    """Create a default configuration file and output directories."""
    if path.exists() and not force:
        err_console.print(f"[yellow]{path} already exists[/yellow] (use --force to overwrite)")
        raise typer.Exit(1)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_APP_CONFIG, encoding="utf-8")

    for dir_path in (Path("data"), Path("logs")):
        dir_path.mkdir(parents=True, exist_ok=True)

    console.print(Panel.fit(
        "[bold green]OK - profilecrawl initialized[/bold green]\n\n"
        "Created:\n"
        f"  - [cyan]{path}[/cyan] - Application configuration\n"
        "  - [cyan]data/[/cyan] - CSV output\n"
        "  - [cyan]logs/[/cyan] - Log files\n\n"
        "Next steps:\n"
        "  1. Put SCRAPEOPS_API_KEY in [yellow].env[/yellow]\n"
        "  2. Run a crawl: [yellow]profilecrawl crawl run -k \"bill gates\"[/yellow]",
        title="[bold]Initialization Complete[/bold]",
        border_style="green",
    ))


if __name__ == "__main__":
    app()
