"""
Crawl commands for running discovery and enrichment.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="Run crawl jobs",
    no_args_is_help=True,
)


# Shared options
ConfigOption = typer.Option(None, "--config", "-c", help="Path to app.yaml / config.json")
KeywordOption = typer.Option(None, "--keyword", "-k", help="Search keyword (repeatable)")
LocationOption = typer.Option(None, "--location", "-l", help="Proxy country code")
BatchSizeOption = typer.Option(None, "--batch-size", "-b", min=1, help="Units crawled concurrently")
MaxAttemptsOption = typer.Option(None, "--max-attempts", "-r", min=0, help="Retries per unit")
OutputDirOption = typer.Option(None, "--output-dir", "-o", help="Directory for CSV output")
HeadlessOption = typer.Option(None, "--headless/--headed", help="Run the browser headless")
LogLevelOption = typer.Option(None, "--log-level", help="Log level override")


def _load_config(
    config_path: Optional[Path],
    keywords: Optional[list[str]],
    location: Optional[str],
    batch_size: Optional[int],
    max_attempts: Optional[int],
    output_dir: Optional[Path],
    headless: Optional[bool],
    log_level: Optional[str],
):
    """Load configuration, apply CLI overrides and set up logging."""
    from profilecrawl.core.config.loader import ConfigError, load_app_config
    from profilecrawl.core.logging import setup_logging

    overrides: dict[str, dict[str, Any]] = {
        "crawl": {
            "keywords": keywords or None,
            "location": location,
            "batch_size": batch_size,
            "max_attempts": max_attempts,
        },
        "output": {"directory": output_dir},
        "browser": {"headless": headless},
        "logging": {"level": log_level},
    }

    try:
        config = load_app_config(config_path, overrides=overrides)
    except ConfigError as e:
        err_console.print(f"[red]Error loading config:[/red] {e}")
        if e.details:
            err_console.print(f"[dim]{e.details}[/dim]")
        raise typer.Exit(1)

    config.ensure_directories()
    setup_logging(
        level=config.logging.level,
        log_file=config.logging.file,
        json_format=config.logging.json_format,
        rich_console=config.logging.rich_console,
    )

    if not config.proxy.api_key:
        err_console.print("[yellow]No proxy API key configured - navigating directly[/yellow]")

    return config


@app.command("run")
def run_crawl(
    config_path: Optional[Path] = ConfigOption,
    keywords: Optional[list[str]] = KeywordOption,
    location: Optional[str] = LocationOption,
    batch_size: Optional[int] = BatchSizeOption,
    max_attempts: Optional[int] = MaxAttemptsOption,
    output_dir: Optional[Path] = OutputDirOption,
    headless: Optional[bool] = HeadlessOption,
    log_level: Optional[str] = LogLevelOption,
) -> None:
    """Discover profiles for every keyword, then enrich them.

    Examples:
        profilecrawl crawl run -k "bill gates" -k "elon musk"
        profilecrawl crawl run --config configs/app.yaml --batch-size 10
    """
    from profilecrawl.core.orchestrator import CrawlPipeline

    config = _load_config(
        config_path, keywords, location, batch_size, max_attempts, output_dir, headless, log_level,
    )
    if not config.crawl.keywords:
        err_console.print("[red]No keywords given[/red] (use --keyword or crawl.keywords)")
        raise typer.Exit(1)

    pipeline = CrawlPipeline(config)
    stats = asyncio.run(pipeline.run())

    rows = [("discovery", stats.discovery)] if stats.discovery else []
    rows += [(f"enrichment: {Path(name).name}", s) for name, s in stats.enrichment.items()]
    console.print()
    _show_summary(rows)

    if stats.skipped:
        console.print(f"[yellow]No discovery output for:[/yellow] {', '.join(stats.skipped)}")


@app.command("discover")
def discover(
    config_path: Optional[Path] = ConfigOption,
    keywords: Optional[list[str]] = KeywordOption,
    location: Optional[str] = LocationOption,
    batch_size: Optional[int] = BatchSizeOption,
    max_attempts: Optional[int] = MaxAttemptsOption,
    output_dir: Optional[Path] = OutputDirOption,
    headless: Optional[bool] = HeadlessOption,
    log_level: Optional[str] = LogLevelOption,
) -> None:
    """Run only the discovery stage (search listing -> CSV)."""
    from profilecrawl.core.orchestrator import CrawlPipeline

    config = _load_config(
        config_path, keywords, location, batch_size, max_attempts, output_dir, headless, log_level,
    )
    if not config.crawl.keywords:
        err_console.print("[red]No keywords given[/red] (use --keyword or crawl.keywords)")
        raise typer.Exit(1)

    pipeline = CrawlPipeline(config)
    stats = asyncio.run(pipeline.run_discovery())

    console.print()
    _show_summary([("discovery", stats)])


@app.command("enrich")
def enrich(
    files: list[Path] = typer.Argument(..., help="Discovery CSV files to enrich"),
    config_path: Optional[Path] = ConfigOption,
    location: Optional[str] = LocationOption,
    batch_size: Optional[int] = BatchSizeOption,
    max_attempts: Optional[int] = MaxAttemptsOption,
    output_dir: Optional[Path] = OutputDirOption,
    headless: Optional[bool] = HeadlessOption,
    log_level: Optional[str] = LogLevelOption,
) -> None:
    """Run only the enrichment stage over existing discovery files.

    Examples:
        profilecrawl crawl enrich data/bill-gates.csv
    """
    from profilecrawl.core.orchestrator import CrawlPipeline

    config = _load_config(
        config_path, None, location, batch_size, max_attempts, output_dir, headless, log_level,
    )

    missing = [str(f) for f in files if not f.is_file()]
    if missing:
        err_console.print(f"[red]File(s) not found:[/red] {', '.join(missing)}")
        raise typer.Exit(1)

    # Absolute paths bypass the sink's output directory when reading
    pipeline = CrawlPipeline(config)
    results = asyncio.run(pipeline.run_enrichment([f.resolve() for f in files]))

    console.print()
    _show_summary([(f"enrichment: {Path(name).name}", s) for name, s in results.items()])


def _show_summary(all_stats: list) -> None:
    """Show summary table of crawl results."""
    table = Table(title="Crawl Summary")

    table.add_column("Stage", style="cyan")
    table.add_column("Units", justify="right")
    table.add_column("Succeeded", justify="right", style="green")
    table.add_column("Exhausted", justify="right", style="yellow")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Records", justify="right")
    table.add_column("Duration", justify="right")

    for stage_name, stats in all_stats:
        duration = f"{stats.duration_seconds:.1f}s" if stats.duration_seconds else "-"

        table.add_row(
            stage_name,
            str(stats.units_total),
            str(stats.succeeded),
            str(stats.exhausted),
            str(stats.failed),
            str(stats.records),
            duration,
        )

    console.print(table)

    for stage_name, stats in all_stats:
        if stats.errors:
            console.print()
            console.print(f"[red]Errors from {stage_name}:[/red]")
            for error in stats.errors[:5]:
                console.print(f"  • {escape(error)}")
            if len(stats.errors) > 5:
                console.print(f"  [dim]... and {len(stats.errors) - 5} more[/dim]")
