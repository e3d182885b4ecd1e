"""
Crawl pipeline runner.

Coordinates the two-stage workflow: discovery over every keyword, then
enrichment over each keyword's discovered rows once discovery has fully
finished.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import Any, Callable, Iterable, TYPE_CHECKING

from profilecrawl.core.backends.playwright_backend import PlaywrightSession
from profilecrawl.core.extract import DiscoveryRecord, ExtractionFailure
from profilecrawl.core.fetch.proxy import ProxyUrlBuilder
from profilecrawl.core.fetch.retries import RetryPolicy
from profilecrawl.persistence.sink import CsvSink, slugify_keyword

from .batch import BatchOrchestrator, BatchStats
from .tasks import DiscoveryTask, EnrichmentTask

if TYPE_CHECKING:
    from profilecrawl.core.backends.base import BrowserSession
    from profilecrawl.core.config.models import AppConfig


logger = logging.getLogger(__name__)


@dataclass
class PipelineStats:
    """Statistics for a full pipeline run."""

    discovery: BatchStats | None = None
    enrichment: dict[str, BatchStats] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)

    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None

    @property
    def duration_seconds(self) -> float | None:
        if self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return None

    @property
    def errors_count(self) -> int:
        stages = ([self.discovery] if self.discovery else []) + list(self.enrichment.values())
        return sum(s.exhausted + s.failed for s in stages)

    def to_dict(self) -> dict[str, Any]:
        return {
            "discovery": self.discovery.to_dict() if self.discovery else None,
            "enrichment": {k: v.to_dict() for k, v in self.enrichment.items()},
            "skipped": list(self.skipped),
            "duration_seconds": self.duration_seconds,
        }


class CrawlPipeline:
    """Two-stage crawl driver.

    All collaborators are injectable; by default they are built from the
    configuration (Playwright session, CSV sink in the output directory,
    proxy builder from the API key and location).
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        sink: CsvSink | None = None,
        proxy: ProxyUrlBuilder | None = None,
        session_factory: Callable[[], BrowserSession] | None = None,
    ) -> None:
        self.config = config
        self.sink = sink or CsvSink(config.output.directory)
        self.proxy = proxy or ProxyUrlBuilder.from_config(config)
        self.session_factory = session_factory or partial(PlaywrightSession.from_config, config.browser)
        self.policy = RetryPolicy.from_config(config.crawl)

    # -------------------------------------------------------------------------
    # Destinations
    # -------------------------------------------------------------------------

    def discovery_destination(self, keyword: str) -> str:
        """``bill gates`` -> ``bill-gates.csv``"""
        return f"{slugify_keyword(keyword)}.csv"

    def enrichment_destination(self, discovery_destination: str | Path) -> str:
        """``bill-gates.csv`` -> ``bill-gates-profiles.csv``"""
        stem = Path(discovery_destination).stem
        return f"{stem}{self.config.output.enrichment_suffix}.csv"

    def _orchestrator(self, name: str) -> BatchOrchestrator:
        return BatchOrchestrator(
            self.session_factory,
            batch_size=self.config.crawl.batch_size,
            name=name,
        )

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    async def run_discovery(self, keywords: Iterable[str] | None = None) -> BatchStats:
        """Stage A over all keywords in one orchestrator run."""
        keywords = list(self.config.crawl.keywords if keywords is None else keywords)

        task = DiscoveryTask(self.sink, self.proxy, self.policy, self.discovery_destination)

        logger.info(f"Crawl starting: {len(keywords)} keyword(s)")
        stats = await self._orchestrator("discovery").run(keywords, task)
        logger.info(f"Crawl complete in {stats.duration_seconds or 0:.2f}s")
        return stats

    def load_rows(self, destination: str | Path) -> list[DiscoveryRecord]:
        """Read a discovery file back into records, skipping unusable rows."""
        rows: list[DiscoveryRecord] = []
        for index, row in enumerate(self.sink.read_all(destination)):
            try:
                rows.append(DiscoveryRecord.from_row(row))
            except ExtractionFailure as e:
                logger.warning(f"Skipping row {index} of {destination}: {e}")
        return rows

    async def run_enrichment(self, destinations: Iterable[str | Path]) -> dict[str, BatchStats]:
        """Stage B over each discovery file, one orchestrator run per file."""
        results: dict[str, BatchStats] = {}

        logger.info("Starting scrape")
        for destination in destinations:
            rows = self.load_rows(destination)
            output = self.enrichment_destination(destination)
            task = EnrichmentTask(self.sink, self.proxy, self.policy, output)

            logger.info(f"Enriching {len(rows)} row(s) from {destination} -> {output}")
            stats = await self._orchestrator(f"enrichment:{Path(destination).stem}").run(
                rows,
                task,
                label=lambda row: row.name,
            )
            logger.info(f"Processed {destination} in {stats.duration_seconds or 0:.2f}s")
            results[str(destination)] = stats
        logger.info("Scrape complete")

        return results

    async def run(self, keywords: Iterable[str] | None = None) -> PipelineStats:
        """Run discovery for every keyword, then enrichment for each output."""
        keywords = list(self.config.crawl.keywords if keywords is None else keywords)
        stats = PipelineStats()

        stats.discovery = await self.run_discovery(keywords)

        destinations: list[str] = []
        for keyword in keywords:
            destination = self.discovery_destination(keyword)
            if self.sink.exists(destination):
                destinations.append(destination)
            else:
                logger.warning(f"No discovery output for '{keyword}', skipping enrichment")
                stats.skipped.append(keyword)

        stats.enrichment = await self.run_enrichment(destinations)
        stats.finished_at = datetime.now(timezone.utc)
        return stats
