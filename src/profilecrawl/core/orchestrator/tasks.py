"""
Task executors for the two crawl stages.

Each executor handles one crawl unit: it builds the target URL, runs the
fetch-and-extract work through the retry wrapper (one fresh browsing
context per attempt) and returns a single ``UnitOutcome``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from profilecrawl.core.backends.base import NavigationFailure
from profilecrawl.core.config.models import Stage
from profilecrawl.core.extract import (
    DiscoveryRecord,
    EnrichmentRecord,
    build_search_url,
    extract_discovery_records,
    extract_enrichment_record,
)
from profilecrawl.core.fetch.retries import RetryPhase, RetryPolicy, RetryState, attempt_with_retry
from profilecrawl.core.logging import get_contextual_logger

if TYPE_CHECKING:
    from profilecrawl.core.backends.base import BrowserSession, BrowsingContext
    from profilecrawl.core.fetch.proxy import ProxyUrlBuilder
    from profilecrawl.persistence.sink import CsvSink


def _is_success(status: int) -> bool:
    return 200 <= status < 300


@dataclass
class UnitOutcome:
    """Terminal outcome of one crawl unit."""

    unit: str
    phase: RetryPhase
    attempts: int = 0
    records: int = 0
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.phase is RetryPhase.SUCCEEDED

    @classmethod
    def from_state(cls, state: RetryState, records: int = 0) -> "UnitOutcome":
        return cls(
            unit=state.unit,
            phase=state.phase,
            attempts=state.attempts_used,
            records=records if state.succeeded else 0,
            error=str(state.last_error) if state.exhausted and state.last_error else None,
        )


class DiscoveryTask:
    """Stage A: search one keyword and stream every result card to the sink."""

    stage = Stage.DISCOVERY

    def __init__(
        self,
        sink: CsvSink,
        proxy: ProxyUrlBuilder,
        policy: RetryPolicy,
        destination_for: Callable[[str], str | Path],
    ) -> None:
        self.sink = sink
        self.proxy = proxy
        self.policy = policy
        self.destination_for = destination_for

    async def __call__(self, session: BrowserSession, keyword: str) -> UnitOutcome:
        log = get_contextual_logger("tasks", stage=self.stage.value, unit=keyword)
        search_url = build_search_url(keyword)
        target = self.proxy.build(search_url)
        destination = self.destination_for(keyword)

        async def work(context: BrowsingContext) -> int:
            status = await context.goto(target)
            if not _is_success(status):
                raise NavigationFailure(
                    f"Failed to fetch search page, status: {status}",
                    url=search_url,
                    status_code=status,
                )
            log.info(f"Successfully fetched: {search_url}")

            html = await context.content()
            written = 0
            for record in extract_discovery_records(html, url=search_url):
                self.sink.append([record.to_dict()], destination)
                written += 1
            return written

        state = await attempt_with_retry(keyword, work, session, self.policy, target=target)
        if state.succeeded:
            log.info(f"Discovered {state.result} profile(s) -> {destination}")
        return UnitOutcome.from_state(state, records=state.result or 0)


class EnrichmentTask:
    """Stage B: fetch one discovered profile and write its attributes."""

    stage = Stage.ENRICHMENT

    def __init__(
        self,
        sink: CsvSink,
        proxy: ProxyUrlBuilder,
        policy: RetryPolicy,
        destination: str | Path,
    ) -> None:
        self.sink = sink
        self.proxy = proxy
        self.policy = policy
        self.destination = destination

    async def __call__(self, session: BrowserSession, row: DiscoveryRecord) -> UnitOutcome:
        log = get_contextual_logger("tasks", stage=self.stage.value, unit=row.name)
        target = self.proxy.build(row.url)

        async def work(context: BrowsingContext) -> EnrichmentRecord:
            status = await context.goto(target)
            if not _is_success(status):
                raise NavigationFailure(
                    f"Failed to fetch page, status: {status}",
                    url=row.url,
                    status_code=status,
                )
            html = await context.content()
            return extract_enrichment_record(html, row.name, url=row.url)

        state = await attempt_with_retry(row.name, work, session, self.policy, target=target)
        if not state.succeeded:
            return UnitOutcome.from_state(state)

        self.sink.append([state.result.to_dict()], self.destination)
        log.info(f"Successfully parsed {row.url}")
        return UnitOutcome.from_state(state, records=1)
