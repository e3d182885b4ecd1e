"""
Batch orchestrator.

Runs crawl units in fixed-size batches: every unit of a batch is launched
before any is awaited, the whole batch settles, and only then does the
next batch start. The browser session is owned here for the duration of
one ``run``.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Generic, Iterable, TypeVar, TYPE_CHECKING

if TYPE_CHECKING:
    from profilecrawl.core.backends.base import BrowserSession


logger = logging.getLogger(__name__)

U = TypeVar("U")

ExecuteFn = Callable[["BrowserSession", U], Awaitable[Any]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class BatchStats:
    """Statistics for one orchestrator run."""

    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    units_total: int = 0
    batches: int = 0
    succeeded: int = 0
    exhausted: int = 0
    failed: int = 0
    records: int = 0

    started_at: datetime = field(default_factory=_utcnow)
    finished_at: datetime | None = None

    errors: list[str] = field(default_factory=list)

    @property
    def settled(self) -> int:
        """Units that reached a terminal outcome."""
        return self.succeeded + self.exhausted + self.failed

    @property
    def duration_seconds(self) -> float | None:
        if self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "units_total": self.units_total,
            "batches": self.batches,
            "succeeded": self.succeeded,
            "exhausted": self.exhausted,
            "failed": self.failed,
            "records": self.records,
            "duration_seconds": self.duration_seconds,
        }


class BatchOrchestrator(Generic[U]):
    """Bounded-concurrency runner over an ordered list of crawl units.

    ``execute(session, unit)`` is expected to handle its own transient
    failures and return an outcome exposing ``succeeded``/``records``
    (see ``UnitOutcome``). Anything it raises is logged against the unit
    and counted as failed; later units and batches still run.
    """

    def __init__(
        self,
        session_factory: Callable[[], BrowserSession],
        batch_size: int = 5,
        *,
        name: str = "crawl",
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.session_factory = session_factory
        self.batch_size = batch_size
        self.name = name

    async def run(
        self,
        units: Iterable[U],
        execute: ExecuteFn,
        *,
        label: Callable[[U], str] = str,
    ) -> BatchStats:
        """Execute every unit exactly once, one batch at a time.

        Args:
            units: Ordered crawl units
            execute: Coroutine function run once per unit
            label: Renders a unit for logs

        Returns:
            BatchStats for the run
        """
        pending = list(units)
        stats = BatchStats(units_total=len(pending))
        extra = {"run_id": stats.run_id}

        if not pending:
            logger.info(f"[{self.name}] Nothing to crawl", extra=extra)
            stats.finished_at = _utcnow()
            return stats

        total_batches = (len(pending) + self.batch_size - 1) // self.batch_size

        async with self.session_factory() as session:
            for offset in range(0, len(pending), self.batch_size):
                batch = pending[offset:offset + self.batch_size]
                stats.batches += 1
                logger.info(
                    f"[{self.name}] Batch {stats.batches}/{total_batches}: "
                    f"{len(batch)} unit(s)",
                    extra=extra,
                )

                try:
                    results = await asyncio.gather(
                        *(execute(session, unit) for unit in batch),
                        return_exceptions=True,
                    )
                except Exception as e:
                    # Defects raised while launching the batch itself
                    logger.exception(f"[{self.name}] Failed to process batch {stats.batches}", extra=extra)
                    stats.failed += len(batch)
                    stats.errors.append(f"batch {stats.batches}: {e}")
                    continue

                for unit, result in zip(batch, results):
                    self._record(stats, label(unit), result, extra)

        stats.finished_at = _utcnow()
        logger.info(
            f"[{self.name}] Finished {stats.units_total} unit(s): "
            f"{stats.succeeded} succeeded, {stats.exhausted} exhausted, {stats.failed} failed",
            extra=extra,
        )
        return stats

    def _record(self, stats: BatchStats, unit: str, result: Any, extra: dict[str, Any]) -> None:
        if isinstance(result, BaseException):
            stats.failed += 1
            stats.errors.append(f"{unit}: {result}")
            logger.error(
                f"[{self.name}] Unit {unit} failed: {result!r}",
                exc_info=(type(result), result, result.__traceback__),
                extra={**extra, "unit": unit},
            )
            return

        if getattr(result, "succeeded", True):
            stats.succeeded += 1
        else:
            stats.exhausted += 1
            error = getattr(result, "error", None)
            if error:
                stats.errors.append(f"{unit}: {error}")

        stats.records += int(getattr(result, "records", 0) or 0)
