"""Orchestrator - batching, task execution, pipeline coordination."""

from .batch import BatchOrchestrator, BatchStats
from .runner import CrawlPipeline, PipelineStats
from .tasks import DiscoveryTask, EnrichmentTask, UnitOutcome

__all__ = [
    "BatchOrchestrator",
    "BatchStats",
    "CrawlPipeline",
    "PipelineStats",
    "DiscoveryTask",
    "EnrichmentTask",
    "UnitOutcome",
]
