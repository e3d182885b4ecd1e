"""Extraction of typed records from fetched page HTML."""

from .base import (
    NOT_AVAILABLE,
    DiscoveryRecord,
    EnrichmentRecord,
    ExtractionFailure,
    clean_text,
    get_field,
)
from .discovery import build_search_url, extract_discovery_records, identifier_from_url
from .enrichment import build_enrichment_record, extract_enrichment_record, find_person

__all__ = [
    "NOT_AVAILABLE",
    "DiscoveryRecord",
    "EnrichmentRecord",
    "ExtractionFailure",
    "clean_text",
    "get_field",
    "build_search_url",
    "extract_discovery_records",
    "identifier_from_url",
    "build_enrichment_record",
    "extract_enrichment_record",
    "find_person",
]
