"""
Profile-page extraction (Stage B).

Reads the JSON-LD block embedded in a profile page's ``<head>``, selects
the first schema.org ``Person`` entity of its graph and maps it to an
``EnrichmentRecord``. Every field is optional; absent data falls back to
the sentinel (or 0 for followers).
"""

from __future__ import annotations

import json
import logging
from typing import Any

from lxml import html as lxml_html
from lxml.etree import ParserError

from .base import NOT_AVAILABLE, EnrichmentRecord, ExtractionFailure, get_field

logger = logging.getLogger(__name__)


JSONLD_SELECTOR = "head script[type='application/ld+json']"

PERSON_TYPE = "Person"
FOLLOWS_NAME = "Follows"
COUNTER_TYPE = "InteractionCounter"


def _has_type(entity: Any, type_name: str) -> bool:
    entity_type = get_field(entity, "@type")
    if isinstance(entity_type, list):
        return type_name in entity_type
    return entity_type == type_name


def load_jsonld(html: str, url: str | None = None) -> Any:
    """Parse the first JSON-LD script in the page head.

    Raises:
        ExtractionFailure: If the page has no JSON-LD block or it is malformed
    """
    try:
        tree = lxml_html.fromstring(html)
    except (ParserError, ValueError) as e:
        raise ExtractionFailure(f"HTML parse error: {e}", url=url, cause=e) from e

    scripts = tree.cssselect(JSONLD_SELECTOR)
    if not scripts:
        raise ExtractionFailure("No JSON-LD block in page head", url=url)

    try:
        return json.loads(scripts[0].text_content())
    except json.JSONDecodeError as e:
        raise ExtractionFailure(f"Malformed JSON-LD: {e}", url=url, cause=e) from e


def graph_entities(document: Any) -> list[Any]:
    """Return the entity list of a JSON-LD document.

    Accepts an ``@graph`` wrapper, a bare list of entities, or a single
    entity object.
    """
    graph = get_field(document, "@graph")
    if isinstance(graph, list):
        return graph
    if isinstance(document, list):
        return document
    if isinstance(document, dict):
        return [document]
    return []


def find_person(document: Any) -> dict[str, Any]:
    """First ``Person`` entity in the graph, or an empty dict."""
    for entity in graph_entities(document):
        if isinstance(entity, dict) and _has_type(entity, PERSON_TYPE):
            return entity
    return {}


def follower_count(person: dict[str, Any]) -> int:
    """Read the "Follows" interaction counter, else 0."""
    stats = get_field(person, "interactionStatistic", [])
    if isinstance(stats, dict):
        stats = [stats]
    if not isinstance(stats, list):
        return 0

    for stat in stats:
        if get_field(stat, "name") == FOLLOWS_NAME and _has_type(stat, COUNTER_TYPE):
            try:
                return int(get_field(stat, "userInteractionCount", 0))
            except (TypeError, ValueError):
                return 0
    return 0


def build_enrichment_record(name: str, person: dict[str, Any]) -> EnrichmentRecord:
    """Map a ``Person`` entity to a record keyed by ``name``."""
    job_title = get_field(person, ["jobTitle", 0], NOT_AVAILABLE)
    company = get_field(person, ["worksFor", 0, "name"], NOT_AVAILABLE)
    company_profile = get_field(person, ["worksFor", 0, "url"], NOT_AVAILABLE)

    return EnrichmentRecord(
        name=name,
        company=str(company).strip() or NOT_AVAILABLE,
        company_profile=str(company_profile).strip() or NOT_AVAILABLE,
        job_title=str(job_title).strip() or NOT_AVAILABLE,
        followers=follower_count(person),
    )


def extract_enrichment_record(html: str, name: str, url: str | None = None) -> EnrichmentRecord:
    """Extract one profile page into an ``EnrichmentRecord``.

    A graph without any ``Person`` entity still produces a record, with
    every attribute defaulted.

    Raises:
        ExtractionFailure: If the JSON-LD block is missing or malformed
    """
    document = load_jsonld(html, url=url)
    person = find_person(document)
    if not person:
        logger.debug(f"No Person entity in JSON-LD for {name}")
    return build_enrichment_record(name, person)
