"""
Extraction base classes and data structures.

Defines the typed records produced by each stage, the extraction error,
and the tolerant lookup used on loosely-shaped structured data.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Sequence

# Sentinel written when a page lacks an optional field
NOT_AVAILABLE = "n/a"

_MISSING = object()


class ExtractionFailure(Exception):
    """Expected element or data block absent or malformed."""

    def __init__(self, message: str, url: str | None = None, cause: Exception | None = None):
        super().__init__(message)
        self.url = url
        self.cause = cause


@dataclass(frozen=True)
class DiscoveryRecord:
    """One search result card (Stage A output row)."""

    name: str  # Profile identifier, last path segment of the profile URL
    display_name: str
    url: str
    location: str
    companies: str = NOT_AVAILABLE

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "DiscoveryRecord":
        """Rebuild a record from a CSV row read back by the sink.

        Raises:
            ExtractionFailure: If the row lacks an identifier or URL
        """
        name = str(row.get("name") or "").strip()
        url = str(row.get("url") or "").strip()
        if not name or not url:
            raise ExtractionFailure(f"Discovery row missing name/url: {row!r}")
        return cls(
            name=name,
            display_name=str(row.get("display_name") or "").strip(),
            url=url,
            location=str(row.get("location") or "").strip(),
            companies=str(row.get("companies") or NOT_AVAILABLE).strip(),
        )


@dataclass(frozen=True)
class EnrichmentRecord:
    """Attributes from one profile page (Stage B output row)."""

    name: str
    company: str = NOT_AVAILABLE
    company_profile: str = NOT_AVAILABLE
    job_title: str = NOT_AVAILABLE
    followers: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def get_field(entity: Any, path: str | Sequence[str | int], default: Any = None) -> Any:
    """Walk ``path`` through nested dicts/lists, returning ``default`` on any miss.

    String steps index mappings, integer steps index lists. A missing key,
    out-of-range index, or a step applied to the wrong container type all
    yield ``default`` instead of raising. A dotted string is split into
    steps, with digit-only segments treated as list indexes.

    >>> get_field({"worksFor": [{"name": "Acme"}]}, "worksFor.0.name", "n/a")
    'Acme'
    >>> get_field({"jobTitle": "CEO"}, ["jobTitle", 0], "n/a")
    'n/a'
    """
    if isinstance(path, str):
        steps: Sequence[str | int] = [int(p) if p.isdigit() else p for p in path.split(".")]
    else:
        steps = path

    current = entity
    for step in steps:
        if isinstance(step, int):
            if not isinstance(current, list) or not -len(current) <= step < len(current):
                return default
            current = current[step]
        else:
            if not isinstance(current, dict):
                return default
            current = current.get(step, _MISSING)
            if current is _MISSING:
                return default

    if current is None:
        return default
    return current


def clean_text(value: str | None) -> str:
    """Trim surrounding whitespace; ``None`` becomes an empty string."""
    if value is None:
        return ""
    return value.strip()
