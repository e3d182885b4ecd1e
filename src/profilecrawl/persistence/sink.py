"""
CSV sink and row source.

Appends flat records to CSV files under one output directory and reads
them back in order. The header is taken from the first record written to
a new (or empty) file; later writes append rows only.
"""

from __future__ import annotations

import csv
import logging
import re
from pathlib import Path
from typing import Any, Mapping, Sequence

logger = logging.getLogger(__name__)


class SinkFailure(Exception):
    """Destination unwritable/unreadable, or nothing to write."""

    def __init__(self, message: str, destination: str | Path | None = None, cause: Exception | None = None):
        super().__init__(message)
        self.destination = destination
        self.cause = cause


def slugify_keyword(keyword: str) -> str:
    """File-name stem for a keyword: whitespace runs become hyphens."""
    return re.sub(r"\s+", "-", keyword.strip())


class CsvSink:
    """Append-only CSV storage rooted at ``directory``.

    Destinations are file names (or relative paths) resolved against the
    directory; absolute paths are used as given.
    """

    def __init__(self, directory: Path | str = "data", encoding: str = "utf-8"):
        self.directory = Path(directory)
        self.encoding = encoding

    def path_for(self, destination: str | Path) -> Path:
        path = Path(destination)
        if path.is_absolute():
            return path
        return self.directory / path

    def exists(self, destination: str | Path) -> bool:
        return self.path_for(destination).is_file()

    def append(self, records: Sequence[Mapping[str, Any]] | Mapping[str, Any], destination: str | Path) -> int:
        """Append records to a CSV destination.

        Args:
            records: One record or a sequence of flat records
            destination: Target file name

        Returns:
            Number of rows written

        Raises:
            SinkFailure: If ``records`` is empty or the file cannot be written
        """
        if isinstance(records, Mapping):
            records = [records]
        if not records:
            raise SinkFailure("No data to write", destination=destination)

        path = self.path_for(destination)
        fieldnames = list(records[0].keys())

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            write_header = not path.exists() or path.stat().st_size == 0
            with open(path, "a", newline="", encoding=self.encoding) as f:
                writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
                if write_header:
                    writer.writeheader()
                writer.writerows(records)
        except (OSError, csv.Error) as e:
            logger.error(f"Failed to write {len(records)} rows to {path}: {e}")
            raise SinkFailure(f"Failed to write to {path}", destination=destination, cause=e) from e

        return len(records)

    def read_all(self, destination: str | Path) -> list[dict[str, str]]:
        """Read every row of a CSV destination, preserving order.

        Values are trimmed and blank lines skipped.

        Raises:
            SinkFailure: If the file cannot be read
        """
        path = self.path_for(destination)
        try:
            with open(path, newline="", encoding=self.encoding) as f:
                rows = []
                for row in csv.DictReader(f):
                    cleaned = {
                        (key or "").strip(): (value or "").strip()
                        for key, value in row.items()
                        if key is not None
                    }
                    if any(cleaned.values()):
                        rows.append(cleaned)
                return rows
        except (OSError, csv.Error) as e:
            raise SinkFailure(f"Failed to read {path}", destination=destination, cause=e) from e
