"""Persistence layer - CSV sink and row source."""

from .sink import CsvSink, SinkFailure, slugify_keyword

__all__ = [
    "CsvSink",
    "SinkFailure",
    "slugify_keyword",
]
