"""CLI command modules."""

from . import crawl

__all__ = [
    "crawl",
]
