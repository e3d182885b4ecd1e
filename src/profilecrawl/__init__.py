"""
profilecrawl - Two-stage people-search crawler.

Discovers profile identifiers from a search listing, then enriches each
discovered profile from its detail page, streaming results to CSV files.
"""

__version__ = "0.1.0"
__app_name__ = "profilecrawl"
