"""
Proxy gateway URL construction.

Wraps a target URL into the gateway's query-string form so navigation is
routed through the proxy for a given country.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import urlencode

if TYPE_CHECKING:
    from profilecrawl.core.config.models import AppConfig


@dataclass(frozen=True)
class ProxyUrlBuilder:
    """Build routable gateway URLs.

    Without an API key the target URL is returned unchanged, so the
    crawler can run direct for local testing.
    """

    api_key: str | None
    location: str = "us"
    endpoint: str = "https://proxy.scrapeops.io/v1/"

    @classmethod
    def from_config(cls, config: AppConfig) -> "ProxyUrlBuilder":
        return cls(
            api_key=config.proxy.api_key,
            location=config.crawl.location,
            endpoint=config.proxy.endpoint,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def build(self, url: str) -> str:
        if not self.api_key:
            return url
        params = {
            "api_key": self.api_key,
            "url": url,
            "country": self.location,
        }
        return f"{self.endpoint}?{urlencode(params)}"
