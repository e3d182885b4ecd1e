"""Shared fixtures: an in-memory browser session and HTML page builders."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable

import pytest

from profilecrawl.core.backends.base import BrowserSession, BrowsingContext, NavigationFailure


Response = tuple[int, str]
Responder = Callable[[str], "Response | Exception"]


class FakeContext(BrowsingContext):
    """Browsing context serving canned responses from its session."""

    def __init__(self, session: "FakeSession"):
        self.session = session
        self.closed = False
        self._html = ""

    async def goto(self, url: str) -> int:
        self.session.visits.append(url)
        await asyncio.sleep(0)
        result = self.session.responder(url)
        if isinstance(result, Exception):
            raise result
        status, self._html = result
        return status

    async def content(self) -> str:
        return self._html

    async def close(self) -> None:
        self.closed = True


class FakeSession(BrowserSession):
    """Browser session that never launches a browser."""

    def __init__(self, responder: Responder | None = None):
        self.responder = responder or (lambda url: (200, "<html><body></body></html>"))
        self.starts = 0
        self.closes = 0
        self.contexts: list[FakeContext] = []
        self.visits: list[str] = []

    @property
    def name(self) -> str:
        return "fake"

    async def start(self) -> None:
        self.starts += 1

    async def close(self) -> None:
        self.closes += 1

    async def new_context(self) -> FakeContext:
        context = FakeContext(self)
        self.contexts.append(context)
        return context


class SessionFactory:
    """Callable factory remembering every session it created."""

    def __init__(self, responder: Responder | None = None):
        self.responder = responder
        self.sessions: list[FakeSession] = []

    def __call__(self) -> FakeSession:
        session = FakeSession(self.responder)
        self.sessions.append(session)
        return session

    @property
    def visits(self) -> list[str]:
        return [url for s in self.sessions for url in s.visits]


def search_page(cards: list[dict[str, Any]], location: str | None = "  Seattle, WA  ") -> str:
    """Render a people-search results page.

    Each card dict takes ``href``, ``title`` and optional ``companies``.
    """
    items = []
    for card in cards:
        companies = ""
        if card.get("companies") is not None:
            companies = (
                "<span class='entity-list-meta__entities-list'>"
                f"{card['companies']}</span>"
            )
        title = ""
        if card.get("title") is not None:
            title = f"<h3 class='base-search-card__title'>{card['title']}</h3>"
        items.append(
            f"<li><a href='{card['href']}'>"
            f"<div class='base-search-card__info'>{title}{companies}</div>"
            "</a></li>"
        )
    location_html = (
        f"<p class='people-search-card__location'>{location}</p>" if location is not None else ""
    )
    return (
        "<html><head><title>Search</title></head><body>"
        f"<ul>{''.join(items)}</ul>{location_html}"
        "</body></html>"
    )


def profile_page(document: Any | None = None, raw: str | None = None) -> str:
    """Render a profile page with a JSON-LD block in its head."""
    if raw is None and document is None:
        script = ""
    else:
        body = raw if raw is not None else json.dumps(document)
        script = f"<script type='application/ld+json'>{body}</script>"
    return (
        f"<html><head><title>Profile</title>{script}</head>"
        "<body><h1>Profile</h1></body></html>"
    )


def person(**fields: Any) -> dict[str, Any]:
    return {"@type": "Person", **fields}


def flaky(failures: int, response: Response) -> Responder:
    """Responder failing navigation ``failures`` times, then answering."""
    calls = {"n": 0}

    def respond(url: str) -> "Response | Exception":
        calls["n"] += 1
        if calls["n"] <= failures:
            return NavigationFailure(f"net::ERR_CONNECTION_RESET ({calls['n']})", url=url)
        return response

    return respond


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()
