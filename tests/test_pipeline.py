"""End-to-end pipeline tests against an in-memory browser."""

from urllib.parse import parse_qs, urlsplit

import pytest

from conftest import SessionFactory, flaky, person, profile_page, search_page
from profilecrawl.core.backends.base import NavigationFailure
from profilecrawl.core.config import AppConfig, CrawlConfig, OutputConfig
from profilecrawl.core.fetch.proxy import ProxyUrlBuilder
from profilecrawl.core.orchestrator import CrawlPipeline
from profilecrawl.persistence import CsvSink, SinkFailure


PROFILE_BASE = "https://www.linkedin.com/in/"

RESULTS = {
    "bill": ["williamhgates", "bill-gates-42"],
    "elon": ["elonmusk"],
    "nobody": [],
}


def make_config(tmp_path, keywords, batch_size=5, max_attempts=2):
    return AppConfig(
        crawl=CrawlConfig(keywords=keywords, batch_size=batch_size, max_attempts=max_attempts),
        output=OutputConfig(directory=tmp_path / "data"),
    )


def is_search(url):
    return "/pub/dir" in url


def default_responder(url):
    if is_search(url):
        first = parse_qs(urlsplit(url).query)["firstName"][0]
        cards = [
            {"href": f"{PROFILE_BASE}{name}?trk=guest", "title": name.title(), "companies": "Acme"}
            for name in RESULTS[first]
        ]
        return 200, search_page(cards)
    name = urlsplit(url).path.rstrip("/").rsplit("/", 1)[-1]
    return 200, profile_page({"@graph": [person(jobTitle=[f"Title of {name}"])]})


def pipeline_for(tmp_path, keywords, responder=default_responder, **config):
    factory = SessionFactory(responder)
    pipeline = CrawlPipeline(
        make_config(tmp_path, keywords, **config),
        proxy=ProxyUrlBuilder(api_key=None),
        session_factory=factory,
    )
    return pipeline, factory


@pytest.mark.asyncio
async def test_two_keywords_discovered_then_enriched(tmp_path):
    pipeline, factory = pipeline_for(tmp_path, ["bill gates", "elon musk"])

    stats = await pipeline.run()

    bill = pipeline.sink.read_all("bill-gates.csv")
    assert [row["name"] for row in bill] == ["williamhgates", "bill-gates-42"]
    assert bill[0] == {
        "name": "williamhgates",
        "display_name": "Williamhgates",
        "url": f"{PROFILE_BASE}williamhgates?trk=guest",
        "location": "Seattle, WA",
        "companies": "Acme",
    }
    assert len(pipeline.sink.read_all("elon-musk.csv")) == 1

    enriched = pipeline.sink.read_all("bill-gates-profiles.csv")
    assert {row["name"]: row["job_title"] for row in enriched} == {
        "williamhgates": "Title of williamhgates",
        "bill-gates-42": "Title of bill-gates-42",
    }
    assert enriched[0]["company"] == "n/a"
    assert enriched[0]["followers"] == "0"
    assert len(pipeline.sink.read_all("elon-musk-profiles.csv")) == 1

    assert stats.discovery.succeeded == 2
    assert stats.discovery.batches == 1
    assert stats.discovery.records == 3
    assert stats.errors_count == 0


@pytest.mark.asyncio
async def test_every_search_visit_precedes_every_profile_visit(tmp_path):
    pipeline, factory = pipeline_for(tmp_path, ["bill gates", "elon musk"])

    await pipeline.run()

    kinds = [is_search(url) for url in factory.visits]
    assert kinds == [True, True, False, False, False]
    # One session for discovery plus one per enriched file
    assert len(factory.sessions) == 3
    assert all(s.starts == 1 and s.closes == 1 for s in factory.sessions)


@pytest.mark.asyncio
async def test_exhausted_profile_is_skipped_and_run_continues(tmp_path):
    def responder(url):
        if url.startswith(f"{PROFILE_BASE}williamhgates"):
            return 500, "<html><body>error</body></html>"
        return default_responder(url)

    pipeline, factory = pipeline_for(tmp_path, ["bill gates"], responder, max_attempts=1)

    stats = await pipeline.run()

    enriched = pipeline.sink.read_all("bill-gates-profiles.csv")
    assert [row["name"] for row in enriched] == ["bill-gates-42"]
    file_stats = stats.enrichment["bill-gates.csv"]
    assert file_stats.succeeded == 1
    assert file_stats.exhausted == 1
    assert sum(url.startswith(f"{PROFILE_BASE}williamhgates") for url in factory.visits) == 2


@pytest.mark.asyncio
async def test_profile_failing_every_attempt_is_tried_four_times_and_never_written(tmp_path):
    def responder(url):
        if url.startswith(f"{PROFILE_BASE}williamhgates"):
            return NavigationFailure("net::ERR_TIMED_OUT", url=url)
        return default_responder(url)

    pipeline, factory = pipeline_for(tmp_path, ["bill gates", "elon musk"], responder, max_attempts=3)

    stats = await pipeline.run()

    assert sum(url.startswith(f"{PROFILE_BASE}williamhgates") for url in factory.visits) == 4
    enriched = pipeline.sink.read_all("bill-gates-profiles.csv")
    assert [row["name"] for row in enriched] == ["bill-gates-42"]
    assert stats.enrichment["bill-gates.csv"].exhausted == 1
    assert [row["name"] for row in pipeline.sink.read_all("elon-musk-profiles.csv")] == ["elonmusk"]

@pytest.mark.asyncio
async def test_profile_succeeding_on_third_attempt_is_written_once(tmp_path):
    profile = flaky(2, (200, profile_page({"@graph": [person(jobTitle=["CEO"])]})))

    def responder(url):
        if url.startswith(f"{PROFILE_BASE}elonmusk"):
            return profile(url)
        return default_responder(url)

    pipeline, factory = pipeline_for(tmp_path, ["elon musk"], responder, max_attempts=3)

    await pipeline.run()

    assert pipeline.sink.read_all("elon-musk-profiles.csv") == [{
        "name": "elonmusk",
        "company": "n/a",
        "company_profile": "n/a",
        "job_title": "CEO",
        "followers": "0",
    }]
    assert sum(not is_search(url) for url in factory.visits) == 3


@pytest.mark.asyncio
async def test_keyword_without_results_is_skipped_for_enrichment(tmp_path):
    pipeline, factory = pipeline_for(tmp_path, ["nobody here", "elon musk"])

    stats = await pipeline.run()

    assert not pipeline.sink.exists("nobody-here.csv")
    assert stats.skipped == ["nobody here"]
    assert list(stats.enrichment) == ["elon-musk.csv"]
    assert stats.discovery.succeeded == 2


@pytest.mark.asyncio
async def test_failed_search_page_produces_no_file(tmp_path):
    def responder(url):
        if is_search(url):
            return 429, "<html><body>slow down</body></html>"
        return default_responder(url)

    pipeline, factory = pipeline_for(tmp_path, ["bill gates"], responder, max_attempts=0)

    stats = await pipeline.run()

    assert stats.discovery.exhausted == 1
    assert stats.skipped == ["bill gates"]
    assert len(factory.visits) == 1


@pytest.mark.asyncio
async def test_discovery_targets_go_through_the_proxy(tmp_path):
    factory = SessionFactory(lambda url: (200, search_page([], location=None)))
    pipeline = CrawlPipeline(
        make_config(tmp_path, ["bill gates"]),
        proxy=ProxyUrlBuilder(api_key="KEY", location="uk"),
        session_factory=factory,
    )

    await pipeline.run_discovery()

    [visit] = factory.visits
    query = parse_qs(urlsplit(visit).query)
    assert visit.startswith("https://proxy.scrapeops.io/v1/?")
    assert query["api_key"] == ["KEY"]
    assert query["country"] == ["uk"]
    assert "firstName=bill" in query["url"][0]


def test_destination_names(tmp_path):
    pipeline, _ = pipeline_for(tmp_path, [])

    assert pipeline.discovery_destination("bill gates") == "bill-gates.csv"
    assert pipeline.enrichment_destination("bill-gates.csv") == "bill-gates-profiles.csv"
    assert pipeline.enrichment_destination(tmp_path / "x.csv") == "x-profiles.csv"


def test_load_rows_skips_unusable_rows(tmp_path):
    pipeline, _ = pipeline_for(tmp_path, [])
    pipeline.sink.append([
        {"name": "a", "display_name": "A", "url": "https://x/in/a", "location": "L", "companies": "n/a"},
        {"name": "", "display_name": "B", "url": "", "location": "L", "companies": "n/a"},
    ], "rows.csv")

    rows = pipeline.load_rows("rows.csv")

    assert [r.name for r in rows] == ["a"]


@pytest.mark.asyncio
async def test_sink_failure_counts_as_failed_unit_without_retry(tmp_path):
    class BrokenProfileSink(CsvSink):
        def append(self, records, destination):
            if str(destination).endswith("-profiles.csv"):
                raise SinkFailure("disk full", destination=destination)
            return super().append(records, destination)

    factory = SessionFactory(default_responder)
    pipeline = CrawlPipeline(
        make_config(tmp_path, ["bill gates"], max_attempts=3),
        sink=BrokenProfileSink(tmp_path / "data"),
        proxy=ProxyUrlBuilder(api_key=None),
        session_factory=factory,
    )

    stats = await pipeline.run()

    file_stats = stats.enrichment["bill-gates.csv"]
    assert file_stats.failed == 2
    assert file_stats.succeeded == 0
    assert sum(not is_search(url) for url in factory.visits) == 2
