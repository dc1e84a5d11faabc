"""Tests for the cascading search using in-memory fake sources."""
import asyncio
import logging

import pytest

from pipeline.orchestrator import CascadingSearch
from pipeline.sources import SourceError
from pipeline_config import PipelineSettings
from schemas import Brief
from tests.fakes import (
    FakeDeep,
    FakeEnrichment,
    FakeScraper,
    FakeSocial,
    FakeStore,
    FakeWeb,
    make_candidate as _c,
    make_sources as _sources,
)

SETTINGS = PipelineSettings(source_timeout_s=1.0)


def _brief(**overrides) -> Brief:
    data = {
        "contact_types": ["bloggers"],
        "markets": ["South Africa"],
        "genre": "amapiano",
        "target_count": 5,
        "search_depth": "quick",
    }
    data.update(overrides)
    return Brief(**data)


class TestScenarioA:
    @pytest.mark.asyncio
    async def test_quick_depth_truncates_to_target(self):
        store = FakeStore([_c("A", "a@x.com"), _c("B", "b@x.com"), _c("C")])
        web = FakeWeb([_c("A", "a@x.com"), _c("D")])
        social = FakeSocial([_c("B", "b@x.com", tiktok="@b"), _c("E")])
        enrichment = FakeEnrichment()
        sources = _sources(store=store, web=web, social=social, enrichment=enrichment)

        result = await CascadingSearch(sources, SETTINGS).run(_brief())

        assert len(result.contacts) == 5
        assert result.total == 5
        assert result.tier == "Tier 1"
        assert enrichment.calls == 0
        merged_b = next(c for c in result.contacts if c.name == "B")
        assert merged_b.tiktok == "@b"
        assert store.calls == [("ZA", ["bloggers", "amapiano"])]

    @pytest.mark.asyncio
    async def test_quick_depth_stops_even_when_short(self):
        enrichment = FakeEnrichment()
        result = await CascadingSearch(
            _sources(store=FakeStore([_c("A")]), enrichment=enrichment), SETTINGS
        ).run(_brief())
        assert result.tier == "Tier 1"
        assert result.total == 1
        assert enrichment.calls == 0

    @pytest.mark.asyncio
    async def test_tier_1_truncates_when_pool_exceeds_target(self):
        web = FakeWeb([_c(f"W{i}") for i in range(8)])
        result = await CascadingSearch(_sources(web=web), SETTINGS).run(_brief(search_depth="full"))
        assert len(result.contacts) == 5
        assert result.total == 8
        assert result.tier == "Tier 1"


class TestScenarioB:
    @pytest.mark.asyncio
    async def test_full_depth_runs_tier_3_without_truncation(self):
        deep = FakeDeep([_c(f"Deep {i}", confidence="high") for i in range(4)])
        sources = _sources(
            store=FakeStore([_c("A", "a@x.com")]),
            web=FakeWeb([_c("B", url="https://b.example")]),
            enrichment=FakeEnrichment([_c("C", "c@x.com", confidence="medium")]),
            deep=deep,
        )

        result = await CascadingSearch(sources, SETTINGS).run(_brief(search_depth="full"))

        assert deep.calls == 1
        assert result.tier == "Tier 3"
        assert len(result.contacts) == 7
        assert result.total == 7
        assert [c.confidence for c in result.contacts][:4] == ["high"] * 4
        assert all(c.country == "ZA" for c in result.contacts if c.name.startswith("Deep"))
        assert "[DeepSearch] Backends: fake" in result.logs


class TestScenarioC:
    @pytest.mark.asyncio
    async def test_web_search_error_is_logged_and_run_continues(self):
        sources = _sources(
            store=FakeStore([_c("A"), _c("B")]),
            web=FakeWeb(error=TimeoutError("Serper request timed out")),
            social=FakeSocial([_c("C"), _c("D"), _c("E")]),
        )

        result = await CascadingSearch(sources, SETTINGS).run(_brief())

        assert any(
            line.startswith("[Tier 1] Google Lead Search error:") and "timed out" in line
            for line in result.logs
        )
        assert {c.name for c in result.contacts} == {"A", "B", "C", "D", "E"}

    @pytest.mark.asyncio
    async def test_slow_adapter_hits_its_own_timeout(self):
        sources = _sources(
            web=FakeWeb([_c("late")], delay=5),
            social=FakeSocial([_c("C")]),
        )
        settings = PipelineSettings(source_timeout_s=0.05)

        result = await CascadingSearch(sources, settings).run(_brief())

        assert [c.name for c in result.contacts] == ["C"]
        assert any(line.startswith("[Tier 1] Google Lead Search error:") for line in result.logs)

    @pytest.mark.asyncio
    async def test_source_error_is_treated_as_zero_results(self):
        sources = _sources(web=FakeWeb(error=SourceError("Serper: 401")), social=FakeSocial([_c("C")]))
        result = await CascadingSearch(sources, SETTINGS).run(_brief())
        assert "[Tier 1] Google Lead Search error: Serper: 401 — continuing" in result.logs


class TestTier2:
    @pytest.mark.asyncio
    async def test_deep_depth_stops_after_tier_2(self):
        deep = FakeDeep([_c("Never")])
        result = await CascadingSearch(
            _sources(store=FakeStore([_c("A")]), deep=deep), SETTINGS
        ).run(_brief(search_depth="deep"))
        assert result.tier == "Tier 2"
        assert deep.calls == 0

    @pytest.mark.asyncio
    async def test_scrapes_only_url_bearing_email_less_candidates(self):
        scraper = FakeScraper([_c("Scraped", "s@x.com", confidence="medium")])
        web = FakeWeb(
            [_c(f"W{i}", url=f"https://w{i}.example") for i in range(12)]
            + [_c("Has Email", "e@x.com", url="https://e.example")]
        )
        result = await CascadingSearch(
            _sources(web=web, scraper=scraper), SETTINGS
        ).run(_brief(target_count=50, search_depth="deep"))

        (urls,) = scraper.urls
        assert len(urls) == 10
        assert "https://e.example" not in urls
        assert any(c.name == "Scraped" for c in result.contacts)

    @pytest.mark.asyncio
    async def test_no_urls_skips_scraper(self):
        scraper = FakeScraper()
        result = await CascadingSearch(
            _sources(store=FakeStore([_c("A")]), scraper=scraper), SETTINGS
        ).run(_brief(search_depth="deep"))
        assert scraper.urls == []
        assert "[Tier 2] Web Scraping: no URLs to scrape" in result.logs

    @pytest.mark.asyncio
    async def test_unconfigured_enrichment_is_skipped_with_notice(self):
        enrichment = FakeEnrichment([_c("X")], configured=False)
        result = await CascadingSearch(
            _sources(enrichment=enrichment), SETTINGS
        ).run(_brief(search_depth="deep"))
        assert enrichment.calls == 0
        assert "[Tier 2] Apollo skipped: APOLLO_API_KEY not set" in result.logs

    @pytest.mark.asyncio
    async def test_missing_config_notice_once_per_search(self, caplog):
        def notices():
            return [r for r in caplog.records if r.getMessage().startswith("Apollo not configured")]

        sources = _sources(enrichment=FakeEnrichment(configured=False))
        with caplog.at_level(logging.INFO, logger="pipeline.orchestrator"):
            search = CascadingSearch(sources, SETTINGS)
            await search.run(_brief(search_depth="deep"))
            await search.run(_brief(search_depth="deep"))
            assert len(notices()) == 1

            await CascadingSearch(sources, SETTINGS).run(_brief(search_depth="deep"))
            assert len(notices()) == 2


class TestProgressAndCancellation:
    @pytest.mark.asyncio
    async def test_progress_in_tier_order_and_found_monotonic(self):
        events = []
        sources = _sources(
            store=FakeStore([_c("A")]),
            enrichment=FakeEnrichment([_c("B")]),
            deep=FakeDeep([_c("C")]),
        )

        await CascadingSearch(sources, SETTINGS).run(_brief(search_depth="full"), on_progress=events.append)

        tiers = [e.tier for e in events]
        assert tiers == sorted(tiers)
        assert {"Tier 1", "Tier 2", "Tier 3"} <= set(tiers)
        found = [e.found for e in events]
        assert found == sorted(found)
        assert all(e.target == 5 for e in events)
        assert events[-1].status == "done"

    @pytest.mark.asyncio
    async def test_raising_callback_does_not_abort(self):
        def boom(event):
            raise RuntimeError("listener gone")

        result = await CascadingSearch(
            _sources(store=FakeStore([_c("A")])), SETTINGS
        ).run(_brief(), on_progress=boom)
        assert result.total == 1

    @pytest.mark.asyncio
    async def test_cancel_returns_partial_pool(self):
        cancel = asyncio.Event()
        sources = _sources(
            store=FakeStore([_c("A"), _c("B")]),
            web=FakeWeb([_c("slow")], delay=5),
        )

        async def cancel_soon():
            await asyncio.sleep(0.05)
            cancel.set()

        settings = PipelineSettings(source_timeout_s=10)
        result, _ = await asyncio.gather(
            CascadingSearch(sources, settings).run(_brief(search_depth="full"), cancel_event=cancel),
            cancel_soon(),
        )

        assert result.cancelled is True
        assert result.tier == "Tier 1"
        assert {c.name for c in result.contacts} == {"A", "B"}
        assert any(line.startswith("[Pipeline] Cancelled during Tier 1") for line in result.logs)
