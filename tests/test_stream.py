"""Tests for the combined discovery + qualification event stream."""
import asyncio
import json
from unittest.mock import AsyncMock, patch

import pytest

from pipeline.orchestrator import CascadingSearch
from pipeline.sources import SourceSet, WebSearch
from pipeline.stream import format_sse, stream_leads
from pipeline_config import PipelineSettings
from schemas import Brief, Candidate, QualificationConfig
from tests.fakes import FakeDeep, FakeEnrichment, FakeScraper, FakeSocial, FakeStore, FakeWeb

SETTINGS = PipelineSettings(source_timeout_s=10)


class SlowWeb(WebSearch):
    def __init__(self):
        self.cancelled = False

    async def search(self, query, market_code):
        try:
            await asyncio.sleep(5)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return []


def _sources(web=None) -> SourceSet:
    return SourceSet(
        store=FakeStore([
            Candidate(name="A", email="a@x.com", source="Local DB (ZA)", confidence="high"),
            Candidate(name="B", source="Local DB (ZA)", tiktok="@b"),
        ]),
        web=web or FakeWeb(),
        social=FakeSocial(),
        enrichment=FakeEnrichment(),
        scraper=FakeScraper(),
        deep=FakeDeep(),
        profiles={},
    )


def _brief() -> Brief:
    return Brief(contact_types=["dancers"], markets=["South Africa"], target_count=2, search_depth="quick")


async def _collect(agen):
    return [event async for event in agen]


class TestStreamLeads:
    @pytest.mark.asyncio
    async def test_progress_then_complete(self):
        events = await _collect(stream_leads(_brief(), QualificationConfig(), _sources(), SETTINGS))

        types = [e["type"] for e in events]
        assert types[0] == "progress"
        assert types[-1] == "complete"
        assert "qualify_progress" in types
        assert types.index("qualify_progress") > max(i for i, t in enumerate(types) if t == "progress")

        complete = events[-1]
        assert complete["total"] == 2
        assert complete["tier"] == "Tier 1"
        assert [c["name"] for c in complete["contacts"]] == ["A", "B"]
        assert len(complete["qualified"]) == 2
        assert complete["logs"][-1].startswith("[Qualify] Verified: 0")

    @pytest.mark.asyncio
    async def test_discovery_only_without_config(self):
        events = await _collect(stream_leads(_brief(), None, _sources(), SETTINGS))
        assert "qualify_progress" not in [e["type"] for e in events]
        assert events[-1]["qualified"] == []

    @pytest.mark.asyncio
    async def test_unexpected_failure_becomes_error_event(self):
        with patch.object(CascadingSearch, "run", AsyncMock(side_effect=RuntimeError("boom"))):
            events = await _collect(stream_leads(_brief(), None, _sources(), SETTINGS))
        assert events == [{"type": "error", "message": "boom", "logs": ["Error: boom"]}]

    @pytest.mark.asyncio
    async def test_closing_the_stream_cancels_the_run(self):
        web = SlowWeb()
        agen = stream_leads(_brief(), QualificationConfig(), _sources(web=web), SETTINGS)

        first = await agen.__anext__()
        assert first["type"] == "progress"
        await asyncio.wait_for(agen.aclose(), 1)

        assert web.cancelled is True

    @pytest.mark.asyncio
    async def test_closing_the_stream_leaves_no_pending_tasks(self):
        agen = stream_leads(_brief(), QualificationConfig(), _sources(web=SlowWeb()), SETTINGS)

        await agen.__anext__()
        await asyncio.wait_for(agen.aclose(), 1)

        current = asyncio.current_task()
        assert [t for t in asyncio.all_tasks() if t is not current and not t.done()] == []


class TestFormatSse:
    def test_frame(self):
        frame = format_sse({"type": "progress", "found": 3})
        assert frame.startswith("data: ")
        assert frame.endswith("\n\n")
        assert json.loads(frame[len("data: "):]) == {"type": "progress", "found": 3}
