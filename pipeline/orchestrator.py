"""Cascading lead search.

Tier 1 (local store, web search, social search) always runs. Tier 2
(enrichment, page scraping) and Tier 3 (deep fan-out) only run while the
pool is short of the target and the requested depth allows it.

Adapters within a tier run concurrently, each with its own timeout and
error boundary. Their results are merged into the pool in a fixed order by
this module alone.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional, Set

from pipeline.dedupe import deduplicate, sort_by_confidence
from pipeline.progress import ProgressCallback, ProgressEmitter, RunCancelled, await_or_cancel
from pipeline.query_builder import brief_keywords, build_query, build_social_query, select_platforms
from pipeline.sources import DeepSearchResult, Source, SourceSet, default_sources
from pipeline_config import PipelineSettings, get_settings
from schemas import Brief, Candidate, DiscoveryResult

logger = logging.getLogger(__name__)

TIER_1 = "Tier 1"
TIER_2 = "Tier 2"
TIER_3 = "Tier 3"


@dataclass
class _Run:
    brief: Brief
    emitter: ProgressEmitter
    cancel_event: Optional[asyncio.Event]
    pool: List[Candidate] = field(default_factory=list)
    cancelled: bool = False

    @property
    def should_stop(self) -> bool:
        if not self.cancelled and self.cancel_event is not None and self.cancel_event.is_set():
            self.cancelled = True
        return self.cancelled


class CascadingSearch:
    def __init__(
        self,
        sources: Optional[SourceSet] = None,
        settings: Optional[PipelineSettings] = None,
    ):
        self.settings = settings or get_settings()
        self.sources = sources or default_sources(self.settings)
        self._unconfigured_noticed: Set[str] = set()

    async def _call(
        self,
        run: _Run,
        tier: str,
        label: str,
        source: Source,
        make_call: Callable[[], Awaitable[Any]],
        default: Any,
    ) -> Any:
        """Run one adapter call inside its own timeout and error boundary."""
        if not source.configured:
            run.emitter.log(f"[{tier}] {label} skipped: {source.missing_config}")
            if label not in self._unconfigured_noticed:
                self._unconfigured_noticed.add(label)
                logger.info("%s not configured (%s); skipping it", label, source.missing_config)
            return default
        if run.should_stop:
            return default

        timeout = self.settings.source_timeout_s
        try:
            return await await_or_cancel(asyncio.wait_for(make_call(), timeout), run.cancel_event)
        except RunCancelled:
            run.cancelled = True
        except asyncio.TimeoutError as exc:
            message = str(exc) or f"timed out after {timeout:.0f}s"
            run.emitter.log(f"[{tier}] {label} error: {message} — continuing")
        except Exception as exc:
            logger.warning("%s %s failed", tier, label, exc_info=True)
            run.emitter.log(f"[{tier}] {label} error: {exc} — continuing")
        return default

    def _absorb(self, run: _Run, contacts: List[Candidate]) -> None:
        run.pool = deduplicate(run.pool + contacts)

    def _finish(self, run: _Run, tier: str, contacts: List[Candidate]) -> DiscoveryResult:
        return DiscoveryResult(
            contacts=contacts,
            logs=run.emitter.logs,
            total=len(run.pool),
            tier=tier,
            cancelled=run.cancelled,
        )

    def _cancelled_result(self, run: _Run, tier: str) -> DiscoveryResult:
        target = run.brief.target_count
        run.emitter.log(
            f"[Pipeline] Cancelled during {tier}: returning {min(len(run.pool), target)} "
            f"of {len(run.pool)} contacts found so far"
        )
        run.emitter.emit(tier, "done", "Cancelled", len(run.pool))
        return self._finish(run, tier, run.pool[:target])

    async def _local_lookup(self, run: _Run, codes: List[str], keywords: List[str]) -> List[Candidate]:
        found: List[Candidate] = []
        for code in codes:
            contacts = await self.sources.store.lookup(code, keywords)
            run.emitter.log(f"[Tier 1] Local DB ({code}): {len(contacts)} leads after filtering")
            found.extend(contacts)
        return found

    async def run(
        self,
        brief: Brief,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> DiscoveryResult:
        """Search tier by tier until the target is met or the depth is exhausted."""
        query, codes = build_query(brief)
        primary = codes[0] if codes else self.settings.default_market
        target = brief.target_count

        run = _Run(brief=brief, emitter=ProgressEmitter(target, on_progress), cancel_event=cancel_event)
        log = run.emitter.log
        emit = run.emitter.emit
        log(f"[Pipeline] Starting cascading search: depth={brief.search_depth}, target={target}")
        log(f'[Pipeline] Search query: "{query}"')
        log(f"[Pipeline] Markets: {', '.join(brief.markets)} -> Country codes: {', '.join(codes)}")

        # Tier 1
        log("[Pipeline] === TIER 1: Local DB + Google + Social ===")
        emit(TIER_1, "searching", "Local Database", 0)
        sources = self.sources
        social_query = build_social_query(brief) or query
        platforms = select_platforms(brief.preferred_platform)
        log(f'[Tier 1] Social Search: querying {", ".join(platforms)} for "{social_query}"')

        store_codes = codes or [primary]
        local, web, social = await asyncio.gather(
            self._call(run, TIER_1, "Local DB", sources.store,
                       lambda: self._local_lookup(run, store_codes, brief_keywords(brief)), []),
            self._call(run, TIER_1, "Google Lead Search", sources.web,
                       lambda: sources.web.search(query, primary), []),
            self._call(run, TIER_1, "Social Search", sources.social,
                       lambda: sources.social.search(social_query, primary, platforms), []),
        )
        for label, contacts in (("Local Database", local), ("Google Lead Search", web), ("Social Media Search", social)):
            if label != "Local Database":
                log(f"[Tier 1] {label}: {len(contacts)} results")
            self._absorb(run, contacts)
            emit(TIER_1, "searching", label, len(run.pool))

        log(f"[Tier 1] After dedup: {len(run.pool)} unique contacts")
        emit(TIER_1, "done", "Tier 1 Complete", len(run.pool))
        if run.should_stop:
            return self._cancelled_result(run, TIER_1)

        if len(run.pool) >= target or brief.search_depth == "quick":
            log(
                f"[Pipeline] Stopping at Tier 1: {len(run.pool)} contacts found "
                f"(target: {target}, depth: {brief.search_depth})"
            )
            emit(TIER_1, "done", "Complete", len(run.pool))
            return self._finish(run, TIER_1, run.pool[:target])

        # Tier 2
        log("[Pipeline] === TIER 2: Apollo + Web Scraping ===")
        emit(TIER_2, "enriching", "Apollo", len(run.pool))
        enriched = await self._call(
            run, TIER_2, "Apollo", sources.enrichment,
            lambda: sources.enrichment.search(query, primary), [],
        )
        log(f"[Tier 2] Apollo: {len(enriched)} contacts")
        self._absorb(run, enriched)
        emit(TIER_2, "enriching", "Apollo", len(run.pool))

        if run.should_stop:
            return self._cancelled_result(run, TIER_2)

        urls = list(dict.fromkeys(c.url for c in run.pool if c.url and not c.email))
        urls = urls[:self.settings.max_scrape_urls]
        emit(TIER_2, "enriching", "Web Scraping", len(run.pool))
        if urls:
            log(f"[Tier 2] Scraping {len(urls)} URLs for additional contacts...")
            scraped = await self._call(
                run, TIER_2, "Web Scraping", sources.scraper,
                lambda: sources.scraper.scrape(urls), [],
            )
            if scraped:
                log(f"[Tier 2] Web Scraping: {len(scraped)} contacts extracted")
            else:
                log("[Tier 2] Web Scraping: no additional contacts found")
            self._absorb(run, scraped)
            emit(TIER_2, "enriching", "Web Scraping", len(run.pool))
        else:
            log("[Tier 2] Web Scraping: no URLs to scrape")

        log(f"[Tier 2] After dedup: {len(run.pool)} unique contacts")
        emit(TIER_2, "done", "Tier 2 Complete", len(run.pool))
        if run.should_stop:
            return self._cancelled_result(run, TIER_2)

        if len(run.pool) >= target or brief.search_depth == "deep":
            log(
                f"[Pipeline] Stopping at Tier 2: {len(run.pool)} contacts found "
                f"(target: {target}, depth: {brief.search_depth})"
            )
            emit(TIER_2, "done", "Complete", len(run.pool))
            return self._finish(run, TIER_2, run.pool[:target])

        # Tier 3
        log("[Pipeline] === TIER 3: Deep Search (Full) ===")
        emit(TIER_3, "searching", "Deep Search (All Pipelines)", len(run.pool))
        deep: Optional[DeepSearchResult] = await self._call(
            run, TIER_3, "Deep Search", sources.deep,
            lambda: sources.deep.search(query, primary), None,
        )
        if deep is not None:
            run.emitter.extend(deep.logs)
            log(f"[Tier 3] Deep Search: {len(deep.contacts)} contacts from {len(deep.apis_used)} APIs")
            self._absorb(run, [c.model_copy(update={"country": primary}) for c in deep.contacts])
            emit(TIER_3, "searching", "Deep Search (All Pipelines)", len(run.pool))

        run.pool = sort_by_confidence(run.pool)
        log(f"[Tier 3] After final dedup: {len(run.pool)} unique contacts")
        if run.should_stop:
            return self._cancelled_result(run, TIER_3)

        # The full-depth path returns the whole pool, even past the target.
        log(f"[Pipeline] Complete: {len(run.pool)} total contacts found (target was {target})")
        emit(TIER_3, "done", "Complete", len(run.pool))
        return self._finish(run, TIER_3, list(run.pool))


async def run_cascading_search(
    brief: Brief,
    on_progress: Optional[ProgressCallback] = None,
    cancel_event: Optional[asyncio.Event] = None,
    sources: Optional[SourceSet] = None,
) -> DiscoveryResult:
    """Discovery phase entry point."""
    return await CascadingSearch(sources).run(brief, on_progress, cancel_event)
