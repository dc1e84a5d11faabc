"""Lead qualification: verify profiles, classify them and score them.

Candidates are ranked for verification priority and only the top
`max_to_qualify` are fetched, in small batches so rate-limited profile
backends are never hit with more than a batch at a time. Everyone else is
scored from what discovery already knows.
"""
import asyncio
import logging
from datetime import datetime
from typing import Dict, List, Optional

from pipeline.heuristics import detect_location, detect_niche, is_recently_active
from pipeline.progress import ProgressCallback, ProgressEmitter, RunCancelled, await_or_cancel
from pipeline.scoring import (
    ProfileSignals,
    basic_score,
    over_limit_score,
    score_quality,
    verification_priority,
)
from pipeline.sources import ProfileFetcher, default_sources
from pipeline_config import PipelineSettings, get_settings
from schemas import Candidate, ProfileSnapshot, QualificationConfig, QualificationResult, QualifiedLead

logger = logging.getLogger(__name__)

QUALIFY_TIER = "Qualify"


def engagement_rate(profile: ProfileSnapshot) -> float:
    """Recent engagement as a percentage.

    Interactions over views when the platform reports views, otherwise
    average interactions per post over followers.
    """
    posts = profile.recent_posts
    interactions = sum(p.likes + p.comments for p in posts)
    views = sum(p.views for p in posts)
    if views > 0:
        return interactions / views * 100
    if profile.followers > 0:
        return interactions / max(len(posts), 1) / profile.followers * 100
    return 0.0


def format_followers(followers: int) -> str:
    return f"{followers / 1000:.1f}K"


class LeadQualifier:
    def __init__(
        self,
        fetchers: Optional[Dict[str, ProfileFetcher]] = None,
        settings: Optional[PipelineSettings] = None,
        now: Optional[datetime] = None,
    ):
        self.settings = settings or get_settings()
        self.fetchers = fetchers if fetchers is not None else default_sources(self.settings).profiles
        # Fixed clock for activity checks; None means wall-clock time.
        self.now = now

    @property
    def can_verify(self) -> bool:
        return any(f.configured for f in self.fetchers.values())

    def _platform_order(self, candidate: Candidate, platform: str) -> List[str]:
        order = [platform] if platform in self.fetchers else []
        order += [p for p in self.fetchers if p != platform]
        return [p for p in order if candidate.handle_for(p) and self.fetchers[p].configured]

    async def qualify(
        self,
        candidates: List[Candidate],
        config: QualificationConfig,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> QualificationResult:
        ranked = sorted(
            candidates,
            key=lambda c: verification_priority(c, config.platform),
            reverse=True,
        )
        selected = ranked[:config.max_to_qualify]
        remaining = ranked[config.max_to_qualify:]

        emitter = ProgressEmitter(len(selected), on_progress)
        emitter.log(
            f"[Qualify] Starting qualification of {len(candidates)} contacts "
            f"(max: {config.max_to_qualify})"
        )
        emitter.log(
            f"[Qualify] Target: {config.entity_type or 'any'} | Niche: {config.niche or 'any'} | "
            f"Location: {config.target_location or 'any'} | Platform: {config.platform or 'any'}"
        )
        if not self.can_verify:
            emitter.log("[Qualify] Profile fetchers not configured — using basic qualification (no profile scraping)")

        qualified: List[QualifiedLead] = []
        cancelled = False
        size = max(1, self.settings.qualify_batch_size)
        batch_count = (len(selected) + size - 1) // size
        for index, start in enumerate(range(0, len(selected), size), start=1):
            batch = selected[start:start + size]
            emitter.emit(QUALIFY_TIER, "enriching", f"Batch {index}/{batch_count}", start)
            try:
                results = await await_or_cancel(
                    asyncio.gather(*(self._qualify_one(c, config, emitter) for c in batch)),
                    cancel_event,
                )
            except RunCancelled:
                emitter.log(f"[Qualify] Cancelled during batch {index} — returning partial results")
                cancelled = True
                break
            qualified.extend(results)
            emitter.log(f"[Qualify] Batch {index}: {len(qualified)} qualified so far")
            emitter.emit(QUALIFY_TIER, "enriching", f"Batch {index}/{batch_count}", start + len(batch))

        qualified_names = {q.name.lower() for q in qualified}
        for candidate in remaining:
            if candidate.name.lower() in qualified_names:
                continue
            score, reasons = over_limit_score(candidate)
            qualified.append(QualifiedLead(
                **candidate.model_dump(), quality_score=score, quality_reasons=reasons,
            ))

        qualified.sort(key=lambda q: q.quality_score, reverse=True)

        verified = sum(1 for q in qualified if q.was_verified)
        active = sum(1 for q in qualified if q.is_active)
        average = sum(q.quality_score for q in qualified) / len(qualified) if qualified else 0
        emitter.log(f"[Qualify] Done: {len(qualified)} total leads")
        emitter.log(f"[Qualify] Verified: {verified} | Active: {active} | Avg Score: {average:.0f}/100")
        emitter.emit(QUALIFY_TIER, "done", "Qualification Complete", len(selected))

        return QualificationResult(qualified=qualified, logs=emitter.logs, cancelled=cancelled)

    async def _qualify_one(
        self,
        candidate: Candidate,
        config: QualificationConfig,
        emitter: ProgressEmitter,
    ) -> QualifiedLead:
        """Verify one candidate, degrading to a basic score on any failure."""
        for platform in self._platform_order(candidate, config.platform):
            handle = candidate.handle_for(platform)
            try:
                profile = await asyncio.wait_for(
                    self.fetchers[platform].fetch(handle),
                    self.settings.profile_timeout_s,
                )
            except asyncio.TimeoutError:
                emitter.log(f"[Qualify] {platform} profile fetch timed out for {candidate.name}")
                continue
            except Exception as exc:
                logger.warning("Profile fetch failed for %s on %s", candidate.name, platform, exc_info=True)
                emitter.log(f"[Qualify] {platform} profile fetch failed for {candidate.name}: {exc}")
                continue
            if profile is not None:
                return self._verified_lead(candidate, profile, config)

        score, reasons = basic_score(candidate)
        return QualifiedLead(**candidate.model_dump(), quality_score=score, quality_reasons=reasons)

    def _verified_lead(
        self,
        candidate: Candidate,
        profile: ProfileSnapshot,
        config: QualificationConfig,
    ) -> QualifiedLead:
        posts = profile.recent_posts
        timestamps = [p.posted_at for p in posts if p.posted_at is not None]
        last_post = max(timestamps) if timestamps else None
        captions = [p.caption for p in posts if p.caption]
        hashtags = [h for p in posts for h in p.hashtags]

        is_active = is_recently_active(last_post, self.now, self.settings.activity_window_days)
        niche = profile.business_category or detect_niche(profile.bio, hashtags, captions)
        location = detect_location(profile.bio, " ".join(captions))
        rate = engagement_rate(profile)

        score, reasons = score_quality(
            ProfileSignals(
                followers=profile.followers,
                is_active=is_active,
                bio=profile.bio,
                detected_niche=niche,
                detected_location=location,
                has_website=bool(profile.website),
                engagement_rate=rate,
            ),
            config,
        )

        data = candidate.model_dump()
        data.update({
            "name": profile.display_name or candidate.name,
            profile.platform: f"@{profile.username}" if profile.username else candidate.handle_for(profile.platform),
            "followers": format_followers(profile.followers),
            "verified_followers": profile.followers,
            "last_post_date": last_post,
            "is_active": is_active,
            "bio": profile.bio or None,
            "detected_niche": niche,
            "detected_location": location,
            "website_url": profile.website,
            "profile_pic_url": profile.profile_pic_url,
            "engagement_rate_percent": rate,
            "recent_hashtags": list(dict.fromkeys(hashtags))[:10],
            "quality_score": score,
            "quality_reasons": reasons,
            "was_verified": True,
        })
        return QualifiedLead(**data)


async def qualify_leads(
    candidates: List[Candidate],
    config: QualificationConfig,
    fetchers: Optional[Dict[str, ProfileFetcher]] = None,
    on_progress: Optional[ProgressCallback] = None,
    cancel_event: Optional[asyncio.Event] = None,
    now: Optional[datetime] = None,
) -> QualificationResult:
    """Qualify discovery output into ranked leads."""
    qualifier = LeadQualifier(fetchers=fetchers, now=now)
    return await qualifier.qualify(candidates, config, on_progress, cancel_event)
