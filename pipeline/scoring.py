"""Additive lead quality scoring.

Every rule that contributes points, and a few that don't, appends a
human-readable reason. Reasons are part of the result.
"""
from dataclasses import dataclass
from typing import List, Optional, Tuple

from schemas import CONFIDENCE_RANK, Candidate, QualificationConfig
from pipeline.heuristics import DEFAULT_NICHE

MAX_SCORE = 100
MAX_UNVERIFIED_SCORE = 50

OVER_LIMIT_SCORES = {"high": 30, "medium": 20, "low": 10}
BASIC_CONFIDENCE_POINTS = {"high": 15, "medium": 10, "low": 5}


@dataclass(frozen=True)
class ProfileSignals:
    """What a verified profile tells us about a lead."""

    followers: int
    is_active: bool
    bio: str
    detected_niche: str
    detected_location: Optional[str]
    has_website: bool
    engagement_rate: float


def _follower_points(followers: int) -> Tuple[int, str]:
    if followers >= 10_000:
        return 15, f"{followers / 1000:.0f}K+ followers"
    if followers >= 1_000:
        return 10, f"{followers / 1000:.1f}K followers"
    if followers >= 100:
        return 5, f"{followers} followers"
    return 0, f"Low followers ({followers})"


def _niche_points(signals: ProfileSignals, config: QualificationConfig) -> Tuple[int, Optional[str]]:
    if not (config.entity_type or config.niche):
        return 10, "No niche filter"
    target = f"{config.entity_type} {config.niche}".lower()
    detected = signals.detected_niche.lower()
    words = [w for w in target.split() if len(w) > 2]
    if any(w in detected for w in words):
        return 20, f"Niche match: {signals.detected_niche}"
    if signals.detected_niche != DEFAULT_NICHE:
        return 5, f"Niche: {signals.detected_niche} (partial match)"
    return 0, "Niche unclear"


def _location_points(signals: ProfileSignals, config: QualificationConfig) -> Tuple[int, str]:
    if not config.target_location:
        return 5, "No location filter"
    if not signals.detected_location:
        return 0, "Location not detected in profile"
    target = config.target_location.lower()
    detected = signals.detected_location.lower()
    if detected in target or target in detected:
        return 15, f"Location match: {signals.detected_location}"
    return 3, f"Location: {signals.detected_location} (not exact match)"


def score_quality(signals: ProfileSignals, config: QualificationConfig) -> Tuple[int, List[str]]:
    """Score a verified profile against the qualification config.

    Returns:
        (score capped at 100, reasons in rule order)
    """
    score = 15
    reasons = ["Profile verified"]

    points, reason = _follower_points(signals.followers)
    score += points
    reasons.append(reason)

    if signals.is_active:
        score += 15
        reasons.append("Active (posted recently)")
    else:
        reasons.append("Inactive or unknown posting date")

    for points, reason in (_niche_points(signals, config), _location_points(signals, config)):
        score += points
        reasons.append(reason)

    if signals.bio and len(signals.bio) > 10:
        score += 5
        reasons.append("Has bio")

    if signals.has_website:
        score += 5
        reasons.append("Has website link")

    if signals.engagement_rate > 5:
        score += 10
        reasons.append(f"High engagement ({signals.engagement_rate:.1f}%)")
    elif signals.engagement_rate > 2:
        score += 5
        reasons.append(f"Good engagement ({signals.engagement_rate:.1f}%)")

    return min(score, MAX_SCORE), reasons


def basic_score(candidate: Candidate) -> Tuple[int, List[str]]:
    """Score for a candidate selected for verification whose profile fetch failed."""
    score = (
        (15 if candidate.email else 0)
        + BASIC_CONFIDENCE_POINTS[candidate.confidence]
        + (10 if candidate.has_social_handle else 0)
        + (5 if candidate.followers else 0)
    )
    reasons = ["Unverified (basic scoring only)"]
    if candidate.email:
        reasons.append("Has email")
    if candidate.has_social_handle:
        reasons.append("Has social handle")
    return min(score, MAX_UNVERIFIED_SCORE), reasons


def over_limit_score(candidate: Candidate) -> Tuple[int, List[str]]:
    """Score for a candidate beyond the qualification limit."""
    return OVER_LIMIT_SCORES[candidate.confidence], ["Not verified (over qualification limit)"]


def verification_priority(candidate: Candidate, platform: str) -> int:
    """Rank used to choose which candidates get verified first."""
    priority = CONFIDENCE_RANK[candidate.confidence]
    if platform and candidate.handle_for(platform):
        priority += 10
    if candidate.has_social_handle:
        priority += 3
    return priority
