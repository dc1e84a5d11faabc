"""Lead discovery and qualification schemas."""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


Confidence = Literal["low", "medium", "high"]

CONFIDENCE_RANK = {"low": 1, "medium": 2, "high": 3}

SOCIAL_FIELDS = ("instagram", "tiktok", "twitter", "linkedin")


class Candidate(BaseModel):
    """A raw contact record from a single source, or several merged records."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    email: Optional[str] = None
    company: Optional[str] = None
    title: Optional[str] = None
    source: str
    url: Optional[str] = None
    instagram: Optional[str] = None
    tiktok: Optional[str] = None
    twitter: Optional[str] = None
    linkedin: Optional[str] = None
    followers: Optional[str] = None  # display string, e.g. "12.5K"
    country: Optional[str] = None    # normalized market code
    confidence: Confidence = "low"

    def handle_for(self, platform: str) -> Optional[str]:
        if platform not in SOCIAL_FIELDS:
            return None
        return getattr(self, platform)

    @property
    def has_social_handle(self) -> bool:
        return any(getattr(self, f) for f in SOCIAL_FIELDS)


# Merging never changes the shape of a record.
MergedCandidate = Candidate


class QualifiedLead(Candidate):
    verified_followers: Optional[int] = None
    last_post_date: Optional[datetime] = None
    is_active: bool = False
    bio: Optional[str] = None
    detected_niche: str = "general"
    detected_location: Optional[str] = None
    website_url: Optional[str] = None
    profile_pic_url: Optional[str] = None
    engagement_rate_percent: Optional[float] = None
    recent_hashtags: List[str] = Field(default_factory=list, max_length=10)
    quality_score: int = Field(ge=0, le=100)
    quality_reasons: List[str] = Field(default_factory=list)
    was_verified: bool = False
