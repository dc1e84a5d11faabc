"""Normalized social profile data returned by profile fetchers."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class RecentPost(BaseModel):
    caption: str = ""
    posted_at: Optional[datetime] = None
    views: int = 0
    likes: int = 0
    comments: int = 0
    hashtags: List[str] = Field(default_factory=list)


class ProfileSnapshot(BaseModel):
    platform: str
    username: str
    display_name: str = ""
    bio: str = ""
    followers: int = 0
    website: Optional[str] = None
    profile_pic_url: Optional[str] = None
    business_category: Optional[str] = None
    recent_posts: List[RecentPost] = Field(default_factory=list)
