"""Apify profile scraper tools (TikTok and Instagram).

Each call runs an Apify actor synchronously and returns its dataset items,
normalized to a platform-neutral profile dict. Profile scrapes are slow, so
callers should bound them with their own deadline as well.
"""
import logging
import os
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import requests

logger = logging.getLogger(__name__)


APIFY_BASE = "https://api.apify.com/v2/acts"
TIKTOK_ACTOR = "clockworks~free-tiktok-scraper"
INSTAGRAM_ACTOR = "apify~instagram-profile-scraper"
RECENT_POSTS = 5


def _token() -> Optional[str]:
    return os.environ.get("APIFY_API_TOKEN") or None


def clean_username(handle: str, platform: str) -> str:
    """Reduce a handle or profile URL to a bare username."""
    value = handle.strip()
    domain = "tiktok.com/" if platform == "tiktok" else "instagram.com/"
    if domain in value:
        parsed = urlparse(value if value.startswith("http") else f"https://{value}")
        segments = [s for s in parsed.path.split("/") if s]
        if platform == "tiktok":
            value = next((s for s in segments if s.startswith("@")), value)
        elif segments:
            value = segments[0]
    return value.lstrip("@").rstrip("/").split("?")[0]


def _run_actor(actor: str, payload: Dict[str, Any], timeout: float) -> list:
    resp = requests.post(
        f"{APIFY_BASE}/{actor}/run-sync-get-dataset-items",
        params={"token": _token()},
        json=payload,
        timeout=timeout,
    )
    resp.raise_for_status()
    return resp.json() or []


def fetch_tiktok_profile(handle: str, timeout: float = 60) -> Dict[str, Any]:
    """Scrape a TikTok profile and its most recent videos.

    Returns:
        Dict with 'profile' (username, display_name, bio, followers, website,
        profile_pic_url, recent_posts) or None when the account was not found.
    """
    if not _token():
        return {"profile": None, "skipped": "APIFY_API_TOKEN not set"}
    username = clean_username(handle, "tiktok")
    if not username:
        return {"profile": None, "error": f"unusable TikTok handle {handle!r}"}
    try:
        items = _run_actor(
            TIKTOK_ACTOR,
            {
                "profiles": [f"https://www.tiktok.com/@{username}"],
                "resultsPerPage": RECENT_POSTS,
                "shouldDownloadCovers": False,
                "shouldDownloadVideos": False,
                "shouldDownloadSubtitles": False,
            },
            timeout,
        )
    except Exception as exc:
        logger.warning("TikTok profile scrape failed for @%s: %s", username, exc)
        return {"profile": None, "error": str(exc)}
    if not items:
        return {"profile": None}

    author = items[0].get("authorMeta") or items[0].get("author") or {}
    recent_posts = []
    for item in items[:RECENT_POSTS]:
        stats = item.get("stats") or {}
        recent_posts.append({
            "caption": item.get("text") or item.get("desc") or "",
            "posted_at": item.get("createTimeISO") or item.get("createTime") or None,
            "views": item.get("playCount") or stats.get("playCount") or 0,
            "likes": item.get("diggCount") or stats.get("diggCount") or 0,
            "comments": item.get("commentCount") or stats.get("commentCount") or 0,
            "hashtags": [h.get("name", "") if isinstance(h, dict) else h for h in item.get("hashtags") or []],
        })
    return {
        "profile": {
            "platform": "tiktok",
            "username": author.get("name") or author.get("uniqueId") or username,
            "display_name": author.get("nickName") or author.get("nickname") or "",
            "bio": author.get("signature") or author.get("bio") or "",
            "followers": author.get("fans") or author.get("followers") or 0,
            "website": (author.get("bioLink") or {}).get("link") or None,
            "profile_pic_url": author.get("avatar") or None,
            "recent_posts": recent_posts,
        }
    }


def fetch_instagram_profile(handle: str, timeout: float = 60) -> Dict[str, Any]:
    """Scrape an Instagram profile and its latest posts.

    Returns:
        Dict with 'profile' (same shape as fetch_tiktok_profile plus
        business_category) or None when the account was not found.
    """
    if not _token():
        return {"profile": None, "skipped": "APIFY_API_TOKEN not set"}
    username = clean_username(handle, "instagram")
    if not username:
        return {"profile": None, "error": f"unusable Instagram handle {handle!r}"}
    try:
        items = _run_actor(
            INSTAGRAM_ACTOR,
            {"usernames": [username], "resultsLimit": RECENT_POSTS},
            timeout,
        )
    except Exception as exc:
        logger.warning("Instagram profile scrape failed for @%s: %s", username, exc)
        return {"profile": None, "error": str(exc)}
    if not items:
        return {"profile": None}

    profile = items[0]
    recent_posts = [
        {
            "caption": post.get("caption") or "",
            "posted_at": post.get("timestamp") or None,
            "likes": post.get("likesCount") or 0,
            "comments": post.get("commentsCount") or 0,
            "hashtags": post.get("hashtags") or [],
        }
        for post in (profile.get("latestPosts") or [])[:RECENT_POSTS]
    ]
    return {
        "profile": {
            "platform": "instagram",
            "username": profile.get("username") or username,
            "display_name": profile.get("fullName") or "",
            "bio": profile.get("biography") or profile.get("bio") or "",
            "followers": profile.get("followersCount") or profile.get("followers") or 0,
            "website": profile.get("externalUrl") or profile.get("website") or None,
            "profile_pic_url": profile.get("profilePicUrl") or profile.get("profilePicUrlHD") or None,
            "business_category": profile.get("businessCategoryName") or profile.get("categoryName") or None,
            "recent_posts": recent_posts,
        }
    }
