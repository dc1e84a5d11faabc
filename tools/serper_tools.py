"""Serper.dev Google search tools.

Covers both plain Google lead search and `site:`-targeted social profile
search. Calls the Serper REST API directly (no official Python SDK).
"""
import logging
import os
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import requests

logger = logging.getLogger(__name__)


SERPER_URL = "https://google.serper.dev/search"

# Market code -> Google `gl` parameter
GL_CODES = {
    "ZA": "za", "UK": "uk", "USA": "us", "US": "us",
    "NG": "ng", "GH": "gh", "KE": "ke",
    "DE": "de", "FR": "fr", "AU": "au",
    "CA": "ca", "JP": "jp", "BR": "br",
}

DEFAULT_PLATFORMS = ["instagram", "tiktok", "twitter", "linkedin"]

MUSIC_KEYWORDS = [
    "music", "artist", "rapper", "dj", "producer", "label", "song", "album",
    "genre", "playlist", "curator", "radio", "hip-hop", "amapiano", "afrobeats",
    "gqom", "r&b", "pop", "rock", "jazz", "dance", "dancer", "singer",
    "songwriter", "entertainment", "media", "press", "journalist", "blogger",
    "influencer", "content creator", "promoter", "festival", "concert",
]

# platform -> (site operator, suffix when query lacks context, suffix when it has context)
PLATFORM_QUERIES = {
    "instagram": ("site:instagram.com", " music", ""),
    "tiktok": ("site:tiktok.com/@", " music", ""),
    "twitter": ("site:x.com", " music OR journalist OR curator OR blogger", ""),
    "youtube": ("site:youtube.com", " music channel", " channel"),
    "linkedin": ("site:linkedin.com/in", " music entertainment PR", ""),
}


def _api_key() -> Optional[str]:
    return os.environ.get("SERPER_API_KEY") or None


def google_search(query: str, country: str = "ZA", num_results: int = 15) -> Dict[str, Any]:
    """Run a Google search through Serper.

    Args:
        query: Search query.
        country: Market code used to pick the Google locale.
        num_results: Number of organic results to request.

    Returns:
        Dict with 'results' list (title, link, snippet, position, source).
        'skipped' is set when no API key is configured, 'error' on failure.
    """
    api_key = _api_key()
    if not api_key:
        return {"results": [], "query": query, "skipped": "SERPER_API_KEY not set"}
    try:
        resp = requests.post(
            SERPER_URL,
            headers={"X-API-KEY": api_key, "Content-Type": "application/json"},
            json={"q": query, "gl": GL_CODES.get(country.upper(), "us"), "num": num_results},
            timeout=20,
        )
        resp.raise_for_status()
        organic = resp.json().get("organic", []) or []
        results = [
            {
                "title": item.get("title", ""),
                "link": item.get("link", ""),
                "snippet": item.get("snippet", ""),
                "position": item.get("position"),
                "source": "Google (Serper)",
            }
            for item in organic
        ]
        return {"results": results, "query": query}
    except Exception as exc:
        return {"results": [], "query": query, "error": str(exc)}


def has_music_context(query: str) -> bool:
    lower = query.lower()
    return any(k in lower for k in MUSIC_KEYWORDS)


def extract_handle(url: str, platform: str) -> str:
    """Pull the account handle out of a profile URL ('' if there is none)."""
    try:
        segments = [s for s in urlparse(url).path.split("/") if s]
    except ValueError:
        return ""
    if not segments:
        return ""
    first = segments[0]
    if platform in ("instagram", "twitter"):
        return f"@{first}"
    if platform == "tiktok":
        return first
    if platform == "youtube":
        if first.startswith("@"):
            return first
        return segments[1] if len(segments) > 1 else first
    if platform == "linkedin":
        return segments[1] if len(segments) > 1 else ""
    return first


def _display_name(title: str) -> str:
    return title.split(" | ")[0].split(" - ")[0].split(" • ")[0].strip()


def _is_profile_url(url: str, platform: str) -> bool:
    if platform == "instagram":
        return "/p/" not in url and "/reel/" not in url
    if platform == "tiktok":
        return "/@" in url and "/video/" not in url
    if platform == "twitter":
        return "/status/" not in url
    if platform == "youtube":
        return any(marker in url for marker in ("/channel/", "/c/", "/@"))
    return True


def search_platform(query: str, platform: str, country: str = "ZA") -> Dict[str, Any]:
    """Find profiles on one social platform via a Google `site:` search.

    Returns:
        Dict with 'profiles' list (platform, name, url, handle, bio, source).
    """
    if platform not in PLATFORM_QUERIES:
        return {"profiles": [], "platform": platform, "error": f"unsupported platform {platform!r}"}

    site, bare_suffix, context_suffix = PLATFORM_QUERIES[platform]
    suffix = context_suffix if has_music_context(query) else bare_suffix
    search = google_search(f"{site} {query}{suffix}", country)
    if "results" not in search or search.get("error") or search.get("skipped"):
        return {
            "profiles": [],
            "platform": platform,
            **{k: search[k] for k in ("error", "skipped") if k in search},
        }

    profiles = []
    for r in search["results"]:
        url = r.get("link", "")
        if not url or not _is_profile_url(url, platform):
            continue
        profiles.append({
            "platform": platform,
            "name": _display_name(r.get("title", "")),
            "url": url,
            "handle": extract_handle(url, platform),
            "bio": r.get("snippet", ""),
            "source": f"Google (site:{platform})",
        })
    return {"profiles": profiles, "platform": platform}


def search_social_profiles(
    query: str,
    country: str = "ZA",
    platforms: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """Search several social platforms; one platform failing does not stop the rest.

    Returns:
        Dict with 'profiles' (flattened, in platform order) and per-platform 'errors'.
    """
    platforms = platforms or DEFAULT_PLATFORMS
    profiles: List[Dict[str, Any]] = []
    errors: Dict[str, str] = {}
    skipped = None
    for platform in platforms:
        result = search_platform(query, platform, country)
        if result.get("skipped"):
            skipped = result["skipped"]
            break
        if result.get("error"):
            logger.warning("Social search on %s failed: %s", platform, result["error"])
            errors[platform] = result["error"]
            continue
        profiles.extend(result["profiles"])

    out: Dict[str, Any] = {"profiles": profiles, "query": query, "errors": errors}
    if skipped:
        out["skipped"] = skipped
    elif errors and len(errors) == len(platforms):
        out["error"] = "; ".join(f"{p}: {e}" for p, e in errors.items())
    return out
