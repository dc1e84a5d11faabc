"""Exa semantic search tools.

Uses highlights mode for token-efficient results. Exa is one of the Tier 3
deep-search backends: it finds people pages that plain Google misses.
See https://exa.ai/docs/reference/search-best-practices
"""
import os
from typing import Any, Dict, Optional

from exa_py import Exa


SAFE_KEYWORDS = [
    "music", "entertainment", "blog", "magazine", "artist", "rapper", "dj",
    "producer", "label", "record", "song", "album", "genre", "media",
    "playlist", "curator", "radio", "press", "interview", "podcast",
    "manager", "booking", "festival", "club", "venue", "chart",
]

COUNTRY_SUFFIX = {"ZA": "in South Africa", "UK": "in UK", "USA": "in USA"}


def _api_key() -> Optional[str]:
    return os.environ.get("EXA_API_KEY") or None


def _client() -> Exa:
    return Exa(api_key=os.environ["EXA_API_KEY"])


def enrich_query(query: str, country: str) -> str:
    """Add industry and country context so ambiguous terms resolve correctly."""
    lower = query.lower()
    rich = query
    if not any(k in lower for k in SAFE_KEYWORDS):
        rich = f"{rich} music entertainment industry"
    if country.lower() not in lower:
        rich = f"{rich} {COUNTRY_SUFFIX.get(country, f'in {country}')}"
    return rich


def exa_search_people(
    query: str,
    country: str = "ZA",
    num_results: int = 10,
) -> Dict[str, Any]:
    """Search for people pages using Exa semantic search.

    Args:
        query: Natural language search query.
        country: Market code appended as location context.
        num_results: Number of results to return (max 25).

    Returns:
        Dict with 'results' list, each containing url, title, author, highlights.
    """
    if not _api_key():
        return {"results": [], "query": query, "skipped": "EXA_API_KEY not set"}
    rich_query = enrich_query(query, country)
    try:
        client = _client()
        response = client.search(
            rich_query,
            num_results=min(num_results, 25),
            type="auto",
            category="people",
            contents={
                "highlights": {
                    "maxCharacters": 2000,
                }
            },
        )
        results = [
            {
                "url": r.url,
                "title": r.title or "",
                "author": getattr(r, "author", None) or "",
                "highlights": r.highlights or [],
            }
            for r in response.results
        ]
        return {"results": results, "query": rich_query}
    except Exception as exc:
        return {"results": [], "query": rich_query, "error": str(exc)}
