"""Apollo.io people search tools.

Calls the Apollo REST API directly. Apollo is the structured B2B source for
Tier 2 and one of the Tier 3 deep-search backends.
"""
import os
from typing import Any, Dict, List, Optional

import requests


APOLLO_BASE = "https://api.apollo.io/v1"
DEFAULT_TITLES = [
    "curator", "journalist", "blogger", "DJ", "A&R", "PR",
    "publicist", "editor", "manager",
]
# Market code -> Apollo person_locations value
LOCATION_NAMES = {
    "ZA": "South Africa", "NG": "Nigeria", "GH": "Ghana", "KE": "Kenya",
    "UK": "United Kingdom", "USA": "United States", "DE": "Germany",
    "FR": "France", "AU": "Australia", "CA": "Canada",
}


def _api_key() -> Optional[str]:
    return os.environ.get("APOLLO_API_KEY") or None


def apollo_people_search(
    query: str,
    country: str = "ZA",
    per_page: int = 25,
    titles: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """Search Apollo for people matching a keyword query in a market.

    Args:
        query: Keyword query.
        country: Market code.
        per_page: Page size (max 100).
        titles: Job titles to bias toward (defaults to media/music roles).

    Returns:
        Dict with 'contacts' list (name, email, title, company, linkedin,
        email_verified).
    """
    api_key = _api_key()
    if not api_key:
        return {"contacts": [], "query": query, "skipped": "APOLLO_API_KEY not set"}
    try:
        resp = requests.post(
            f"{APOLLO_BASE}/mixed_people/search",
            headers={
                "Content-Type": "application/json",
                "Cache-Control": "no-cache",
                "X-Api-Key": api_key,
            },
            json={
                "q_keywords": query,
                "person_locations": [LOCATION_NAMES.get(country, country)],
                "person_titles": titles or DEFAULT_TITLES,
                "per_page": min(per_page, 100),
            },
            timeout=30,
        )
        resp.raise_for_status()
        contacts = []
        for person in resp.json().get("people", []) or []:
            name = f"{person.get('first_name') or ''} {person.get('last_name') or ''}".strip()
            contacts.append({
                "name": name,
                "email": person.get("email") or "",
                "title": person.get("title") or "",
                "company": (person.get("organization") or {}).get("name") or "",
                "linkedin": person.get("linkedin_url") or "",
                "email_verified": person.get("email_status") == "verified",
            })
        return {"contacts": contacts, "query": query}
    except Exception as exc:
        return {"contacts": [], "query": query, "error": str(exc)}
