"""Hunter.io company discovery and email enrichment tools.

Calls Hunter.io REST API directly (no official Python SDK).
"""
import os
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import requests


HUNTER_BASE = "https://api.hunter.io/v2"
PRIORITY_TITLES = [
    "a&r", "editor", "curator", "journalist", "publicist", "pr manager",
    "head of music", "booking", "talent", "marketing manager", "founder",
]


def _api_key() -> Optional[str]:
    return os.environ.get("HUNTER_API_KEY") or None


def hunter_discover(query: str, limit: int = 5) -> Dict[str, Any]:
    """Find companies matching a natural-language query via Hunter Discover.

    Args:
        query: Natural language description of the companies wanted.
        limit: Max companies to return.

    Returns:
        Dict with 'companies' list, each with 'domain' and 'organization'.
    """
    api_key = _api_key()
    if not api_key:
        return {"companies": [], "query": query, "skipped": "HUNTER_API_KEY not set"}
    try:
        resp = requests.post(
            f"{HUNTER_BASE}/discover",
            params={"api_key": api_key},
            json={"query": query},
            timeout=15,
        )
        resp.raise_for_status()
        data = resp.json().get("data", []) or []
        companies = [
            {"domain": c.get("domain", ""), "organization": c.get("organization", "")}
            for c in data
            if c.get("domain")
        ]
        return {"companies": companies[:limit], "query": query}
    except Exception as exc:
        return {"companies": [], "query": query, "error": str(exc)}


def hunter_domain_search(domain: str, limit: int = 5) -> Dict[str, Any]:
    """Search Hunter.io for email addresses at a domain.

    Args:
        domain: Company domain to search (e.g. example.com).
        limit: Max contacts to return (default 5).

    Returns:
        Dict with 'pattern', 'contacts' list, and 'organization'.
    """
    api_key = _api_key()
    if not api_key:
        return {"domain": domain, "contacts": [], "skipped": "HUNTER_API_KEY not set"}
    try:
        params = urlencode({
            "domain": domain,
            "limit": limit,
            "api_key": api_key,
        })
        resp = requests.get(f"{HUNTER_BASE}/domain-search?{params}", timeout=10)
        resp.raise_for_status()
        data = resp.json().get("data", {})

        contacts = []
        for email_entry in data.get("emails", []):
            full_name = f"{email_entry.get('first_name') or ''} {email_entry.get('last_name') or ''}".strip()
            contacts.append({
                "name": full_name,
                "title": email_entry.get("position") or "",
                "email": email_entry.get("value", ""),
                "linkedin": email_entry.get("linkedin") or "",
                "twitter": email_entry.get("twitter") or "",
                "verified": (email_entry.get("verification") or {}).get("status") == "valid",
            })

        # Sort: prioritize decision-maker titles
        def _priority(c: Dict) -> int:
            title_lower = c.get("title", "").lower()
            for i, t in enumerate(PRIORITY_TITLES):
                if t in title_lower:
                    return i
            return 99

        contacts.sort(key=_priority)

        return {
            "domain": domain,
            "organization": data.get("organization", ""),
            "email_pattern": data.get("pattern", ""),
            "contacts": contacts[:limit],
        }
    except Exception as exc:
        return {"domain": domain, "contacts": [], "error": str(exc)}
