"""Brief -> (search query, market codes)."""
import re
from typing import List, Optional, Tuple

from schemas import Brief


MARKET_CODES = {
    "south africa": "ZA",
    "nigeria": "NG",
    "ghana": "GH",
    "kenya": "KE",
    "united kingdom": "UK",
    "uk": "UK",
    "united states": "USA",
    "usa": "USA",
    "us": "USA",
    "germany": "DE",
    "france": "FR",
    "australia": "AU",
    "canada": "CA",
    "japan": "JP",
    "brazil": "BR",
    "tanzania": "TZ",
    "uganda": "UG",
    "egypt": "EG",
    "morocco": "MA",
    "india": "IN",
    "netherlands": "NL",
    "sweden": "SE",
    "italy": "IT",
    "spain": "ES",
    "portugal": "PT",
    "mexico": "MX",
    "colombia": "CO",
    "argentina": "AR",
    "chile": "CL",
    "new zealand": "NZ",
    "ireland": "IE",
    "jamaica": "JM",
    "trinidad and tobago": "TT",
}

CONTACT_SUFFIX = "email contact"


def normalize_market(market: str) -> str:
    """Map a market name to its short code.

    Unknown markets fall back to their first two letters, uppercased.
    """
    return MARKET_CODES.get(market.lower().strip(), market.strip().upper()[:2])


def build_search_query(brief: Brief) -> str:
    parts = []
    if brief.genre:
        parts.append(brief.genre)
    if brief.contact_types:
        parts.append(" ".join(brief.contact_types))
    # Specific location goes before the market for precision ("Soweto South Africa")
    if brief.specific_location:
        parts.append(brief.specific_location)
    if brief.markets:
        parts.append(" ".join(brief.markets))
    parts.append(CONTACT_SUFFIX)

    query = re.sub(r"\s+", " ", " ".join(p for p in parts if p)).strip()

    freeform = (brief.query or "").strip()
    if freeform and freeform.lower() not in query.lower():
        return f"{freeform} {query}"
    return query


def build_query(brief: Brief) -> Tuple[str, List[str]]:
    return build_search_query(brief), [normalize_market(m) for m in brief.markets]


SOCIAL_PLATFORMS = ("instagram", "tiktok", "twitter", "youtube", "linkedin")
DEFAULT_SOCIAL_PLATFORMS = ["instagram", "tiktok", "twitter", "linkedin"]


def build_social_query(brief: Brief) -> str:
    """Genre, contact types and location only; markets are passed separately."""
    parts = [brief.genre, *brief.contact_types, brief.specific_location]
    return re.sub(r"\s+", " ", " ".join(p for p in parts if p)).strip()


def select_platforms(preferred: Optional[str]) -> List[str]:
    platform = (preferred or "").strip().lower()
    if platform in SOCIAL_PLATFORMS:
        return [platform]
    return list(DEFAULT_SOCIAL_PLATFORMS)


def brief_keywords(brief: Brief) -> List[str]:
    """Terms a locally stored contact must mention to be relevant."""
    return [k.strip() for k in [*brief.contact_types, brief.genre or ""] if k and k.strip()]
