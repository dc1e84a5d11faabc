"""Candidate merge / dedup.

Two records are the same entity when their lowercased, stripped name and
email both match. Records with neither are dropped.
"""
from typing import Dict, Iterable, List, Optional

from schemas import CONFIDENCE_RANK, Candidate

# Fields filled from later duplicates when the stored record lacks them.
# `source` is deliberately absent: the first-seen source is kept.
MERGE_FIELDS = (
    "email", "company", "title", "url",
    "instagram", "tiktok", "twitter", "linkedin",
    "followers", "country",
)


def identity_key(candidate: Candidate) -> Optional[str]:
    name = (candidate.name or "").lower().strip()
    email = (candidate.email or "").lower().strip()
    if not name and not email:
        return None
    return f"{name}||{email}"


def merge_pair(stored: Candidate, incoming: Candidate) -> Candidate:
    """Fill gaps in `stored` from `incoming` and promote confidence."""
    updates = {
        field: getattr(incoming, field)
        for field in MERGE_FIELDS
        if not getattr(stored, field) and getattr(incoming, field)
    }
    if CONFIDENCE_RANK[incoming.confidence] > CONFIDENCE_RANK[stored.confidence]:
        updates["confidence"] = incoming.confidence
    return stored.model_copy(update=updates) if updates else stored


def deduplicate(candidates: Iterable[Candidate]) -> List[Candidate]:
    """Collapse duplicates, preserving first-arrival order."""
    seen: Dict[str, Candidate] = {}
    for candidate in candidates:
        key = identity_key(candidate)
        if key is None:
            continue
        existing = seen.get(key)
        seen[key] = candidate if existing is None else merge_pair(existing, candidate)
    return list(seen.values())


def sort_by_confidence(candidates: Iterable[Candidate]) -> List[Candidate]:
    """high -> medium -> low; ties keep their order."""
    return sorted(candidates, key=lambda c: -CONFIDENCE_RANK[c.confidence])
