"""Profile classifiers: niche, location and posting activity.

Niche and location detection are ordered lookup tables. Add a row to extend
them; order decides precedence.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional, Tuple

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)


DEFAULT_NICHE = "general"
MAX_NICHE_LABELS = 3

NICHE_PATTERNS: List[Tuple[str, re.Pattern]] = [
    ("dance", re.compile(r"\b(danc(e|er|ing)|choreograph\w*|choreo|moves|footwork|groove)\b")),
    ("amapiano", re.compile(r"\b(amapiano|piano|yanos)\b")),
    ("hip-hop", re.compile(r"\b(hip[\s-]?hop|rap|rapper|bars|freestyle)\b")),
    ("afrobeats", re.compile(r"\b(afrobeats?|afro[\s-]?beats?|naija)\b")),
    ("gqom", re.compile(r"\b(gqom|durban)\b")),
    ("dj", re.compile(r"\b(dj|disc\s*jockey|mixing|turntabl\w*|decks)\b")),
    ("music production", re.compile(r"\b(produc(er|tion)|beat[\s-]?mak\w*|studio|fl\s?studio|ableton)\b")),
    ("fashion", re.compile(r"\b(fashion|style|model|runway|designer|outfit)\b")),
    ("comedy", re.compile(r"\b(comed(y|ian)|funny|humor|skit|jokes)\b")),
    ("lifestyle", re.compile(r"\b(lifestyle|vlog|daily|routine)\b")),
    ("fitness", re.compile(r"\b(fitness|gym|workout|training|muscle)\b")),
    ("food", re.compile(r"\b(food|cook|chef|recipe|kitchen)\b")),
    ("beauty", re.compile(r"\b(beauty|makeup|skincare|cosmetics?)\b")),
    ("music", re.compile(r"\b(music|song|album|track|single|artist|singer|vocal|acoustic)\b")),
    ("culture", re.compile(r"\b(culture|heritage|tradition|communit\w*|township|african)\b")),
    ("influencer", re.compile(r"\b(influenc\w*|content\s*creat\w*|brand\s*ambassador|collab)\b")),
]


def detect_niche(bio: str, hashtags: Iterable[str] = (), captions: Iterable[str] = ()) -> str:
    """Up to three matching niche labels joined by ', ', or 'general'."""
    text = " ".join([bio or "", *hashtags, *captions]).lower()
    labels = [label for label, pattern in NICHE_PATTERNS if pattern.search(text)]
    return ", ".join(labels[:MAX_NICHE_LABELS]) or DEFAULT_NICHE


def _place(term: str, label: Optional[str] = None) -> Tuple[re.Pattern, str]:
    pattern = re.compile(rf"(?<!\w){re.escape(term)}(?!\w)")
    return pattern, label or term.title()


# Cities and townships, then international cities, then countries, then
# flags and slang. First match wins.
LOCATIONS: List[Tuple[re.Pattern, str]] = [
    _place(t) for t in (
        "soweto", "johannesburg", "pretoria", "tshwane", "cape town", "durban",
        "ethekwini", "port elizabeth", "gqeberha", "bloemfontein", "east london",
        "polokwane", "nelspruit", "mbombela", "pietermaritzburg", "kimberley",
        "rustenburg", "sandton", "rosebank", "braamfontein", "newtown", "melville",
        "alexandra", "khayelitsha", "gugulethu", "langa", "mitchells plain",
        "mamelodi", "soshanguve", "centurion", "midrand", "randburg", "benoni",
        "boksburg", "germiston",
    )
] + [
    _place("joburg", "Johannesburg"),
    _place("jozi", "Johannesburg"),
] + [
    _place(t) for t in (
        "mpumalanga", "limpopo", "gauteng", "kwazulu-natal", "western cape",
        "eastern cape", "free state", "north west", "northern cape",
    )
] + [
    _place("kzn", "KwaZulu-Natal"),
] + [
    _place(t) for t in (
        "london", "manchester", "birmingham", "lagos", "accra", "nairobi",
        "new york", "los angeles", "atlanta", "toronto", "paris", "berlin",
    )
] + [
    _place("south africa", "South Africa"),
    _place("nigeria", "Nigeria"),
    _place("united kingdom", "UK"),
    _place("uk", "UK"),
    _place("ghana", "Ghana"),
    _place("kenya", "Kenya"),
] + [
    (re.compile(re.escape("\U0001F1FF\U0001F1E6")), "South Africa"),
    (re.compile(r"(?<!\w)mzansi(?!\w)"), "South Africa"),
    (re.compile(re.escape("\U0001F1F3\U0001F1EC")), "Nigeria"),
    (re.compile(re.escape("\U0001F1EC\U0001F1E7")), "UK"),
]


def detect_location(bio: str, text: str = "") -> Optional[str]:
    """First gazetteer match in the bio and recent post text, or None."""
    combined = f"{bio or ''} {text or ''}".lower()
    for pattern, label in LOCATIONS:
        if pattern.search(combined):
            return label
    return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO string, an epoch (seconds or ms) or a datetime into UTC.

    Unparseable values return None.
    """
    if value is None or value == "":
        return None
    try:
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, (int, float)):
            seconds = value / 1000 if value > 1e12 else value
            parsed = datetime.fromtimestamp(seconds, tz=timezone.utc)
        elif isinstance(value, str) and value.strip().isdigit():
            return parse_timestamp(int(value.strip()))
        else:
            try:
                parsed = date_parser.isoparse(str(value))
            except ValueError:
                parsed = date_parser.parse(str(value))
    except (ValueError, OverflowError, OSError) as exc:
        logger.debug("Unparseable timestamp %r: %s", value, exc)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def days_since(timestamp: datetime, now: Optional[datetime] = None) -> int:
    """Whole days elapsed, floored."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return (now - timestamp).days


def is_recently_active(
    last_post: Optional[datetime],
    now: Optional[datetime] = None,
    window_days: int = 60,
) -> bool:
    """Active iff a last post exists and is at most `window_days` old."""
    if last_post is None:
        return False
    return days_since(last_post, now) <= window_days
