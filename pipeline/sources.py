"""Source capabilities consumed by the pipeline.

Each adapter category is an abstract class so any source can be swapped or
faked in tests without touching the orchestrator. The default
implementations wrap the blocking vendor clients in `tools/` and run them
in a worker thread.

Adapters raise `SourceError` when a backend fails; callers treat that as
zero results. An adapter whose credentials are missing reports
`configured = False` and is never called.
"""
import asyncio
import logging
import os
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from pipeline.dedupe import deduplicate, sort_by_confidence
from pipeline.heuristics import parse_timestamp
from pipeline_config import PipelineSettings, get_settings
from schemas import Candidate, ProfileSnapshot, RecentPost
from tools import apify_tools, apollo_tools, exa_tools, hunter_tools, scraper_tools, serper_tools

logger = logging.getLogger(__name__)


class SourceError(RuntimeError):
    """A backend call failed (network, HTTP status, malformed response)."""


def _raise_on_error(result: Dict[str, Any], source: str) -> Dict[str, Any]:
    if result.get("error"):
        raise SourceError(f"{source}: {result['error']}")
    return result


# ---------------------------------------------------------------------------
# Candidate filters and mappers
# ---------------------------------------------------------------------------

PAGE_TITLE_PATTERNS = [
    re.compile(
        r"^(experience|discover|explore|learn|how to|the best|top \d+|best \d+|\d+ best|"
        r"\d+ top|a guide|guide to|everything you|why you|what you|welcome to|introducing)",
        re.IGNORECASE,
    ),
    re.compile(
        r"\b(tips for|ways to|things to|reasons to|steps to|click here|subscribe|sign up|"
        r"download|privacy policy|terms of|cookie|loading)\b",
        re.IGNORECASE,
    ),
]
MAX_NAME_LENGTH = 80


def looks_like_page_title(name: str) -> bool:
    """True for article/page titles that are not a person or organization."""
    if len(name) > MAX_NAME_LENGTH:
        return True
    return any(p.search(name) for p in PAGE_TITLE_PATTERNS)


def matches_keywords(texts: Iterable[Optional[str]], keywords: List[str]) -> bool:
    """Whether any keyword occurs in the joined texts. No keywords matches all."""
    terms = [k.lower() for k in keywords if k]
    if not terms:
        return True
    haystack = " ".join(t for t in texts if t).lower()
    return any(term in haystack for term in terms)


def _split_page_title(title: str) -> tuple:
    name = title.split(" | ")[0].split(" - ")[0].split(" • ")[0].strip()
    company = title.split(" | ")[-1].strip() if " | " in title else None
    return name, company


def _or_none(value: Any) -> Optional[str]:
    return value or None


def web_result_to_candidate(result: Dict[str, Any], market_code: str) -> Optional[Candidate]:
    name, company = _split_page_title(result.get("title") or "")
    if not name or looks_like_page_title(name):
        return None
    return Candidate(
        name=name,
        company=company,
        url=_or_none(result.get("link")),
        source=result.get("source") or "Google Search",
        country=market_code,
        confidence="low",
    )


def social_profile_to_candidate(profile: Dict[str, Any], market_code: str) -> Candidate:
    platform = profile.get("platform")
    handle_value = profile.get("handle") or profile.get("url")
    handles = {}
    if platform in ("instagram", "tiktok", "twitter"):
        handles[platform] = handle_value
    elif platform == "linkedin":
        handles["linkedin"] = profile.get("url")
    return Candidate(
        name=profile.get("name") or "",
        source=profile.get("source") or f"Google (site:{platform})",
        url=_or_none(profile.get("url")),
        country=market_code,
        confidence="medium",
        **handles,
    )


def scraped_contact_to_candidate(contact: Dict[str, Any]) -> Candidate:
    return Candidate(
        name=contact.get("name") or "Unknown",
        email=_or_none(contact.get("email")),
        company=_or_none(contact.get("company")),
        title=_or_none(contact.get("title")),
        source=contact.get("source") or "Web Scraping",
        url=_or_none(contact.get("url")),
        instagram=_or_none(contact.get("instagram")),
        tiktok=_or_none(contact.get("tiktok")),
        twitter=_or_none(contact.get("twitter")),
        linkedin=_or_none(contact.get("linkedin")),
        confidence="medium" if contact.get("email") else "low",
    )


def apollo_contact_to_candidate(contact: Dict[str, Any], market_code: str) -> Candidate:
    return Candidate(
        name=contact.get("name") or "",
        email=_or_none(contact.get("email")),
        company=_or_none(contact.get("company")),
        title=_or_none(contact.get("title")),
        source="Apollo.io (API)",
        url=_or_none(contact.get("linkedin")),
        linkedin=_or_none(contact.get("linkedin")),
        country=market_code,
        confidence="high" if contact.get("email_verified") else "medium",
    )


# ---------------------------------------------------------------------------
# Capability interfaces
# ---------------------------------------------------------------------------


class Source(ABC):
    name = "source"

    @property
    def configured(self) -> bool:
        return True

    @property
    def missing_config(self) -> str:
        return ""


class ContactStore(Source):
    name = "Local DB"

    @abstractmethod
    async def lookup(self, market_code: str, keywords: List[str]) -> List[Candidate]:
        """Known contacts for a market whose text mentions any keyword."""


class WebSearch(Source):
    name = "Google Lead Search"

    @abstractmethod
    async def search(self, query: str, market_code: str) -> List[Candidate]:
        ...


class SocialSearch(Source):
    name = "Social Search"

    @abstractmethod
    async def search(self, query: str, market_code: str, platforms: List[str]) -> List[Candidate]:
        ...


class EnrichmentSearch(Source):
    name = "Apollo"

    @abstractmethod
    async def search(self, query: str, market_code: str) -> List[Candidate]:
        ...


class PageScraper(Source):
    name = "Web Scraping"

    @abstractmethod
    async def scrape(self, urls: List[str]) -> List[Candidate]:
        ...


@dataclass
class DeepSearchResult:
    contacts: List[Candidate]
    logs: List[str] = field(default_factory=list)
    apis_used: List[str] = field(default_factory=list)


class DeepSearch(Source):
    name = "Deep Search"

    @abstractmethod
    async def search(self, query: str, market_code: str) -> DeepSearchResult:
        ...


class ProfileFetcher(Source):
    platform = ""

    @abstractmethod
    async def fetch(self, handle: str) -> Optional[ProfileSnapshot]:
        """Fetch a profile; None when the account does not exist."""


# ---------------------------------------------------------------------------
# Default implementations
# ---------------------------------------------------------------------------


def _env_present(name: str) -> bool:
    return bool(os.environ.get(name))


class SqlContactStore(ContactStore):
    """Known contacts from the crm.known_contacts table."""

    @property
    def configured(self) -> bool:
        return _env_present("DATABASE_URL")

    @property
    def missing_config(self) -> str:
        return "DATABASE_URL not set"

    async def lookup(self, market_code: str, keywords: List[str]) -> List[Candidate]:
        # Imported here so the pipeline can run without SQLAlchemy configured.
        from db.connection import get_db
        from db.repositories import contacts as contacts_repo

        async with get_db() as session:
            rows = await contacts_repo.get_by_market(session, market_code)

        return [
            Candidate(
                name=row.person or row.company or "",
                email=_or_none(row.email),
                company=_or_none(row.company),
                title=_or_none(row.title),
                source=f"Local DB ({market_code})",
                instagram=_or_none(row.instagram),
                tiktok=_or_none(row.tiktok),
                twitter=_or_none(row.twitter),
                followers=_or_none(row.followers),
                country=market_code,
                confidence="high" if row.email else "medium",
            )
            for row in rows
            if matches_keywords([row.person, row.company, row.title, row.industry], keywords)
        ]


class SerperWebSearch(WebSearch):
    @property
    def configured(self) -> bool:
        return _env_present("SERPER_API_KEY")

    @property
    def missing_config(self) -> str:
        return "SERPER_API_KEY not set"

    async def search(self, query: str, market_code: str) -> List[Candidate]:
        result = await asyncio.to_thread(serper_tools.google_search, query, market_code)
        _raise_on_error(result, "Serper")
        candidates = (web_result_to_candidate(r, market_code) for r in result["results"])
        return [c for c in candidates if c is not None]


class SerperSocialSearch(SocialSearch):
    @property
    def configured(self) -> bool:
        return _env_present("SERPER_API_KEY")

    @property
    def missing_config(self) -> str:
        return "SERPER_API_KEY not set"

    async def search(self, query: str, market_code: str, platforms: List[str]) -> List[Candidate]:
        result = await asyncio.to_thread(
            serper_tools.search_social_profiles, query, market_code, platforms
        )
        _raise_on_error(result, "Social search")
        return [social_profile_to_candidate(p, market_code) for p in result["profiles"]]


class ApolloEnrichmentSearch(EnrichmentSearch):
    def __init__(self, per_page: int = 25):
        self.per_page = per_page

    @property
    def configured(self) -> bool:
        return _env_present("APOLLO_API_KEY")

    @property
    def missing_config(self) -> str:
        return "APOLLO_API_KEY not set"

    async def search(self, query: str, market_code: str) -> List[Candidate]:
        result = await asyncio.to_thread(
            apollo_tools.apollo_people_search, query, market_code, self.per_page
        )
        _raise_on_error(result, "Apollo")
        return [apollo_contact_to_candidate(c, market_code) for c in result["contacts"]]


class WebPageScraper(PageScraper):
    """Scrapes pages in chunks; a page that fails is skipped."""

    def __init__(self, settings: Optional[PipelineSettings] = None):
        self.settings = settings or get_settings()

    async def _scrape_one(self, url: str) -> List[Candidate]:
        timeout = self.settings.page_timeout_s
        result = await asyncio.wait_for(
            asyncio.to_thread(scraper_tools.scrape_url, url, timeout),
            timeout + 5,
        )
        if not result["success"]:
            logger.info("Scrape of %s failed: %s", url, result.get("error"))
            return []
        return [scraped_contact_to_candidate(c) for c in result["contacts"]]

    async def scrape(self, urls: List[str]) -> List[Candidate]:
        size = max(1, self.settings.scrape_concurrency)
        contacts: List[Candidate] = []
        for start in range(0, len(urls), size):
            chunk = urls[start:start + size]
            results = await asyncio.gather(
                *(self._scrape_one(u) for u in chunk), return_exceptions=True
            )
            for url, result in zip(chunk, results):
                if isinstance(result, Exception):
                    logger.warning("Scrape of %s raised: %r", url, result)
                    continue
                contacts.extend(result)
        return contacts


# --- Deep search backends ---------------------------------------------------


def _deep_apollo(query: str, market_code: str) -> List[Candidate]:
    result = _raise_on_error(apollo_tools.apollo_people_search(query, market_code, 50), "Apollo")
    return [apollo_contact_to_candidate(c, market_code) for c in result["contacts"]]


def _deep_hunter(query: str, market_code: str) -> List[Candidate]:
    discovered = _raise_on_error(hunter_tools.hunter_discover(query, limit=3), "Hunter")
    contacts: List[Candidate] = []
    for company in discovered["companies"]:
        found = hunter_tools.hunter_domain_search(company["domain"])
        if found.get("error"):
            logger.info("Hunter domain search for %s failed: %s", company["domain"], found["error"])
            continue
        for c in found["contacts"]:
            contacts.append(Candidate(
                name=c.get("name") or "",
                email=_or_none(c.get("email")),
                title=_or_none(c.get("title")),
                company=_or_none(found.get("organization") or company.get("organization")),
                url=f"https://{company['domain']}",
                linkedin=_or_none(c.get("linkedin")),
                twitter=_or_none(c.get("twitter")),
                source="Hunter.io (domain search)",
                country=market_code,
                confidence="high" if c.get("verified") else "medium",
            ))
    return contacts


def _deep_exa(query: str, market_code: str) -> List[Candidate]:
    result = _raise_on_error(exa_tools.exa_search_people(query, market_code), "Exa")
    contacts = []
    for r in result["results"]:
        name, company = _split_page_title(r.get("title") or "")
        if not name or looks_like_page_title(name):
            continue
        contacts.append(Candidate(
            name=name,
            company=_or_none(company or r.get("author")),
            url=_or_none(r.get("url")),
            source="Exa (people search)",
            country=market_code,
            confidence="low",
        ))
    return contacts


def _deep_linkedin(query: str, market_code: str) -> List[Candidate]:
    result = _raise_on_error(serper_tools.search_platform(query, "linkedin", market_code), "LinkedIn")
    return [social_profile_to_candidate(p, market_code) for p in result["profiles"]]


DEEP_BACKENDS = {
    "Apollo": ("APOLLO_API_KEY", _deep_apollo),
    "Hunter": ("HUNTER_API_KEY", _deep_hunter),
    "Exa": ("EXA_API_KEY", _deep_exa),
    "LinkedIn": ("SERPER_API_KEY", _deep_linkedin),
}


class FanOutDeepSearch(DeepSearch):
    """Runs every configured backend concurrently and merges the results."""

    def __init__(self, backends: Optional[Dict[str, tuple]] = None):
        self.backends = backends if backends is not None else DEEP_BACKENDS

    def _available(self) -> Dict[str, Any]:
        return {name: fn for name, (env, fn) in self.backends.items() if _env_present(env)}

    @property
    def configured(self) -> bool:
        return bool(self._available())

    @property
    def missing_config(self) -> str:
        return "no deep-search backend credentials set"

    async def search(self, query: str, market_code: str) -> DeepSearchResult:
        available = self._available()
        unavailable = [name for name in self.backends if name not in available]
        logs = [
            f"[DeepSearch] Backends: {', '.join(available) or 'none'}"
            + (f" (not configured: {', '.join(unavailable)})" if unavailable else "")
        ]

        names = list(available)
        results = await asyncio.gather(
            *(asyncio.to_thread(available[n], query, market_code) for n in names),
            return_exceptions=True,
        )

        raw: List[Candidate] = []
        apis_used = []
        for name, result in zip(names, results):
            if isinstance(result, Exception):
                logs.append(f"[DeepSearch] {name} failed: {result}")
                continue
            apis_used.append(name)
            logs.append(f"[DeepSearch] {name}: {len(result)} contacts")
            raw.extend(result)

        contacts = sort_by_confidence(deduplicate(raw))
        logs.append(f"[DeepSearch] Total: {len(contacts)} unique contacts (from {len(raw)} raw results)")
        return DeepSearchResult(contacts=contacts, logs=logs, apis_used=apis_used)


# --- Profile fetchers -------------------------------------------------------


def profile_from_dict(data: Dict[str, Any]) -> ProfileSnapshot:
    posts = [
        RecentPost(
            caption=p.get("caption") or "",
            posted_at=parse_timestamp(p.get("posted_at")),
            views=int(p.get("views") or 0),
            likes=int(p.get("likes") or 0),
            comments=int(p.get("comments") or 0),
            hashtags=[h for h in (p.get("hashtags") or []) if h],
        )
        for p in data.get("recent_posts") or []
    ]
    return ProfileSnapshot(
        platform=data["platform"],
        username=data.get("username") or "",
        display_name=data.get("display_name") or "",
        bio=data.get("bio") or "",
        followers=int(data.get("followers") or 0),
        website=data.get("website") or None,
        profile_pic_url=data.get("profile_pic_url") or None,
        business_category=data.get("business_category") or None,
        recent_posts=posts,
    )


class ApifyProfileFetcher(ProfileFetcher):
    def __init__(self, platform: str, settings: Optional[PipelineSettings] = None):
        fetchers = {
            "tiktok": apify_tools.fetch_tiktok_profile,
            "instagram": apify_tools.fetch_instagram_profile,
        }
        if platform not in fetchers:
            raise ValueError(f"No Apify profile scraper for {platform!r}")
        self.platform = platform
        self.name = f"Apify {platform}"
        self._fetch = fetchers[platform]
        self.settings = settings or get_settings()

    @property
    def configured(self) -> bool:
        return _env_present("APIFY_API_TOKEN")

    @property
    def missing_config(self) -> str:
        return "APIFY_API_TOKEN not set"

    async def fetch(self, handle: str) -> Optional[ProfileSnapshot]:
        result = await asyncio.to_thread(self._fetch, handle, self.settings.profile_timeout_s)
        _raise_on_error(result, self.name)
        if not result.get("profile"):
            return None
        return profile_from_dict(result["profile"])


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


@dataclass
class SourceSet:
    store: ContactStore
    web: WebSearch
    social: SocialSearch
    enrichment: EnrichmentSearch
    scraper: PageScraper
    deep: DeepSearch
    profiles: Dict[str, ProfileFetcher] = field(default_factory=dict)


def default_sources(settings: Optional[PipelineSettings] = None) -> SourceSet:
    settings = settings or get_settings()
    return SourceSet(
        store=SqlContactStore(),
        web=SerperWebSearch(),
        social=SerperSocialSearch(),
        enrichment=ApolloEnrichmentSearch(),
        scraper=WebPageScraper(settings),
        deep=FanOutDeepSearch(),
        profiles={
            "tiktok": ApifyProfileFetcher("tiktok", settings),
            "instagram": ApifyProfileFetcher("instagram", settings),
        },
    )
