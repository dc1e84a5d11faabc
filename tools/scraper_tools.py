"""Web page contact scraper.

Fetches a page with requests and extracts emails, social links, phone numbers
and person cards with BeautifulSoup. No headless browser.
"""
import ipaddress
import logging
import re
from typing import Any, Dict, List
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)


HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}

EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}")
PHONE_RE = re.compile(r"(?:\+?\d{1,3}[-.\s]?)?\(?\d{2,4}\)?[-.\s]?\d{3,4}[-.\s]?\d{3,4}")

# Common false positives
EMAIL_BLACKLIST = (
    "example.com", "test.com", "domain.com", "email.com",
    "yourname@", "name@", "user@", "info@example",
    ".png", ".jpg", ".gif", ".svg", ".css", ".js",
)

SOCIAL_PATTERNS = {
    "instagram": re.compile(r"https?://(?:www\.)?instagram\.com/[a-zA-Z0-9_.]+"),
    "twitter": re.compile(r"https?://(?:www\.)?(?:twitter\.com|x\.com)/[a-zA-Z0-9_]+"),
    "tiktok": re.compile(r"https?://(?:www\.)?tiktok\.com/@[a-zA-Z0-9_.]+"),
    "linkedin": re.compile(r"https?://(?:www\.)?linkedin\.com/(?:in|company)/[a-zA-Z0-9\-]+"),
    "youtube": re.compile(r"https?://(?:www\.)?youtube\.com/(?:@[a-zA-Z0-9\-_]+|(?:channel|c)/[a-zA-Z0-9\-_]+)"),
    "soundcloud": re.compile(r"https?://(?:www\.)?soundcloud\.com/[a-zA-Z0-9\-]+"),
    "facebook": re.compile(r"https?://(?:www\.)?facebook\.com/[a-zA-Z0-9.\-]+"),
    "spotify": re.compile(r"https?://open\.spotify\.com/(?:artist|user)/[a-zA-Z0-9]+"),
}

TWITTER_EXCLUDED_PATHS = {
    "home", "explore", "search", "notifications", "messages", "settings",
    "i", "intent", "hashtag", "share", "login", "signup",
}

BLOCKED_HOSTS = {"localhost", "metadata.google.internal", "metadata.google", "metadata"}
CARRIER_GRADE_NAT = ipaddress.ip_network("100.64.0.0/10")

PERSON_CARD_SELECTOR = (
    '[itemtype*="Person"], .team-member, .staff, .contact-card, .author, '
    '[class*="team"], [class*="author"]'
)


def is_url_safe(url: str) -> bool:
    """Refuse non-http(s) schemes and private, loopback or metadata hosts."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if parsed.scheme not in ("http", "https"):
        return False
    host = (parsed.hostname or "").lower()
    if not host or host in BLOCKED_HOSTS:
        return False
    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        return True
    return not (
        ip.is_private
        or ip.is_loopback
        or ip.is_link_local
        or ip.is_unspecified
        or ip.is_reserved
        or (ip.version == 4 and ip in CARRIER_GRADE_NAT)
    )


def _email_allowed(email: str) -> bool:
    lower = email.lower()
    return not any(bl in lower for bl in EMAIL_BLACKLIST)


def extract_emails(text: str) -> List[str]:
    return [e for e in dict.fromkeys(EMAIL_RE.findall(text)) if _email_allowed(e)]


def extract_social_links(text: str) -> Dict[str, List[str]]:
    links = {}
    for platform, pattern in SOCIAL_PATTERNS.items():
        matches = pattern.findall(text)
        if platform == "twitter":
            matches = [
                m for m in matches
                if urlparse(m).path.strip("/").split("/")[0].lower() not in TWITTER_EXCLUDED_PATHS
            ]
        links[platform] = list(dict.fromkeys(matches))
    return links


def extract_phone_numbers(text: str) -> List[str]:
    return [
        p for p in dict.fromkeys(PHONE_RE.findall(text))
        if len(re.sub(r"\D", "", p)) >= 8
    ]


def _empty(url: str, error: str) -> Dict[str, Any]:
    return {
        "url": url,
        "contacts": [],
        "emails": [],
        "social_links": {p: [] for p in SOCIAL_PATTERNS},
        "success": False,
        "error": error,
    }


def scrape_url(url: str, timeout: float = 10) -> Dict[str, Any]:
    """Fetch one page and extract contact information from it.

    Args:
        url: Page URL. Private/internal addresses are refused.
        timeout: Request timeout in seconds.

    Returns:
        Dict with 'contacts' (name, title, email, url, handles, phone, source),
        'emails', 'social_links' and 'success'. On failure 'error' is set.
    """
    if not is_url_safe(url):
        return _empty(url, "URL blocked: private/internal addresses are not allowed")
    try:
        resp = requests.get(url, headers=HEADERS, timeout=timeout)
        resp.raise_for_status()
        html = resp.text
    except Exception as exc:
        return _empty(url, str(exc))

    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript", "iframe"]):
        tag.decompose()

    body = soup.body or soup
    body_text = re.sub(r"\s+", " ", body.get_text(" ")).strip()
    full_html = str(soup)

    emails = extract_emails(f"{body_text} {full_html}")
    social_links = extract_social_links(full_html)
    phones = extract_phone_numbers(body_text)
    source = f"Scraped from {urlparse(url).hostname}"

    contacts: List[Dict[str, Any]] = []
    for card in soup.select(PERSON_CARD_SELECTOR):
        name_el = card.select_one('[itemprop="name"], h2, h3, h4, .name')
        name = name_el.get_text(strip=True) if name_el else ""
        if not (2 < len(name) < 100):
            continue
        title_el = card.select_one('[itemprop="jobTitle"], .title, .position, .role')
        mail_el = card.select_one('a[href^="mailto:"]')
        email = mail_el["href"][len("mailto:"):].split("?")[0] if mail_el else ""
        contacts.append({
            "name": name,
            "title": title_el.get_text(strip=True) if title_el else "",
            "email": email,
            "url": url,
            "source": source,
        })

    for link in soup.select('a[href^="mailto:"]'):
        email = link["href"][len("mailto:"):].split("?")[0]
        if not email or not _email_allowed(email):
            continue
        if any(c["email"] == email for c in contacts):
            continue
        text = link.get_text(strip=True)
        contacts.append({
            "name": text if text != email else "",
            "title": "",
            "email": email,
            "url": url,
            "source": source,
        })

    if phones and contacts:
        contacts[0]["phone"] = phones[0]
    for contact in contacts:
        for platform in ("instagram", "twitter", "tiktok", "linkedin"):
            if social_links[platform]:
                contact[platform] = social_links[platform][0]

    logger.debug(
        "Scraped %s: %d emails, %d contacts", url, len(emails), len(contacts)
    )
    return {
        "url": url,
        "contacts": contacts,
        "emails": emails,
        "social_links": social_links,
        "phones": phones,
        "success": True,
    }

