from .serper_tools import google_search, search_platform, search_social_profiles
from .exa_tools import exa_search_people
from .apollo_tools import apollo_people_search
from .hunter_tools import hunter_discover, hunter_domain_search
from .scraper_tools import scrape_url
from .apify_tools import fetch_tiktok_profile, fetch_instagram_profile

__all__ = [
    "google_search", "search_platform", "search_social_profiles",
    "exa_search_people",
    "apollo_people_search",
    "hunter_discover", "hunter_domain_search",
    "scrape_url",
    "fetch_tiktok_profile", "fetch_instagram_profile",
]
