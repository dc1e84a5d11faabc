"""Seed the local contact store from a CSV export.

    uv run python scripts/import_contacts.py path/to/pages.csv --market ZA

Expected columns (header row required): name, instagram, tiktok, twitter,
followers, category, status. An `email` column is used when present. For
media pages the name doubles as the company; the category is both title and
industry. Rows are upserted on (market_code, person, email), so re-running
an import updates rather than duplicates.
"""
import argparse
import asyncio
import csv
import logging
import sys
from pathlib import Path
from typing import Dict, Iterator, Optional

# Resolve project root so imports work when run from any cwd
_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_ROOT))

from db.connection import dispose_engine, get_db
import db.repositories.contacts as contacts_repo

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "Entertainment"
DEFAULT_SOURCE = "CSV import"


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def row_to_contact(row: Dict[str, str], market_code: str) -> Optional[dict]:
    """Map one CSV row to a known_contacts record; rows without a name are skipped."""
    name = _clean(row.get("name"))
    if not name:
        return None
    category = _clean(row.get("category")) or DEFAULT_CATEGORY
    handles = {p: _clean(row.get(p)) for p in ("instagram", "tiktok", "twitter")}
    return {
        "market_code": market_code.upper(),
        "person": name,
        "company": name,
        "title": category,
        "industry": category,
        "email": _clean(row.get("email")),
        "followers": _clean(row.get("followers")) or None,
        "source": " | ".join(h for h in handles.values() if h) or DEFAULT_SOURCE,
        "status": _clean(row.get("status")) or "Verified",
        **{p: h or None for p, h in handles.items()},
    }


def read_contacts(path: Path, market_code: str) -> Iterator[dict]:
    with path.open(newline="", encoding="utf-8-sig") as fh:
        for line_no, row in enumerate(csv.DictReader(fh), start=2):
            contact = row_to_contact(row, market_code)
            if contact is None:
                logger.warning("Line %d has no name; skipping", line_no)
                continue
            yield contact


async def main(path: Path, market_code: str) -> int:
    contacts = list(read_contacts(path, market_code))
    logger.info("Parsed %d contacts from %s", len(contacts), path)

    try:
        async with get_db() as session:
            for contact in contacts:
                await contacts_repo.upsert(session, contact)
            counts = await contacts_repo.count_per_market(session)
    finally:
        await dispose_engine()

    logger.info("Imported %d contacts into market %s", len(contacts), market_code.upper())
    for code, count in sorted(counts.items()):
        logger.info("  %s: %d known contacts", code, count)
    return len(contacts)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Import known contacts from CSV")
    parser.add_argument("csv_path", type=Path)
    parser.add_argument("--market", default="ZA", help="Market code for every row (default: ZA)")
    args = parser.parse_args()

    if not args.csv_path.exists():
        logger.error("CSV file not found: %s", args.csv_path)
        sys.exit(1)
    asyncio.run(main(args.csv_path, args.market))
