"""Integration tests for the known-contacts repository."""
import os
import uuid

import pytest

# DATABASE_URL must point at a migrated database (alembic upgrade head).
# Example: export DATABASE_URL="postgresql+asyncpg://leads:<password>@<host>:5432/leads"
# See .env.example for configuration details.
pytestmark = pytest.mark.skipif(
    not os.environ.get("DATABASE_URL"), reason="DATABASE_URL not set"
)

from db import dispose_engine, get_db
from db.repositories import contacts as contacts_repo


def _market() -> str:
    # A throwaway market code keeps test rows out of real lookups.
    return f"T{uuid.uuid4().hex[:6].upper()}"


@pytest.mark.asyncio
async def test_upsert_updates_instead_of_duplicating():
    """Same (market, person, email) twice returns one row with the newer fields."""
    market = _market()
    try:
        async with get_db() as session:
            first = await contacts_repo.upsert(session, {
                "market_code": market.lower(),
                "person": "Amapiano Daily",
                "email": "Hi@Amapiano.co.za ",
                "followers": "100K",
            })
            second = await contacts_repo.upsert(session, {
                "market_code": market,
                "person": "Amapiano Daily",
                "email": "hi@amapiano.co.za",
                "followers": "120K",
            })
        assert first.id == second.id
        assert second.followers == "120K"
        assert second.market_code == market
        assert second.email == "hi@amapiano.co.za"
    finally:
        await dispose_engine()


@pytest.mark.asyncio
async def test_get_by_market_returns_only_that_market():
    market, other = _market(), _market()
    try:
        async with get_db() as session:
            await contacts_repo.upsert(session, {"market_code": market, "person": "One"})
            await contacts_repo.upsert(session, {"market_code": market, "person": "Two"})
            await contacts_repo.upsert(session, {"market_code": other, "person": "Elsewhere"})

        async with get_db() as session:
            rows = await contacts_repo.get_by_market(session, market.lower())
            counts = await contacts_repo.count_per_market(session)

        assert {r.person for r in rows} == {"One", "Two"}
        assert counts[market] == 2
        assert counts[other] == 1
    finally:
        await dispose_engine()
