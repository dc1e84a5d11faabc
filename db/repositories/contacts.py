"""Known-contact repository — market lookup and import upserts."""
import logging
from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import KnownContact

logger = logging.getLogger(__name__)


async def get_by_market(session: AsyncSession, market_code: str) -> Sequence[KnownContact]:
    """Return every known contact for a market code, oldest first."""
    result = await session.execute(
        select(KnownContact)
        .where(KnownContact.market_code == market_code.upper())
        .order_by(KnownContact.created_at)
    )
    return list(result.scalars().all())


async def count_per_market(session: AsyncSession) -> dict[str, int]:
    """Return {market_code: row count} across the store."""
    result = await session.execute(
        select(KnownContact.market_code, func.count()).group_by(KnownContact.market_code)
    )
    return {row[0]: row[1] for row in result.all()}


async def upsert(session: AsyncSession, data: dict) -> KnownContact:
    """Insert or update a known contact by (market_code, person, email).

    data dict keys: market_code, person, company, title, email, industry,
    instagram, tiktok, twitter, followers, source, status
    """
    data = {
        **data,
        "market_code": data["market_code"].upper(),
        "person": (data.get("person") or "").strip(),
        "email": (data.get("email") or "").lower().strip(),
    }
    stmt = (
        pg_insert(KnownContact)
        .values(**data)
        .on_conflict_do_update(
            constraint="uq_known_contact_identity",
            set_={
                **{k: v for k, v in data.items() if k not in ("market_code", "person", "email")},
                "updated_at": func.now(),
            },
        )
        .returning(KnownContact)
    )
    result = await session.execute(stmt, execution_options={"populate_existing": True})
    await session.flush()
    return result.scalar_one()
