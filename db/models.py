"""SQLAlchemy 2.0 ORM models for the local contact store.

Covers one table in the crm schema:
  - crm.known_contacts: contacts already known internally, keyed by market code
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import UUID, DateTime, Index, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    pass


class KnownContact(Base):
    """crm.known_contacts — a contact seeded from imports or earlier runs."""

    __tablename__ = "known_contacts"
    __table_args__ = (
        UniqueConstraint("market_code", "person", "email", name="uq_known_contact_identity"),
        Index("ix_known_contacts_market_code", "market_code"),
        {"schema": "crm"},
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    market_code: Mapped[str] = mapped_column(Text, nullable=False)
    person: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    company: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    email: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    industry: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    instagram: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tiktok: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    twitter: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    followers: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    source: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
