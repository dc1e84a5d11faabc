"""Initial schema: crm.known_contacts.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute("CREATE SCHEMA IF NOT EXISTS crm")

    op.create_table(
        "known_contacts",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("market_code", sa.Text, nullable=False),
        sa.Column("person", sa.Text, nullable=False, server_default=""),
        sa.Column("company", sa.Text, nullable=True),
        sa.Column("title", sa.Text, nullable=True),
        sa.Column("email", sa.Text, nullable=False, server_default=""),
        sa.Column("industry", sa.Text, nullable=True),
        sa.Column("instagram", sa.Text, nullable=True),
        sa.Column("tiktok", sa.Text, nullable=True),
        sa.Column("twitter", sa.Text, nullable=True),
        sa.Column("followers", sa.Text, nullable=True),
        sa.Column("source", sa.Text, nullable=True),
        sa.Column("status", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("market_code", "person", "email", name="uq_known_contact_identity"),
        schema="crm",
    )
    op.create_index(
        "ix_known_contacts_market_code", "known_contacts", ["market_code"], schema="crm"
    )


def downgrade() -> None:
    op.drop_index("ix_known_contacts_market_code", table_name="known_contacts", schema="crm")
    op.drop_table("known_contacts", schema="crm")
