"""create currencies

Revision ID: 9f3c2e81a5d4
Revises: 4d1e7a9b2c30
Create Date: 2026-10-16 14:37:05.482911

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '9f3c2e81a5d4'
down_revision: str | Sequence[str] | None = '4d1e7a9b2c30'
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

CURRENCY_TYPE = sa.Enum(
    "MONEY", "CRYPTOCURRENCY", "DIGITAL", "VIRTUAL", "OTHER", name="currencytype",
)


def upgrade() -> None:
    op.create_table(
        "currencies",
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "tenant", sa.String(63),
            sa.ForeignKey("tenant_namespaces.name", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("description", sa.String(255), nullable=False),
        sa.Column("iso_code", sa.String(3), nullable=True),
        sa.Column("type", CURRENCY_TYPE, nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("symbol", sa.String(16), nullable=False),
        sa.Column("precision", sa.Integer(), nullable=False),
        sa.Column("separator", sa.String(1), nullable=False),
        sa.Column("delimiter", sa.String(1), nullable=False),
        sa.Column("format", sa.String(32), nullable=False),
        sa.UniqueConstraint("tenant", "iso_code", name="uq_currencies_tenant_iso_code"),
        sa.CheckConstraint("precision >= 0", name="ck_currencies_precision_positive"),
    )
    for column in ("tenant", "type", "active"):
        op.create_index(f"ix_currencies_{column}", "currencies", [column])


def downgrade() -> None:
    op.drop_table("currencies")
    CURRENCY_TYPE.drop(op.get_bind(), checkfirst=True)
