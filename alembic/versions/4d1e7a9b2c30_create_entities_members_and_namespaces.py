"""create users, entities, entity_members, tenant_namespaces and contacts

Revision ID: 4d1e7a9b2c30
Revises:
Create Date: 2026-10-16 09:12:44.118203

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '4d1e7a9b2c30'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ENTITY_TYPE = sa.Enum("PERSONAL", "COMPANY", "OTHER", name="entitytype")
ENTITY_STATUS = sa.Enum("ACTIVE", "ARCHIVED", name="entitystatus")
PERMISSION = sa.Enum("READ", "WRITE", "ADMIN", name="permission")
CONTACT_TYPE = sa.Enum("COMPANY", "PERSON", name="contacttype")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        *_timestamps(),
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("first_name", sa.String(255), nullable=False),
        sa.Column("last_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("avatar_url", sa.String(2048), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "entities",
        *_timestamps(),
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("type", ENTITY_TYPE, nullable=False),
        sa.Column("status", ENTITY_STATUS, nullable=False),
        sa.Column(
            "owner_id", sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
    )
    op.create_index("ix_entities_owner_id", "entities", ["owner_id"])
    op.create_index("ix_entities_status", "entities", ["status"])

    op.create_table(
        "entity_members",
        *_timestamps(),
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "entity_id", sa.Uuid(),
            sa.ForeignKey("entities.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "user_id", sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("permission", PERMISSION, nullable=False),
        sa.UniqueConstraint("entity_id", "user_id", name="uq_entity_members_entity_id_user_id"),
    )
    op.create_index("ix_entity_members_entity_id", "entity_members", ["entity_id"])
    op.create_index("ix_entity_members_user_id", "entity_members", ["user_id"])

    op.create_table(
        "tenant_namespaces",
        *_timestamps(),
        sa.Column("name", sa.String(63), primary_key=True),
        sa.Column("entity_id", sa.Uuid(), nullable=False, unique=True),
    )

    op.create_table(
        "contact_categories",
        *_timestamps(),
        sa.Column(
            "tenant", sa.String(63),
            sa.ForeignKey("tenant_namespaces.name", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("description", sa.String(255), nullable=False),
        sa.UniqueConstraint(
            "tenant", "description", name="uq_contact_categories_tenant_description",
        ),
    )
    op.create_index("ix_contact_categories_tenant", "contact_categories", ["tenant"])

    op.create_table(
        "contacts",
        *_timestamps(),
        sa.Column(
            "tenant", sa.String(63),
            sa.ForeignKey("tenant_namespaces.name", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("legal_name", sa.String(255), nullable=True),
        sa.Column("tax_id", sa.String(64), nullable=True),
        sa.Column("type", CONTACT_TYPE, nullable=False),
        sa.Column("customer", sa.Boolean(), nullable=False),
        sa.Column("supplier", sa.Boolean(), nullable=False),
        sa.Column("phone", sa.String(64), nullable=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column(
            "category_id", sa.Uuid(),
            sa.ForeignKey("contact_categories.id", ondelete="SET NULL"), nullable=True,
        ),
    )
    for column in ("tenant", "type", "customer", "supplier", "category_id"):
        op.create_index(f"ix_contacts_{column}", "contacts", [column])


def downgrade() -> None:
    op.drop_table("contacts")
    op.drop_table("contact_categories")
    op.drop_table("tenant_namespaces")
    op.drop_table("entity_members")
    op.drop_table("entities")
    op.drop_table("users")
    for enum in (CONTACT_TYPE, PERMISSION, ENTITY_STATUS, ENTITY_TYPE):
        enum.drop(op.get_bind(), checkfirst=True)
