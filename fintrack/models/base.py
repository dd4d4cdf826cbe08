"""Shared base fields for all models."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

# Postgres identifier limit; namespace ids double as schema names.
NAMESPACE_MAX_LENGTH = 63


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


def reject_null(value):
    """Field validator for partial updates of NOT NULL columns.

    Leaving a field out keeps the stored value; sending ``None`` explicitly is
    a validation error instead of a constraint violation at commit time.
    """
    if value is None:
        raise ValueError("can't be null")
    return value


class TimestampMixin(SQLModel):
    """Created / updated timestamps injected into every table."""

    created_at: datetime = Field(
        default_factory=utcnow, sa_type=DateTime(timezone=True), nullable=False,
    )
    updated_at: datetime = Field(
        default_factory=utcnow, sa_type=DateTime(timezone=True), nullable=False,
    )


class TenantScopedMixin(SQLModel):
    """Namespace column for rows that live inside an entity's namespace.

    Rows are only ever read through ``tenants.scope()``, which confines a
    statement to one namespace.
    """

    tenant: str = Field(
        foreign_key="tenant_namespaces.name",
        ondelete="CASCADE",
        max_length=NAMESPACE_MAX_LENGTH,
        nullable=False,
        index=True,
    )
