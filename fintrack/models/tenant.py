"""Namespace registry — one row per provisioned entity namespace."""

import uuid

from sqlmodel import Field, SQLModel

from fintrack.models.base import NAMESPACE_MAX_LENGTH, TimestampMixin


class TenantNamespace(TimestampMixin, SQLModel, table=True):
    __tablename__ = "tenant_namespaces"

    name: str = Field(primary_key=True, max_length=NAMESPACE_MAX_LENGTH)
    # Not a foreign key: deleting an entity without teardown leaves its
    # namespace behind, like a dropped row leaves an orphaned schema.
    entity_id: uuid.UUID = Field(nullable=False, unique=True)
