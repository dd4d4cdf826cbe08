"""Contact models — tenant-scoped counterparties of an entity."""

import uuid
from datetime import datetime
from enum import StrEnum
from typing import Optional

from pydantic import field_validator
from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from fintrack.models.base import TenantScopedMixin, TimestampMixin, new_uuid, reject_null


class ContactType(StrEnum):
    COMPANY = "company"
    PERSON = "person"


class ContactCategory(TimestampMixin, TenantScopedMixin, SQLModel, table=True):
    __tablename__ = "contact_categories"
    __table_args__ = (
        UniqueConstraint("tenant", "description", name="uq_contact_categories_tenant_description"),
    )

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    description: str = Field(max_length=255, nullable=False)


class Contact(TimestampMixin, TenantScopedMixin, SQLModel, table=True):
    __tablename__ = "contacts"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    name: str = Field(max_length=255, nullable=False)
    legal_name: str | None = Field(default=None, max_length=255)
    tax_id: str | None = Field(default=None, max_length=64)
    type: ContactType = Field(default=ContactType.COMPANY, index=True)
    customer: bool = Field(default=False, index=True)
    supplier: bool = Field(default=False, index=True)
    phone: str | None = Field(default=None, max_length=64)
    email: str | None = Field(default=None, max_length=320)

    category_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="contact_categories.id",
        ondelete="SET NULL",
        nullable=True,
        index=True,
    )
    category: Optional[ContactCategory] = Relationship(
        sa_relationship_kwargs={"lazy": "selectin"},
    )


# ── Pydantic schemas ─────────────────────────────────────────

class ContactCategoryCreate(SQLModel):
    description: str = Field(min_length=1, max_length=255)


class ContactCategoryRead(SQLModel):
    id: uuid.UUID
    description: str
    created_at: datetime


class ContactCreate(SQLModel):
    name: str = Field(min_length=1, max_length=255)
    legal_name: str | None = Field(default=None, max_length=255)
    tax_id: str | None = Field(default=None, max_length=64)
    type: ContactType = ContactType.COMPANY
    customer: bool = False
    supplier: bool = False
    phone: str | None = Field(default=None, max_length=64)
    email: str | None = Field(default=None, max_length=320)
    category_id: uuid.UUID | None = None


class ContactUpdate(SQLModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    legal_name: str | None = None
    tax_id: str | None = None
    type: ContactType | None = None
    customer: bool | None = None
    supplier: bool | None = None
    phone: str | None = None
    email: str | None = None
    category_id: uuid.UUID | None = None

    @field_validator("name", "type", "customer", "supplier")
    @classmethod
    def _not_null(cls, value):
        return reject_null(value)


class ContactRead(SQLModel):
    id: uuid.UUID
    name: str
    legal_name: str | None
    type: ContactType
    customer: bool
    supplier: bool
    category_id: uuid.UUID | None
    created_at: datetime
