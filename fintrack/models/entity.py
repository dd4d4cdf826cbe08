"""Entity model — the tenant root every piece of financial data belongs to."""

import uuid
from datetime import datetime
from enum import StrEnum

from pydantic import field_validator
from sqlmodel import Field, SQLModel

from fintrack.models.base import TimestampMixin, new_uuid, reject_null


class EntityType(StrEnum):
    PERSONAL = "personal"
    COMPANY = "company"
    OTHER = "other"


class EntityStatus(StrEnum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class Entity(TimestampMixin, SQLModel, table=True):
    __tablename__ = "entities"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    name: str = Field(max_length=255, nullable=False)
    type: EntityType = Field(default=EntityType.PERSONAL)
    status: EntityStatus = Field(default=EntityStatus.ACTIVE, index=True)

    # Exactly one owner; the owner never has an EntityMember row
    owner_id: uuid.UUID = Field(
        foreign_key="users.id", ondelete="CASCADE", nullable=False, index=True,
    )


# ── Pydantic schemas ─────────────────────────────────────────

class EntityCreate(SQLModel):
    name: str = Field(min_length=1, max_length=255)
    type: EntityType = EntityType.PERSONAL
    status: EntityStatus = EntityStatus.ACTIVE


class EntityUpdate(SQLModel):
    """Partial update; ownership only changes through a transfer."""
    name: str | None = Field(default=None, min_length=1, max_length=255)
    type: EntityType | None = None
    status: EntityStatus | None = None

    @field_validator("name", "type", "status")
    @classmethod
    def _not_null(cls, value):
        return reject_null(value)


class EntityRead(SQLModel):
    id: uuid.UUID
    name: str
    type: EntityType
    status: EntityStatus
    owner_id: uuid.UUID
    created_at: datetime
    updated_at: datetime
