"""EntityMember model — a non-owner user's graded access to an entity."""

import uuid
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from fintrack.models.base import TimestampMixin, new_uuid
from fintrack.models.user import UserCreate

if TYPE_CHECKING:
    from fintrack.models.user import User


class Permission(StrEnum):
    """Grantable permissions, declared in increasing order of capability."""

    READ = "read"
    WRITE = "write"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        return list(Permission).index(self)


class EntityMember(TimestampMixin, SQLModel, table=True):
    __tablename__ = "entity_members"
    __table_args__ = (
        UniqueConstraint("entity_id", "user_id", name="uq_entity_members_entity_id_user_id"),
    )

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    entity_id: uuid.UUID = Field(
        foreign_key="entities.id", ondelete="CASCADE", nullable=False, index=True,
    )
    user_id: uuid.UUID = Field(
        foreign_key="users.id", ondelete="CASCADE", nullable=False, index=True,
    )
    permission: Permission = Field(default=Permission.READ, nullable=False)

    user: Optional["User"] = Relationship(sa_relationship_kwargs={"lazy": "selectin"})


# ── Pydantic schemas ─────────────────────────────────────────

class EntityMemberCreate(SQLModel):
    """Grant access to an existing user (``user_id``) or to one looked up /
    created from ``user``."""
    permission: Permission = Permission.READ
    user_id: uuid.UUID | None = None
    user: UserCreate | None = None


class EntityMemberRead(SQLModel):
    id: uuid.UUID
    entity_id: uuid.UUID
    user_id: uuid.UUID
    permission: Permission
    created_at: datetime
