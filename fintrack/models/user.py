"""User model — identity shared by owners and members of entities."""

import uuid

from pydantic import EmailStr, field_validator
from sqlmodel import Field, SQLModel

from fintrack.models.base import TimestampMixin, new_uuid


class User(TimestampMixin, SQLModel, table=True):
    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    # Always stored lower-cased, unique across the application
    email: str = Field(max_length=320, unique=True, nullable=False, index=True)
    first_name: str = Field(max_length=255, nullable=False)
    last_name: str = Field(default="", max_length=255)
    avatar_url: str | None = Field(default=None, max_length=2048)


# ── Pydantic schemas ─────────────────────────────────────────

class UserCreate(SQLModel):
    email: EmailStr
    first_name: str = Field(min_length=1, max_length=255)
    last_name: str = Field(default="", max_length=255)
    avatar_url: str | None = Field(default=None, max_length=2048)

    @field_validator("email")
    @classmethod
    def _downcase_email(cls, value: str) -> str:
        return value.lower()


class UserRead(SQLModel):
    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    avatar_url: str | None
