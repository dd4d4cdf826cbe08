"""Currency model: any medium of exchange an entity tracks money in.

Besides ordinary money this covers crypto, loyalty points or airline miles.
``precision``, ``separator``, ``delimiter`` and ``format`` are display hints
only; ``format`` uses ``%s`` for the symbol and ``%n`` for the number.
"""

import re
import uuid
from datetime import datetime
from enum import StrEnum

from pydantic import field_validator
from sqlalchemy import CheckConstraint, UniqueConstraint
from sqlmodel import Field, SQLModel

from fintrack.models.base import TenantScopedMixin, TimestampMixin, new_uuid, reject_null

ISO_CODE_PATTERN = re.compile(r"^[A-Za-z]{3}$")


class CurrencyType(StrEnum):
    MONEY = "money"
    CRYPTOCURRENCY = "cryptocurrency"
    DIGITAL = "digital"
    VIRTUAL = "virtual"
    OTHER = "other"


class Currency(TimestampMixin, TenantScopedMixin, SQLModel, table=True):
    __tablename__ = "currencies"
    __table_args__ = (
        UniqueConstraint("tenant", "iso_code", name="uq_currencies_tenant_iso_code"),
        CheckConstraint("precision >= 0", name="ck_currencies_precision_positive"),
    )

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    description: str = Field(max_length=255, nullable=False)
    # ISO 4217, stored upper-cased; optional for points, miles and the like
    iso_code: str | None = Field(default=None, max_length=3)
    type: CurrencyType = Field(default=CurrencyType.MONEY, index=True)
    active: bool = Field(default=True, index=True)
    symbol: str = Field(default="", max_length=16)
    precision: int = Field(default=0)
    separator: str = Field(default=".", max_length=1)
    delimiter: str = Field(default="", max_length=1)
    format: str = Field(default="%s%n", max_length=32)


# ── Pydantic schemas ─────────────────────────────────────────

def _iso_code(value: str | None) -> str | None:
    if value is None:
        return None
    if not ISO_CODE_PATTERN.match(value):
        raise ValueError("is not a valid ISO 4217 code")
    return value.upper()


def _display_format(value: str | None) -> str | None:
    if value is not None and "%n" not in value:
        raise ValueError("should have one %n to display the number")
    return value


class CurrencyCreate(SQLModel):
    description: str = Field(min_length=1, max_length=255)
    iso_code: str | None = None
    type: CurrencyType = CurrencyType.MONEY
    active: bool = True
    symbol: str = Field(default="", max_length=16)
    precision: int = Field(default=0, ge=0)
    separator: str = Field(default=".", min_length=1, max_length=1)
    delimiter: str = Field(default="", max_length=1)
    format: str = Field(default="%s%n", max_length=32)

    @field_validator("iso_code")
    @classmethod
    def _check_iso_code(cls, value):
        return _iso_code(value)

    @field_validator("format")
    @classmethod
    def _check_format(cls, value):
        return _display_format(value)


class CurrencyUpdate(SQLModel):
    """Partial update; only ``iso_code`` may be cleared with an explicit null."""
    description: str | None = Field(default=None, min_length=1, max_length=255)
    iso_code: str | None = None
    type: CurrencyType | None = None
    active: bool | None = None
    symbol: str | None = Field(default=None, max_length=16)
    precision: int | None = Field(default=None, ge=0)
    separator: str | None = Field(default=None, min_length=1, max_length=1)
    delimiter: str | None = Field(default=None, max_length=1)
    format: str | None = Field(default=None, max_length=32)

    @field_validator("iso_code")
    @classmethod
    def _check_iso_code(cls, value):
        return _iso_code(value)

    @field_validator("format")
    @classmethod
    def _check_format(cls, value):
        return reject_null(_display_format(value))

    @field_validator(
        "description", "type", "active", "symbol", "precision", "separator", "delimiter",
    )
    @classmethod
    def _not_null(cls, value):
        return reject_null(value)


class CurrencyRead(SQLModel):
    id: uuid.UUID
    description: str
    iso_code: str | None
    type: CurrencyType
    active: bool
    symbol: str
    precision: int
    separator: str
    delimiter: str
    format: str
    created_at: datetime
