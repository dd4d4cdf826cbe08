"""Uniform pagination over any ``select(Model)`` statement."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, field_validator
from sqlalchemy import Select, func, inspect, select
from sqlalchemy.ext.asyncio import AsyncSession

from fintrack.core.config import get_settings
from fintrack.services.query_builder import primary_model

T = TypeVar("T")

ALL: Literal["all"] = "all"


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of results plus the metadata needed to walk the rest."""

    entries: list[T]
    page_number: int
    page_size: int
    total_entries: int
    total_pages: int


class PageOptions(BaseModel):
    """Page request. Malformed values fall back to the defaults."""

    model_config = ConfigDict(extra="ignore")

    page: int = 1
    page_size: int | Literal["all"] | None = None

    @field_validator("page", mode="before")
    @classmethod
    def _coerce_page(cls, value: Any) -> int:
        number = _positive_int(value)
        return number if number is not None else 1

    @field_validator("page_size", mode="before")
    @classmethod
    def _coerce_page_size(cls, value: Any) -> int | str | None:
        if value == ALL:
            return ALL
        return _positive_int(value)

    def resolved_page_size(self) -> int:
        """The effective numeric page size, clamped to the configured maximum."""
        settings = get_settings()
        if self.page_size is None or self.page_size == ALL:
            return settings.default_page_size
        return min(self.page_size, settings.max_page_size)


class ListOptions(PageOptions):
    """Caller-facing options every list operation accepts."""

    filter: dict[Any, Any] | None = None
    search: str | None = None

    @field_validator("filter", mode="before")
    @classmethod
    def _coerce_filter(cls, value: Any) -> dict[Any, Any] | None:
        return dict(value) if isinstance(value, Mapping) else None

    @field_validator("search", mode="before")
    @classmethod
    def _coerce_search(cls, value: Any) -> str | None:
        return value if isinstance(value, str) and value else None


def _positive_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number >= 1 else None


def _stable(statement: Select) -> Select:
    """Append the primary key as the last ORDER BY so offsets are repeatable."""
    mapper = inspect(primary_model(statement))
    return statement.order_by(*mapper.primary_key)


async def paginate(
    session: AsyncSession,
    statement: Select,
    options: PageOptions | None = None,
) -> Page[Any]:
    """Execute ``statement`` and return the requested page.

    ``page_size="all"`` fetches everything as a single page. An empty result
    still reports one (empty) page.
    """
    options = options or PageOptions()
    statement = _stable(statement)

    if options.page_size == ALL:
        result = await session.execute(statement)
        entries = list(result.scalars().unique().all())
        return Page(
            entries=entries,
            page_number=1,
            page_size=len(entries),
            total_entries=len(entries),
            total_pages=1,
        )

    page_size = options.resolved_page_size()
    page_number = options.page

    count_stmt = select(func.count()).select_from(statement.order_by(None).subquery())
    total_entries = (await session.execute(count_stmt)).scalar_one()

    result = await session.execute(
        statement.limit(page_size).offset((page_number - 1) * page_size)
    )
    entries = list(result.scalars().unique().all())

    return Page(
        entries=entries,
        page_number=page_number,
        page_size=page_size,
        total_entries=total_entries,
        total_pages=max(1, math.ceil(total_entries / page_size)),
    )
