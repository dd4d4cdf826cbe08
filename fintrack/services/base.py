"""Helpers shared by the service modules."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fintrack.core.errors import ConflictError, from_pydantic
from fintrack.models.base import utcnow

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def parse(schema: type[SchemaT], data: SchemaT | Mapping[str, Any]) -> SchemaT:
    """Validate raw input against ``schema``; failures become ValidationError."""
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except SchemaValidationError as exc:
        raise from_pydantic(exc) from exc


def apply_changes(record: Any, changes: BaseModel) -> Any:
    """Copy the explicitly set fields of ``changes`` onto ``record``."""
    for field, value in changes.model_dump(exclude_unset=True).items():
        setattr(record, field, value)
    record.updated_at = utcnow()
    return record


async def commit_or_conflict(
    session: AsyncSession,
    conflict: Mapping[str, Sequence[str]],
) -> None:
    """Commit, translating a constraint violation into ConflictError.

    The session is rolled back before raising, so none of the pending writes
    survive.
    """
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError(conflict) from exc


async def commit_or_rollback(session: AsyncSession) -> None:
    """Commit, rolling back first if the commit fails for any reason."""
    try:
        await session.commit()
    except Exception:
        await session.rollback()
        raise
