"""Users — the identity records owners and members point at."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from typing import Any

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from fintrack.core.errors import ConflictError, NotFoundError
from fintrack.models.user import User, UserCreate
from fintrack.services.base import commit_or_conflict, parse
from fintrack.services.paginator import ListOptions, Page, paginate
from fintrack.services.query_builder import build_search

logger = logging.getLogger(__name__)

SEARCH_FIELDS = [User.first_name, User.last_name, User.email]

DUPLICATE_EMAIL = {"email": ["has already been taken"]}


async def list_users(session: AsyncSession, options: ListOptions | None = None) -> Page[User]:
    """Page through users, searching first name, last name and email."""
    options = options or ListOptions()
    stmt = build_search(select(User), options.search, SEARCH_FIELDS)
    return await paginate(session, stmt, options)


async def get_user(session: AsyncSession, user_id: uuid.UUID) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def find_user_by_email(session: AsyncSession, email: str | None) -> User | None:
    """Case-insensitive lookup; None when no user has that email."""
    if not email:
        return None
    result = await session.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


def build_user(data: UserCreate | Mapping[str, Any]) -> User:
    """Validate ``data`` and return an unsaved User."""
    body = parse(UserCreate, data)
    return User(**body.model_dump())


async def create_user(session: AsyncSession, data: UserCreate | Mapping[str, Any]) -> User:
    user = build_user(data)
    if await find_user_by_email(session, user.email) is not None:
        raise ConflictError(DUPLICATE_EMAIL)
    session.add(user)
    await commit_or_conflict(session, DUPLICATE_EMAIL)
    await session.refresh(user)
    logger.info("Created user %s", user.id)
    return user
