"""Entity membership, effective permissions and ownership transfer.

The owner of an entity is never stored as an EntityMember. Their permission
is computed: ``get_member_permission`` answers ``admin`` for the owner and
the stored permission for everyone else.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Final, Literal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from fintrack.core.errors import (
    ConflictError,
    InvalidOperationError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from fintrack.models.base import utcnow
from fintrack.models.entity import Entity
from fintrack.models.entity_member import EntityMember, EntityMemberCreate, Permission
from fintrack.models.user import User
from fintrack.services import users
from fintrack.services.base import commit_or_conflict, commit_or_rollback, parse
from fintrack.services.paginator import ListOptions, Page, paginate
from fintrack.services.query_builder import build_filter, build_search

logger = logging.getLogger(__name__)

UNAUTHORIZED: Final = "unauthorized"

FILTER_FIELDS = [EntityMember.permission]
SEARCH_FIELDS = [(EntityMember.user, [User.first_name, User.last_name, User.email])]

DUPLICATE_MEMBER = {"user_id": ["has already been added"]}


def to_permission(value: Permission | str) -> Permission:
    """Parse a permission, raising ValidationError for anything else."""
    try:
        return Permission(value)
    except ValueError as exc:
        raise ValidationError({"permission": ["is invalid"]}) from exc


def is_owner(entity: Entity, user: User) -> bool:
    return entity.owner_id == user.id


async def list_members(
    session: AsyncSession,
    entity: Entity,
    options: ListOptions | None = None,
) -> Page[EntityMember]:
    """Page through the members of ``entity``.

    Filters on ``permission``; searches the member's first name, last name
    and email.
    """
    options = options or ListOptions()
    stmt = select(EntityMember).where(EntityMember.entity_id == entity.id)
    stmt = build_filter(stmt, options.filter, FILTER_FIELDS)
    stmt = build_search(stmt, options.search, SEARCH_FIELDS)
    return await paginate(session, stmt, options)


async def member_from_user(
    session: AsyncSession,
    entity: Entity,
    user: User,
) -> EntityMember | None:
    """The membership of ``user`` in ``entity``; always None for the owner."""
    if is_owner(entity, user):
        return None
    result = await session.execute(
        select(EntityMember).where(
            EntityMember.entity_id == entity.id,
            EntityMember.user_id == user.id,
        )
    )
    return result.scalar_one_or_none()


async def get_member_permission(
    session: AsyncSession,
    entity: Entity,
    user: User,
) -> Permission | Literal["unauthorized"]:
    """Effective permission: admin for the owner, the stored one for members,
    ``"unauthorized"`` for everyone else."""
    if is_owner(entity, user):
        return Permission.ADMIN
    member = await member_from_user(session, entity, user)
    if member is None:
        return UNAUTHORIZED
    return member.permission


async def has_permission(
    session: AsyncSession,
    entity: Entity,
    user: User,
    required: Permission | str,
) -> bool:
    """True when the user's effective permission is at least ``required``."""
    required = to_permission(required)
    actual = await get_member_permission(session, entity, user)
    if actual == UNAUTHORIZED:
        return False
    return Permission(actual).rank >= required.rank


async def add_member(
    session: AsyncSession,
    entity: Entity,
    user: User,
    permission: Permission | str = Permission.READ,
) -> EntityMember:
    """Grant ``user`` access to ``entity``.

    Raises InvalidOperationError for the owner and ConflictError when the
    user is already a member.
    """
    if is_owner(entity, user):
        raise InvalidOperationError("The owner cannot be added as a member")
    return await _insert_member(session, entity, user, to_permission(permission))


async def _insert_member(
    session: AsyncSession,
    entity: Entity,
    user: User,
    permission: Permission,
) -> EntityMember:
    # The unique (entity_id, user_id) constraint still settles concurrent inserts
    entity_id, user_id = entity.id, user.id
    if await member_from_user(session, entity, user) is not None:
        logger.warning("User %s is already a member of entity %s", user_id, entity_id)
        raise ConflictError(DUPLICATE_MEMBER)

    member = EntityMember(entity_id=entity_id, user_id=user_id, permission=permission)
    session.add(member)
    await commit_or_conflict(session, DUPLICATE_MEMBER)
    await session.refresh(member)
    logger.info("Added user %s to entity %s as %s", user_id, entity_id, permission)
    return member


async def create_member(
    session: AsyncSession,
    entity: Entity,
    data: EntityMemberCreate | Mapping[str, Any],
) -> EntityMember:
    """Add a member from request data.

    ``data`` names the user either by ``user_id`` or by a nested ``user``.
    A nested user whose email is already registered is reused; otherwise the
    user is created together with the membership.
    """
    body = parse(EntityMemberCreate, data)

    if body.user is not None:
        user = await users.find_user_by_email(session, body.user.email)
        if user is None:
            user = users.build_user(body.user)
            session.add(user)
            await session.flush()
    elif body.user_id is not None:
        user = await session.get(User, body.user_id)
        if user is None:
            raise ValidationError({"user_id": ["does not exist"]})
    else:
        raise ValidationError({"user": ["can't be blank"]})

    if is_owner(entity, user):
        raise InvalidOperationError("The owner cannot be added as a member")
    return await _insert_member(session, entity, user, body.permission)


async def remove_member(
    session: AsyncSession,
    entity: Entity,
    user: User,
) -> EntityMember:
    """Revoke ``user``'s membership. Raises NotFoundError if there is none."""
    member = await member_from_user(session, entity, user)
    if member is None:
        raise NotFoundError("Member not found")

    await session.delete(member)
    await commit_or_rollback(session)
    logger.info("Removed user %s from entity %s", user.id, entity.id)
    return member


async def update_member_permission(
    session: AsyncSession,
    entity: Entity,
    user: User,
    permission: Permission | str,
) -> EntityMember:
    """Change a member's permission.

    Raises InvalidOperationError for the owner, whose permission is always
    admin, and NotFoundError for users without a membership.
    """
    if is_owner(entity, user):
        raise InvalidOperationError("The owner's permission cannot be changed")

    member = await member_from_user(session, entity, user)
    if member is None:
        raise NotFoundError("Member not found")

    member.permission = to_permission(permission)
    member.updated_at = utcnow()
    session.add(member)
    await commit_or_rollback(session)
    await session.refresh(member)
    return member


async def transfer_ownership(
    session: AsyncSession,
    entity: Entity,
    from_user: User,
    to_user: User,
) -> Entity:
    """Hand ``entity`` over from its owner to ``to_user``.

    ``to_user`` loses any membership row it had and the former owner keeps
    admin access as a member. All three writes commit together or not at all.
    """
    if not is_owner(entity, from_user):
        logger.warning(
            "User %s tried to transfer entity %s it does not own", from_user.id, entity.id,
        )
        raise UnauthorizedError("Only the owner can transfer an entity")
    if to_user.id == from_user.id:
        raise InvalidOperationError("The entity already belongs to this user")
    if await session.get(User, to_user.id) is None:
        raise ValidationError({"owner_id": ["does not exist"]})

    entity_id, previous_owner_id, new_owner_id = entity.id, from_user.id, to_user.id
    try:
        # Looked up while to_user is still a plain member
        stale = await member_from_user(session, entity, to_user)
        if stale is not None:
            await session.delete(stale)

        entity.owner_id = new_owner_id
        entity.updated_at = utcnow()
        session.add(entity)
        # The stale row must be gone before the admin row is inserted
        await session.flush()

        session.add(
            EntityMember(
                entity_id=entity_id, user_id=previous_owner_id, permission=Permission.ADMIN,
            )
        )
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        await session.refresh(entity)
        if await session.get(User, new_owner_id) is None:
            raise ValidationError({"owner_id": ["does not exist"]}) from exc
        logger.warning("Transfer of entity %s hit a membership conflict", entity_id)
        raise ConflictError(DUPLICATE_MEMBER) from exc
    except Exception:
        await session.rollback()
        raise

    await session.refresh(entity)
    logger.info(
        "Transferred entity %s from %s to %s", entity_id, previous_owner_id, new_owner_id,
    )
    return entity
