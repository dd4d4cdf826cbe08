"""Entities — create, list, update and delete the tenant roots.

Creating an entity provisions its namespace and deleting one tears it down,
each in the same transaction as the entity row unless the caller opts out
(test setups, repair scripts).
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from sqlalchemy import delete, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from fintrack.core.errors import NotFoundError
from fintrack.models.entity import Entity, EntityCreate, EntityUpdate
from fintrack.models.entity_member import EntityMember
from fintrack.models.user import User
from fintrack.services import tenants
from fintrack.services.base import apply_changes, commit_or_rollback, parse
from fintrack.services.paginator import ListOptions, Page, paginate
from fintrack.services.query_builder import build_filter, build_search

logger = logging.getLogger(__name__)

FILTER_FIELDS = [Entity.type, Entity.status]
SEARCH_FIELDS = [Entity.name]


class RelationType(StrEnum):
    OWNER = "owner"
    MEMBER = "member"
    BOTH = "both"


async def list_entities(
    session: AsyncSession,
    options: ListOptions | None = None,
) -> Page[Entity]:
    """Page through all entities, filtering on type/status and searching name."""
    options = options or ListOptions()
    stmt = build_filter(select(Entity), options.filter, FILTER_FIELDS)
    stmt = build_search(stmt, options.search, SEARCH_FIELDS)
    return await paginate(session, stmt, options)


async def list_entities_for(
    session: AsyncSession,
    user: User,
    options: ListOptions | None = None,
    relation_type: RelationType | str = RelationType.BOTH,
) -> Page[Entity]:
    """Page through the entities ``user`` owns, is a member of, or both."""
    options = options or ListOptions()
    stmt = build_filter(select(Entity), options.filter, FILTER_FIELDS)
    stmt = build_search(stmt, options.search, SEARCH_FIELDS)
    stmt = _of_relation(stmt, user.id, relation_type)
    return await paginate(session, stmt, options)


def _of_relation(stmt, user_id: uuid.UUID, relation_type: RelationType | str):
    owned = Entity.owner_id == user_id
    member_of = Entity.id.in_(
        select(EntityMember.entity_id).where(EntityMember.user_id == user_id)
    )
    if relation_type == RelationType.OWNER:
        return stmt.where(owned)
    if relation_type == RelationType.MEMBER:
        return stmt.where(member_of)
    return stmt.where(or_(owned, member_of))


async def get_entity(session: AsyncSession, entity_id: uuid.UUID) -> Entity:
    entity = await session.get(Entity, entity_id)
    if entity is None:
        raise NotFoundError("Entity not found")
    return entity


def belongs_to(entity: Entity, user: User) -> bool:
    """True when ``user`` is the owner of ``entity``."""
    return entity.owner_id == user.id


async def create_entity(
    session: AsyncSession,
    owner: User,
    data: EntityCreate | Mapping[str, Any],
    create_tenant: bool = True,
) -> Entity:
    """Create an entity owned by ``owner`` and, by default, its namespace."""
    body = parse(EntityCreate, data)
    entity = Entity(**body.model_dump(), owner_id=owner.id)
    session.add(entity)
    try:
        await session.flush()
        if create_tenant:
            await tenants.create(session, entity)
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    await session.refresh(entity)
    logger.info("Created entity %s owned by %s", entity.id, owner.id)
    return entity


async def update_entity(
    session: AsyncSession,
    entity: Entity,
    data: EntityUpdate | Mapping[str, Any],
) -> Entity:
    body = parse(EntityUpdate, data)
    apply_changes(entity, body)
    session.add(entity)
    await commit_or_rollback(session)
    await session.refresh(entity)
    return entity


async def delete_entity(
    session: AsyncSession,
    entity: Entity,
    drop_tenant: bool = True,
) -> Entity:
    """Delete ``entity``, its memberships and, by default, its namespace."""
    try:
        if drop_tenant:
            await tenants.drop(session, entity)
        await session.execute(delete(EntityMember).where(EntityMember.entity_id == entity.id))
        await session.delete(entity)
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info("Deleted entity %s", entity.id)
    return entity
