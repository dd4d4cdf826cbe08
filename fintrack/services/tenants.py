"""Tenant namespaces — one isolated slice of storage per entity.

Isolation is row-level: every tenant-scoped table carries a ``tenant``
column holding the namespace id, and reads go through ``scope()``. The
namespace itself is a row in ``tenant_namespaces``, so provisioning can share
a transaction with the entity it belongs to.

``create`` and ``drop`` only flush; the caller commits or rolls back.
"""

from __future__ import annotations

import logging

from sqlalchemy import Select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from fintrack.core.config import get_settings
from fintrack.core.errors import ConflictError, NotFoundError
from fintrack.core.logging import bind_tenant
from fintrack.models.entity import Entity
from fintrack.models.tenant import TenantNamespace
from fintrack.services.query_builder import primary_model

logger = logging.getLogger(__name__)

TENANT_COLUMN = "tenant"


def namespace_of(entity: Entity) -> str:
    """Deterministic namespace id for an entity, e.g. ``entity_3f2a9c...``."""
    return f"{get_settings().tenant_prefix}{entity.id.hex}"


async def exists(session: AsyncSession, entity: Entity) -> bool:
    return await session.get(TenantNamespace, namespace_of(entity)) is not None


async def create(session: AsyncSession, entity: Entity) -> str:
    """Provision the namespace for ``entity``.

    Raises ConflictError if it was already provisioned; a second create is
    never treated as success.
    """
    namespace = namespace_of(entity)
    with bind_tenant(namespace):
        if await exists(session, entity):
            logger.warning("Namespace %s already exists", namespace)
            raise ConflictError({"tenant": ["namespace already exists"]})

        session.add(TenantNamespace(name=namespace, entity_id=entity.id))
        try:
            await session.flush()
        except IntegrityError as exc:
            raise ConflictError({"tenant": ["namespace already exists"]}) from exc

        logger.info("Provisioned namespace %s for entity %s", namespace, entity.id)
    return namespace


def tenant_tables():
    """Every table that stores rows inside a namespace."""
    return [
        table
        for table in SQLModel.metadata.sorted_tables
        if TENANT_COLUMN in table.c and table.name != TenantNamespace.__tablename__
    ]


async def drop(session: AsyncSession, entity: Entity) -> str:
    """Tear down the namespace of ``entity`` and every row stored in it.

    Raises NotFoundError if the namespace was never provisioned.
    """
    namespace = namespace_of(entity)
    with bind_tenant(namespace):
        record = await session.get(TenantNamespace, namespace)
        if record is None:
            raise NotFoundError(f"Namespace {namespace} not found")

        # Children before parents
        for table in reversed(tenant_tables()):
            await session.execute(delete(table).where(table.c[TENANT_COLUMN] == namespace))
        await session.delete(record)
        await session.flush()

        logger.info("Dropped namespace %s for entity %s", namespace, entity.id)
    return namespace


def scope(statement: Select, entity: Entity) -> Select:
    """Confine ``statement`` to the namespace of ``entity``."""
    model = primary_model(statement)
    column = getattr(model, TENANT_COLUMN, None)
    if column is None:
        raise TypeError(f"{model.__name__} is not tenant-scoped")
    return statement.where(column == namespace_of(entity))
