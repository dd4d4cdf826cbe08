"""Tests for tenant namespace provisioning, teardown and scoping."""

import uuid

import pytest
from sqlmodel import select

from fintrack.core.errors import ConflictError, NotFoundError
from fintrack.models.contact import Contact, ContactCategory
from fintrack.models.entity import Entity
from fintrack.models.tenant import TenantNamespace
from fintrack.models.user import User
from fintrack.services import contacts, entities, tenants


def test_namespace_is_derived_from_entity_id():
    entity_id = uuid.UUID("3f2a9c10-0000-4000-8000-000000000001")
    entity = Entity(id=entity_id, name="Acme", owner_id=uuid.uuid4())
    assert tenants.namespace_of(entity) == "entity_3f2a9c10000040008000" + "000000000001"
    assert tenants.namespace_of(entity) == tenants.namespace_of(entity)
    assert len(tenants.namespace_of(entity)) <= 63


def test_tenant_tables():
    names = {table.name for table in tenants.tenant_tables()}
    assert names == {"contacts", "contact_categories", "currencies"}


def test_scope_rejects_unscoped_models():
    entity = Entity(id=uuid.uuid4(), name="Acme", owner_id=uuid.uuid4())
    with pytest.raises(TypeError):
        tenants.scope(select(User), entity)


@pytest.mark.asyncio
async def test_create_entity_provisions_namespace(session, make_user, make_entity):
    owner = await make_user()
    entity = await make_entity(owner)

    assert await tenants.exists(session, entity)
    record = await session.get(TenantNamespace, tenants.namespace_of(entity))
    assert record.entity_id == entity.id


@pytest.mark.asyncio
async def test_second_create_conflicts(session, make_user, make_entity):
    owner = await make_user()
    entity = await make_entity(owner, create_tenant=False)
    assert not await tenants.exists(session, entity)

    namespace = await tenants.create(session, entity)
    await session.commit()
    assert namespace == tenants.namespace_of(entity)

    with pytest.raises(ConflictError) as exc_info:
        await tenants.create(session, entity)
    assert exc_info.value.code == "conflict"
    assert "tenant" in exc_info.value.errors


@pytest.mark.asyncio
async def test_drop_missing_namespace_is_not_found(session, make_user, make_entity):
    owner = await make_user()
    entity = await make_entity(owner, create_tenant=False)

    with pytest.raises(NotFoundError):
        await tenants.drop(session, entity)


@pytest.mark.asyncio
async def test_delete_entity_drops_namespace_data(session, make_user, make_entity):
    owner = await make_user()
    entity = await make_entity(owner)
    namespace = tenants.namespace_of(entity)
    category = await contacts.create_category(session, entity, {"description": "Banks"})
    await contacts.create_contact(
        session, entity, {"name": "First Bank", "category_id": category.id},
    )

    await entities.delete_entity(session, entity)

    assert await session.get(TenantNamespace, namespace) is None
    rows = await session.execute(select(Contact).where(Contact.tenant == namespace))
    assert rows.scalars().all() == []
    rows = await session.execute(select(ContactCategory).where(ContactCategory.tenant == namespace))
    assert rows.scalars().all() == []


@pytest.mark.asyncio
async def test_delete_entity_can_keep_namespace(session, make_user, make_entity):
    owner = await make_user()
    entity = await make_entity(owner)
    namespace = tenants.namespace_of(entity)

    await entities.delete_entity(session, entity, drop_tenant=False)

    assert await session.get(Entity, entity.id) is None
    assert await session.get(TenantNamespace, namespace) is not None


@pytest.mark.asyncio
async def test_scope_isolates_namespaces(session, make_user, make_entity):
    owner = await make_user()
    first = await make_entity(owner, "First")
    second = await make_entity(owner, "Second")
    await contacts.create_contact(session, first, {"name": "Only in first"})

    stmt = tenants.scope(select(Contact), first)
    assert [c.name for c in (await session.execute(stmt)).scalars()] == ["Only in first"]

    stmt = tenants.scope(select(Contact), second)
    assert (await session.execute(stmt)).scalars().all() == []
