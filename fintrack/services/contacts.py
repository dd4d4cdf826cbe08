"""Contacts and contact categories, the data stored inside an entity's namespace.

Every read goes through ``tenants.scope`` so a row from another entity's
namespace is indistinguishable from a missing one.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from fintrack.core.errors import ConflictError, NotFoundError, ValidationError
from fintrack.core.logging import bind_tenant
from fintrack.models.contact import (
    Contact,
    ContactCategory,
    ContactCategoryCreate,
    ContactCreate,
    ContactUpdate,
)
from fintrack.models.entity import Entity
from fintrack.services import tenants
from fintrack.services.base import apply_changes, commit_or_conflict, commit_or_rollback, parse
from fintrack.services.paginator import ListOptions, Page, paginate
from fintrack.services.query_builder import build_filter, build_search

logger = logging.getLogger(__name__)

CATEGORY_SEARCH_FIELDS = [ContactCategory.description]

CONTACT_FILTER_FIELDS = [Contact.type, Contact.customer, Contact.supplier, Contact.category_id]
CONTACT_SEARCH_FIELDS = [
    Contact.name,
    Contact.legal_name,
    (Contact.category, [ContactCategory.description]),
]

DUPLICATE_CATEGORY = {"description": ["has already been taken"]}


async def _namespace(session: AsyncSession, entity: Entity) -> str:
    """Namespace id of ``entity``, which must have been provisioned."""
    if not await tenants.exists(session, entity):
        raise NotFoundError(f"Namespace of entity {entity.id} not found")
    return tenants.namespace_of(entity)


# ── Categories ────────────────────────────────────────────────

async def list_categories(
    session: AsyncSession,
    entity: Entity,
    options: ListOptions | None = None,
) -> Page[ContactCategory]:
    options = options or ListOptions()
    stmt = build_search(select(ContactCategory), options.search, CATEGORY_SEARCH_FIELDS)
    stmt = tenants.scope(stmt, entity)
    return await paginate(session, stmt, options)


async def get_category(
    session: AsyncSession,
    entity: Entity,
    category_id: uuid.UUID,
) -> ContactCategory:
    stmt = tenants.scope(select(ContactCategory).where(ContactCategory.id == category_id), entity)
    category = (await session.execute(stmt)).scalar_one_or_none()
    if category is None:
        raise NotFoundError("Contact category not found")
    return category


async def _check_description(
    session: AsyncSession,
    namespace: str,
    description: str,
    exclude: uuid.UUID | None = None,
) -> None:
    stmt = select(ContactCategory.id).where(
        ContactCategory.tenant == namespace,
        ContactCategory.description == description,
    )
    if exclude is not None:
        stmt = stmt.where(ContactCategory.id != exclude)
    if (await session.execute(stmt)).first() is not None:
        raise ConflictError(DUPLICATE_CATEGORY)


async def create_category(
    session: AsyncSession,
    entity: Entity,
    data: ContactCategoryCreate | Mapping[str, Any],
) -> ContactCategory:
    body = parse(ContactCategoryCreate, data)
    namespace = await _namespace(session, entity)
    await _check_description(session, namespace, body.description)

    category = ContactCategory(**body.model_dump(), tenant=namespace)
    session.add(category)
    await commit_or_conflict(session, DUPLICATE_CATEGORY)
    await session.refresh(category)
    with bind_tenant(namespace):
        logger.info("Created contact category %s", category.id)
    return category


async def update_category(
    session: AsyncSession,
    category: ContactCategory,
    data: ContactCategoryCreate | Mapping[str, Any],
) -> ContactCategory:
    body = parse(ContactCategoryCreate, data)
    await _check_description(session, category.tenant, body.description, exclude=category.id)
    apply_changes(category, body)
    session.add(category)
    await commit_or_conflict(session, DUPLICATE_CATEGORY)
    await session.refresh(category)
    return category


async def delete_category(session: AsyncSession, category: ContactCategory) -> ContactCategory:
    await session.delete(category)
    await commit_or_rollback(session)
    return category


# ── Contacts ──────────────────────────────────────────────────

async def list_contacts(
    session: AsyncSession,
    entity: Entity,
    options: ListOptions | None = None,
) -> Page[Contact]:
    """Page through the entity's contacts.

    Filters on type, customer, supplier and category_id; searches name,
    legal name and the category description.
    """
    options = options or ListOptions()
    stmt = build_filter(select(Contact), options.filter, CONTACT_FILTER_FIELDS)
    stmt = build_search(stmt, options.search, CONTACT_SEARCH_FIELDS)
    stmt = tenants.scope(stmt, entity)
    return await paginate(session, stmt, options)


async def get_contact(session: AsyncSession, entity: Entity, contact_id: uuid.UUID) -> Contact:
    stmt = tenants.scope(select(Contact).where(Contact.id == contact_id), entity)
    contact = (await session.execute(stmt)).scalar_one_or_none()
    if contact is None:
        raise NotFoundError("Contact not found")
    return contact


async def _check_category(
    session: AsyncSession,
    entity: Entity,
    category_id: uuid.UUID | None,
) -> None:
    """A contact may only point at a category of the same namespace."""
    if category_id is None:
        return
    try:
        await get_category(session, entity, category_id)
    except NotFoundError as exc:
        raise ValidationError({"category_id": ["does not exist"]}) from exc


async def create_contact(
    session: AsyncSession,
    entity: Entity,
    data: ContactCreate | Mapping[str, Any],
) -> Contact:
    body = parse(ContactCreate, data)
    namespace = await _namespace(session, entity)
    await _check_category(session, entity, body.category_id)

    contact = Contact(**body.model_dump(), tenant=namespace)
    session.add(contact)
    await commit_or_rollback(session)
    await session.refresh(contact)
    with bind_tenant(contact.tenant):
        logger.info("Created contact %s", contact.id)
    return contact


async def update_contact(
    session: AsyncSession,
    entity: Entity,
    contact: Contact,
    data: ContactUpdate | Mapping[str, Any],
) -> Contact:
    body = parse(ContactUpdate, data)
    if contact.tenant != tenants.namespace_of(entity):
        raise NotFoundError("Contact not found")
    if "category_id" in body.model_fields_set:
        await _check_category(session, entity, body.category_id)

    apply_changes(contact, body)
    session.add(contact)
    await commit_or_rollback(session)
    await session.refresh(contact)
    return contact


async def delete_contact(session: AsyncSession, contact: Contact) -> Contact:
    await session.delete(contact)
    await commit_or_rollback(session)
    return contact
