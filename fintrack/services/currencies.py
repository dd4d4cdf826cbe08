"""Currencies stored inside an entity's namespace."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from fintrack.core.errors import ConflictError, NotFoundError
from fintrack.core.logging import bind_tenant
from fintrack.models.currency import Currency, CurrencyCreate, CurrencyUpdate
from fintrack.models.entity import Entity
from fintrack.services import tenants
from fintrack.services.base import apply_changes, commit_or_conflict, commit_or_rollback, parse
from fintrack.services.paginator import ListOptions, Page, paginate
from fintrack.services.query_builder import build_filter, build_search

logger = logging.getLogger(__name__)

FILTER_FIELDS = [Currency.type, Currency.active]
SEARCH_FIELDS = [Currency.description, Currency.iso_code, Currency.symbol]

DUPLICATE_ISO_CODE = {"iso_code": ["has already been taken"]}


async def list_currencies(
    session: AsyncSession,
    entity: Entity,
    options: ListOptions | None = None,
) -> Page[Currency]:
    """Page through the entity's currencies.

    Filters on ``type`` and ``active``; searches description, ISO code and
    symbol.
    """
    options = options or ListOptions()
    stmt = build_filter(select(Currency), options.filter, FILTER_FIELDS)
    stmt = build_search(stmt, options.search, SEARCH_FIELDS)
    stmt = tenants.scope(stmt, entity)
    return await paginate(session, stmt, options)


async def get_currency(session: AsyncSession, entity: Entity, currency_id: uuid.UUID) -> Currency:
    stmt = tenants.scope(select(Currency).where(Currency.id == currency_id), entity)
    currency = (await session.execute(stmt)).scalar_one_or_none()
    if currency is None:
        raise NotFoundError("Currency not found")
    return currency


async def _check_iso_code(
    session: AsyncSession,
    namespace: str,
    iso_code: str | None,
    exclude: uuid.UUID | None = None,
) -> None:
    if iso_code is None:
        return
    stmt = select(Currency.id).where(Currency.tenant == namespace, Currency.iso_code == iso_code)
    if exclude is not None:
        stmt = stmt.where(Currency.id != exclude)
    if (await session.execute(stmt)).first() is not None:
        raise ConflictError(DUPLICATE_ISO_CODE)


async def create_currency(
    session: AsyncSession,
    entity: Entity,
    data: CurrencyCreate | Mapping[str, Any],
) -> Currency:
    body = parse(CurrencyCreate, data)
    if not await tenants.exists(session, entity):
        raise NotFoundError(f"Namespace of entity {entity.id} not found")
    namespace = tenants.namespace_of(entity)
    await _check_iso_code(session, namespace, body.iso_code)

    currency = Currency(**body.model_dump(), tenant=namespace)
    session.add(currency)
    await commit_or_conflict(session, DUPLICATE_ISO_CODE)
    await session.refresh(currency)
    with bind_tenant(namespace):
        logger.info("Created currency %s (%s)", currency.id, currency.iso_code or "-")
    return currency


async def update_currency(
    session: AsyncSession,
    currency: Currency,
    data: CurrencyUpdate | Mapping[str, Any],
) -> Currency:
    body = parse(CurrencyUpdate, data)
    if "iso_code" in body.model_fields_set:
        await _check_iso_code(session, currency.tenant, body.iso_code, exclude=currency.id)

    apply_changes(currency, body)
    session.add(currency)
    await commit_or_conflict(session, DUPLICATE_ISO_CODE)
    await session.refresh(currency)
    return currency


async def delete_currency(session: AsyncSession, currency: Currency) -> Currency:
    await session.delete(currency)
    await commit_or_rollback(session)
    return currency
