"""Tests for filter/search predicate building."""

from enum import Enum

import pytest
from sqlalchemy import func
from sqlalchemy import select as sa_select
from sqlmodel import select

from fintrack.models.entity import Entity, EntityStatus, EntityType
from fintrack.services import entities
from fintrack.services.paginator import ListOptions
from fintrack.services.query_builder import (
    build_filter,
    build_search,
    escape_like,
    normalize_key,
    primary_model,
)


class Field(Enum):
    TYPE = "type"


async def _names(session, **options) -> list[str]:
    page = await entities.list_entities(session, ListOptions(page_size="all", **options))
    return sorted(e.name for e in page.entries)


async def _seed(make_user, make_entity):
    owner = await make_user("Owner")
    await make_entity(owner, "Acme Corp", type="company")
    await make_entity(owner, "Home budget", type="personal")
    await make_entity(owner, "Old shop", type="company", status="archived")
    return owner


def test_normalize_key_forms():
    assert normalize_key("type") == "type"
    assert normalize_key(Entity.type) == "type"
    assert normalize_key(Field.TYPE) == "type"
    assert normalize_key(42) is None
    assert normalize_key(None) is None


def test_escape_like_escapes_wildcards():
    assert escape_like("50%_off") == "50\\%\\_off"
    assert escape_like("a\\b") == "a\\\\b"
    assert escape_like("plain") == "plain"


def test_empty_inputs_leave_statement_untouched():
    stmt = select(Entity)
    assert build_filter(stmt, None, [Entity.type]) is stmt
    assert build_filter(stmt, {}, [Entity.type]) is stmt
    assert build_search(stmt, None, [Entity.name]) is stmt
    assert build_search(stmt, "", [Entity.name]) is stmt


def test_primary_model():
    assert primary_model(select(Entity)) is Entity
    with pytest.raises(TypeError):
        primary_model(sa_select(func.count()))


@pytest.mark.asyncio
async def test_unknown_filter_keys_are_ignored(session, make_user, make_entity):
    await _seed(make_user, make_entity)
    everything = await _names(session)

    # owner_id is a real column but not in the allow-list
    filtered = await _names(session, filter={"bogus": 1, "owner_id": "nope", 7: "x"})
    assert filtered == everything
    assert len(everything) == 3


@pytest.mark.asyncio
async def test_filter_by_string_key(session, make_user, make_entity):
    await _seed(make_user, make_entity)
    assert await _names(session, filter={"type": "company"}) == ["Acme Corp", "Old shop"]


@pytest.mark.asyncio
async def test_filter_by_attribute_and_enum_keys(session, make_user, make_entity):
    await _seed(make_user, make_entity)
    assert await _names(session, filter={Entity.type: EntityType.PERSONAL}) == ["Home budget"]
    assert await _names(session, filter={Field.TYPE: "personal"}) == ["Home budget"]


@pytest.mark.asyncio
async def test_filters_are_combined_with_and(session, make_user, make_entity):
    await _seed(make_user, make_entity)
    names = await _names(session, filter={"type": "company", "status": EntityStatus.ACTIVE})
    assert names == ["Acme Corp"]


@pytest.mark.asyncio
async def test_list_value_matches_any(session, make_user, make_entity):
    await _seed(make_user, make_entity)
    names = await _names(session, filter={"status": ["active", "archived"]})
    assert len(names) == 3
    assert await _names(session, filter={"type": ["personal", "other"]}) == ["Home budget"]


@pytest.mark.asyncio
async def test_filter_value_outside_enum_matches_nothing(session, make_user, make_entity):
    await _seed(make_user, make_entity)
    assert await _names(session, filter={"type": "spaceship"}) == []


@pytest.mark.asyncio
async def test_search_is_case_insensitive_substring(session, make_user, make_entity):
    await _seed(make_user, make_entity)
    assert await _names(session, search="ACME") == ["Acme Corp"]
    assert await _names(session, search="me bud") == ["Home budget"]
    assert await _names(session, search="o") == ["Acme Corp", "Home budget", "Old shop"]
    assert await _names(session, search="nothing like it") == []


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(session, make_user, make_entity):
    owner = await make_user("Owner")
    await make_entity(owner, "100% Organic")
    await make_entity(owner, "Organic")
    await make_entity(owner, "my_shop")
    await make_entity(owner, "myXshop")

    assert await _names(session, search="%") == ["100% Organic"]
    assert await _names(session, search="y_s") == ["my_shop"]
