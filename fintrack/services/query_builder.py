"""Filter and search predicates built from untrusted request parameters.

Both builders only ever touch columns the caller lists explicitly. Filter
keys coming from a request are looked up in that allow-list by name; a key
that does not resolve is dropped without error, so filters cannot be used to
map out the schema.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence, Set
from enum import Enum
from typing import Any, Union

from sqlalchemy import Select, or_
from sqlalchemy.orm import InstrumentedAttribute

# A search field is a column of the queried model, or a relationship paired
# with columns of the related model: (Contact.category, [ContactCategory.description]).
SearchField = Union[
    InstrumentedAttribute,
    tuple[InstrumentedAttribute, Sequence[InstrumentedAttribute]],
]

LIKE_ESCAPE = "\\"


def primary_model(statement: Select) -> type:
    """Return the ORM class a ``select(Model)`` statement is rooted on."""
    descriptions = statement.column_descriptions
    model = descriptions[0].get("entity") if descriptions else None
    if model is None:
        raise TypeError("statement must select an ORM model")
    return model


def normalize_key(key: Any) -> str | None:
    """Map a filter key to a plain field name, or None if it has no usable form.

    Accepts the field name itself, an Enum whose value is the name, or the
    model attribute (``Entity.type``).
    """
    if isinstance(key, InstrumentedAttribute):
        return key.key
    if isinstance(key, Enum):
        key = key.value
    if isinstance(key, str):
        return key
    return None


def _is_many(value: Any) -> bool:
    return isinstance(value, (list, tuple, Set)) and not isinstance(value, (str, bytes))


def build_filter(
    statement: Select,
    params: Mapping[Any, Any] | None,
    allowed: Sequence[InstrumentedAttribute],
) -> Select:
    """AND one equality (or membership, for sequences) predicate per allowed key.

    Examples:
        build_filter(select(Entity), {"type": "company"}, [Entity.type])
        build_filter(select(Entity), {"status": ["active", "archived"]}, [Entity.status])
    """
    if not params:
        return statement

    columns = {column.key: column for column in allowed}
    for key, value in params.items():
        name = normalize_key(key)
        column = columns.get(name) if name is not None else None
        if column is None:
            continue
        if _is_many(value):
            statement = statement.where(column.in_(list(value)))
        else:
            statement = statement.where(column == value)
    return statement


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term matches literally."""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def build_search(
    statement: Select,
    term: str | None,
    fields: Sequence[SearchField],
) -> Select:
    """Case-insensitive substring search, OR'd across all listed fields.

    Relationship entries are outer-joined once each so rows without a related
    record can still match on their own columns.
    """
    if not term:
        return statement

    pattern = f"%{escape_like(term)}%"
    conditions = []
    for field in fields:
        if isinstance(field, tuple):
            relation, related_columns = field
            statement = statement.outerjoin(relation)
            conditions.extend(
                column.ilike(pattern, escape=LIKE_ESCAPE) for column in related_columns
            )
        else:
            conditions.append(field.ilike(pattern, escape=LIKE_ESCAPE))

    if not conditions:
        return statement
    return statement.where(or_(*conditions))
