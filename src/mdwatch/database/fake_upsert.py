"""Select-then-insert-or-update ("fake upsert") for cache tables.

Postgres advances the primary key sequence on every ``INSERT ... ON CONFLICT
DO UPDATE`` even when the statement ends up updating, so ids drift apart
quickly on a feed where most writes are re-observations. Instead we look the
row up by its natural unique key and either insert it (returning the new id)
or update it in place (keeping the existing id).
"""

from __future__ import annotations

import functools
from typing import Any, NamedTuple

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from mdwatch.database.tables.base_class import BasePublic

# Columns owned by the database, never written by an upsert
GENERATED_COLUMNS = frozenset({"id", "created_at", "updated_at"})

KEY_PREFIX = "key_"
VALUE_PREFIX = "value_"
ROW_ID_PARAM = "row_id"


class FakeUpsertQueries(NamedTuple):
    insert: sa.Insert
    update: sa.Update
    select: sa.Select
    key_columns: tuple[str, ...]
    value_columns: tuple[str, ...]


def _unique_key(table: sa.Table) -> tuple[str, ...]:
    for constraint in table.constraints:
        if isinstance(constraint, sa.UniqueConstraint) and constraint.columns:
            return tuple(column.name for column in constraint.columns)

    return tuple(
        column.name
        for column in table.columns
        if column.unique and column.name not in GENERATED_COLUMNS
    )


@functools.cache
def fake_upsert_queries(model: type[BasePublic]) -> FakeUpsertQueries:
    """Build the insert, update and select statements for ``model``.

    The result only depends on the table schema, so it is computed once per
    model and reused for the lifetime of the process.

    Raises:
        ValueError: If the table has no unique key to match existing rows on.
    """
    table: sa.Table = model.__table__

    key_columns = _unique_key(table)
    if not key_columns:
        raise ValueError(f"No unique key found for table: {table.name}")

    value_columns = tuple(
        column.name for column in table.columns if column.name not in GENERATED_COLUMNS
    )
    update_columns = [name for name in value_columns if name not in key_columns]

    def value_param(name: str) -> sa.BindParameter:
        return sa.bindparam(f"{VALUE_PREFIX}{name}", type_=table.c[name].type)

    insert = (
        sa.insert(table)
        .values({name: value_param(name) for name in value_columns})
        .returning(table.c.id)
    )

    update = (
        sa.update(table)
        .where(table.c.id == sa.bindparam(ROW_ID_PARAM))
        .values(
            {
                **{name: value_param(name) for name in update_columns},
                "updated_at": sa.func.now(),
            }
        )
    )

    select = sa.select(table.c.id).where(
        *[
            table.c[name] == sa.bindparam(f"{KEY_PREFIX}{name}", type_=table.c[name].type)
            for name in key_columns
        ]
    )

    return FakeUpsertQueries(
        insert=insert,
        update=update,
        select=select,
        key_columns=key_columns,
        value_columns=value_columns,
    )


def row_values(row: BasePublic) -> dict[str, Any]:
    """Column values of a (possibly transient) row keyed by column name."""
    return {column.name: getattr(row, column.key) for column in row.__table__.columns}


async def fake_upsert(session: AsyncSession, row: BasePublic) -> int:
    """Insert ``row`` or update the existing row sharing its unique key.

    Returns:
        The id of the inserted row, or the unchanged id of the existing row.
    """
    queries = fake_upsert_queries(type(row))
    values = row_values(row)

    key_params = {f"{KEY_PREFIX}{name}": values[name] for name in queries.key_columns}
    existing_id = (await session.execute(queries.select, key_params)).scalar_one_or_none()

    if existing_id is None:
        insert_params = {
            f"{VALUE_PREFIX}{name}": values[name] for name in queries.value_columns
        }
        return (await session.execute(queries.insert, insert_params)).scalar_one()

    update_params = {
        f"{VALUE_PREFIX}{name}": values[name]
        for name in queries.value_columns
        if name not in queries.key_columns
    }
    await session.execute(queries.update, {ROW_ID_PARAM: existing_id, **update_params})
    return existing_id
