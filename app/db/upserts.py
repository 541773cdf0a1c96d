"""Inserts that let a table's unique constraint settle concurrent writers.

A look-up followed by an insert cannot stop two requests from both deciding to
create the same row. These helpers push the decision into the database with
``INSERT ... ON CONFLICT`` on PostgreSQL and SQLite. Other dialects get a plain
insert, and a uniqueness violation there surfaces as ``Conflict``.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Table, insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import Conflict

_DIALECT_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


async def _plain_insert(session: AsyncSession, table: Table, values: dict[str, Any]) -> None:
    try:
        await session.execute(insert(table).values(**values))
    except IntegrityError as exc:
        raise Conflict(f"{table.name} row already exists") from exc


async def insert_if_absent(session: AsyncSession, table: Table, values: dict[str, Any]) -> bool:
    """Insert a row unless a unique constraint already holds an equal one.

    Returns True when this call created the row.
    """

    dialect_insert = _DIALECT_INSERTS.get(session.get_bind().dialect.name)
    if dialect_insert is None:
        await _plain_insert(session, table, values)
        return True

    result = await session.execute(dialect_insert(table).values(**values).on_conflict_do_nothing())
    return result.rowcount == 1


async def upsert(
    session: AsyncSession,
    table: Table,
    values: dict[str, Any],
    *,
    conflict_columns: list[str],
    update_columns: list[str],
) -> None:
    """Insert a row, or overwrite ``update_columns`` of the row it collides with."""

    dialect_insert = _DIALECT_INSERTS.get(session.get_bind().dialect.name)
    if dialect_insert is None:
        await _plain_insert(session, table, values)
        return

    statement = dialect_insert(table).values(**values)
    statement = statement.on_conflict_do_update(
        index_elements=conflict_columns,
        set_={column: statement.excluded[column] for column in update_columns},
    )
    await session.execute(statement)
