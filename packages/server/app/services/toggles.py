"""
Toggle engine: idempotent presence-flip over a relation table.

A toggle is two storage-level conditional writes, each atomic on its own:

1. ``DELETE ... WHERE <key> RETURNING id``; if a row came back the relation
   was present and is now gone.
2. Otherwise ``INSERT ... ON CONFLICT DO NOTHING RETURNING id``; if a row
   came back the relation is now present. If nothing came back a concurrent
   duplicate request inserted the same key first; the unique constraint on
   the key makes that "already toggled on", not an error.

Cached counters are bumped with a single ``UPDATE ... SET col = col +/- 1``
next to the relation write (decrement floored at zero). They are a read
denormalization only; ``app.services.counters.reconcile_counters`` repairs
drift from the relation rows.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Optional

import sqlalchemy as sa
import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from app.core.database import insert_ignore

log = structlog.get_logger()


@dataclass(frozen=True)
class CachedCounter:
    """A denormalized count column on another table to keep in step with the relation."""
    model: type[SQLModel]
    row_id: uuid.UUID
    column: str


@dataclass(frozen=True)
class ToggleResult:
    active: bool
    count: Optional[int] = None


async def _bump(
    session: AsyncSession, counter: Optional[CachedCounter], delta: int
) -> Optional[int]:
    if counter is None:
        return None
    table = counter.model.__table__
    col = table.c[counter.column]
    if delta > 0:
        value = col + 1
    else:
        value = sa.case((col > 0, col - 1), else_=0)
    result = await session.execute(
        sa.update(table)
        .where(table.c.id == counter.row_id)
        .values({counter.column: value})
        .returning(col)
    )
    return result.scalar_one_or_none()


async def _read(session: AsyncSession, counter: Optional[CachedCounter]) -> Optional[int]:
    if counter is None:
        return None
    table = counter.model.__table__
    result = await session.execute(
        sa.select(table.c[counter.column]).where(table.c.id == counter.row_id)
    )
    return result.scalar_one_or_none()


async def _delete_present(session: AsyncSession, table: sa.Table, key: dict[str, Any]) -> bool:
    conditions = [table.c[name] == value for name, value in key.items()]
    deleted = await session.execute(
        sa.delete(table).where(*conditions).returning(table.c.id)
    )
    return deleted.first() is not None


async def _insert_absent(
    session: AsyncSession, model: type[SQLModel], key: dict[str, Any]
) -> bool:
    table = model.__table__
    inserted = await session.execute(
        insert_ignore(session, table, model(**key).model_dump()).returning(table.c.id)
    )
    return inserted.first() is not None


async def toggle(
    session: AsyncSession,
    model: type[SQLModel],
    key: dict[str, Any],
    counter: Optional[CachedCounter] = None,
) -> ToggleResult:
    """Flip presence of the ``model`` row identified by ``key``.

    ``key`` must match a unique constraint on ``model``.
    """
    table = model.__table__

    if await _delete_present(session, table, key):
        count = await _bump(session, counter, -1)
        log.info("toggle.off", relation=table.name, count=count)
        return ToggleResult(active=False, count=count)

    if not await _insert_absent(session, model, key):
        log.info("toggle.duplicate_suppressed", relation=table.name)
        return ToggleResult(active=True, count=await _read(session, counter))

    count = await _bump(session, counter, +1)
    log.info("toggle.on", relation=table.name, count=count)
    return ToggleResult(active=True, count=count)
