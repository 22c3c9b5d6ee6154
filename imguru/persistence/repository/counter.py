"""PostgreSQL implementation of the durable counter store."""

from typing import Optional

import logfire
from sqlalchemy import Column, Table, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from imguru.domain.error import DurableReadError, DurableWriteError
from imguru.domain.repository.counter import CounterRepository
from imguru.domain.value import CounterMetric, EntityKind
from imguru.persistence.tables import posts_table

# (entity kind, metric) -> (table, counter column)
COUNTER_COLUMNS: dict[tuple[str, str], tuple[Table, Column]] = {
    (EntityKind.POST.value, CounterMetric.VIEWS.value): (
        posts_table,
        posts_table.c.view_count,
    ),
}


class PostgresCounterRepository(CounterRepository):
    """Counter columns on entity tables.

    Each call runs in its own short transaction so a failure on one entity
    never affects writes for another.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize repository with a session factory.

        Args:
            session_factory: Factory for per-call sessions
        """
        self.session_factory = session_factory

    async def get_current_count(
        self, entity_kind: str, entity_id: int, metric: str
    ) -> Optional[int]:
        """Read the durable count (None for missing or deleted entities)."""
        target = COUNTER_COLUMNS.get((entity_kind, metric))
        if target is None:
            raise DurableReadError(f"No counter column for {entity_kind}/{metric}")
        table, column = target

        with logfire.span(
            "counter_repository.get_current_count",
            entity_kind=entity_kind,
            entity_id=entity_id,
            metric=metric,
        ):
            stmt = select(column).where(
                table.c.id == entity_id,
                table.c.deleted_at.is_(None),
            )
            try:
                async with self.session_factory() as session:
                    result = await session.execute(stmt)
                    return result.scalar_one_or_none()
            except SQLAlchemyError as e:
                raise DurableReadError(
                    f"Failed to read {metric} for {entity_kind} {entity_id}: {e}"
                ) from e

    async def set_count(
        self, entity_kind: str, entity_id: int, metric: str, value: int
    ) -> bool:
        """Overwrite the durable count (False for missing or deleted entities)."""
        target = COUNTER_COLUMNS.get((entity_kind, metric))
        if target is None:
            raise DurableWriteError(
                entity_kind, entity_id, metric, "no counter column registered"
            )
        table, column = target

        with logfire.span(
            "counter_repository.set_count",
            entity_kind=entity_kind,
            entity_id=entity_id,
            metric=metric,
            value=value,
        ):
            stmt = (
                update(table)
                .where(table.c.id == entity_id, table.c.deleted_at.is_(None))
                .values({column.key: value})
            )
            try:
                async with self.session_factory() as session, session.begin():
                    result = await session.execute(stmt)
            except SQLAlchemyError as e:
                raise DurableWriteError(entity_kind, entity_id, metric, str(e)) from e

            written = result.rowcount > 0
            logfire.info(
                "Durable count set" if written else "Durable count target missing",
                entity_kind=entity_kind,
                entity_id=entity_id,
                metric=metric,
                value=value,
            )
            return written
