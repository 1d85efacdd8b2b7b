"""Atomic per-prefix sequence."""

import logging

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from database.models.prefix_counters import PrefixCounter

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class PrefixCounterRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def increment_and_get(self, prefix: str) -> int:
        """
        Increment the counter for a prefix, creating it at 1 if missing.

        Runs as a single INSERT ... ON CONFLICT DO UPDATE ... RETURNING
        statement so concurrent callers never receive the same value.

        Args:
            prefix: Counter key (e.g. "SSE" or "RHUB-")

        Returns:
            The counter value after incrementing
        """
        dialect = self.session.get_bind().dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is None:
            raise RuntimeError(f"Prefix counters are not supported on {dialect}")

        stmt = insert(PrefixCounter).values(prefix=prefix, count=1)
        stmt = stmt.on_conflict_do_update(
            index_elements=[PrefixCounter.prefix],
            set_={"count": PrefixCounter.count + 1},
        ).returning(PrefixCounter.count)

        result = await self.session.execute(stmt)
        count = result.scalar_one()
        logger.debug(f"Counter {prefix} advanced to {count}")
        return count
