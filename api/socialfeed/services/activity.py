"""Idempotent storage of external activity events.

record_activity_event() inserts with ON CONFLICT (id) DO NOTHING, keyed on
the source's event id. Replaying an event the store already holds is a
successful no-op, so the ingestor can re-fetch overlapping pages freely.
"""

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from socialfeed.models.activity import ActivityEvent
from socialfeed.schemas.activity import ActivityEventIn

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


async def record_activity_event(db: AsyncSession, event: ActivityEventIn) -> bool:
    """Insert `event` unless its id is already stored.

    Does not commit; the caller owns the transaction.

    Returns:
        True if a row was written, False if the id was already present.
    """
    dialect = db.get_bind().dialect.name
    insert = _INSERTS.get(dialect)
    if insert is None:
        raise NotImplementedError(f"idempotent insert not supported on {dialect!r}")

    values = event.model_dump()
    values["kind"] = event.kind.value
    stmt = (
        insert(ActivityEvent)
        .values(**values)
        .on_conflict_do_nothing(index_elements=[ActivityEvent.id])
    )
    result = await db.execute(stmt)
    return result.rowcount == 1
