"""Writes the status column of ATS records for UPDATE_STATUS actions (implements IEntityStatusWriter).

The candidate, application, job, interview and offer tables belong to the
surrounding ATS schema; this writer only issues a single-row UPDATE by id.
"""

from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.exceptions import ResourceNotFoundException
from app.infrastructure.exceptions import UnsupportedEntityTypeError

# entity type (as written in rule configs, case-insensitive) -> table name
STATUS_TABLES: dict[str, str] = {
    "candidate": "candidate",
    "application": "application",
    "job": "job",
    "interview": "interview",
    "offer": "offer",
}


class SqlEntityStatusWriter:
    """Raw single-row status UPDATE in the caller's session, inside a savepoint."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def update_status(self, entity_type: str, entity_id: str, status: str) -> None:
        table = STATUS_TABLES.get(entity_type.lower())
        if table is None:
            raise UnsupportedEntityTypeError(entity_type)
        # Savepoint: a failed UPDATE must not abort the execution record's transaction.
        async with self.db.begin_nested():
            result = await self.db.execute(
                text(f'UPDATE "{table}" SET status = :status WHERE id = :entity_id'),
                {"status": status, "entity_id": entity_id},
            )
        if not result.rowcount:
            raise ResourceNotFoundException(entity_type, entity_id)
