"""
Bulk-Operation Audit Guard.

A bulk mutation ("delete 26 components", "import 140 rows") must produce one
summary activity log, not one log per row. The per-row audit check has to see
that a bulk operation is running, and the database is reached through a
connection pool, so session-level state set on one connection is usually
invisible to the connection that performs the next row mutation. The guard
therefore writes a committed marker row to ``bulk_operations``; the audit
check reads that table inside the same transaction as the row it audits.

Lifecycle per operation id:

    idle --start_bulk_operation--> active --end_bulk_operation--> idle

Every marker carries ``expires_at``. A crashed caller leaves an orphaned
marker behind; expired markers are ignored at read time and removed by
cleanup_stale_bulk_operations().
"""
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import AsyncIterator, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cpq.config import get_settings
from cpq.errors import BulkOperationConflictError
from cpq.models.orm_models import BulkOperation

logger = logging.getLogger("cpq-bulk")

VALID_OPERATION_TYPES = ("import", "delete", "update")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _default_ttl() -> timedelta:
    return timedelta(seconds=get_settings().bulk_operation_ttl_seconds)


def new_operation_id(operation_type: str) -> str:
    """Fresh id for one logical bulk action (one per user click)."""
    return f"bulk-{operation_type}-{uuid.uuid4()}"


async def start_bulk_operation(
    session: AsyncSession,
    operation_id: str,
    team_id: str,
    operation_type: str,
    ttl: Optional[timedelta] = None,
    now: Optional[datetime] = None,
) -> BulkOperation:
    """
    Create and commit the marker for ``operation_id``.

    Raises BulkOperationConflictError if an unexpired marker with the same id
    exists. An expired marker with the same id is replaced.
    """
    if operation_type not in VALID_OPERATION_TYPES:
        raise ValueError(
            f"operation_type must be one of {', '.join(VALID_OPERATION_TYPES)}, got {operation_type!r}"
        )
    now = now or _utcnow()
    ttl = ttl or _default_ttl()

    result = await session.execute(
        select(BulkOperation.operation_id).where(
            BulkOperation.operation_id == operation_id,
            BulkOperation.expires_at > now,
        )
    )
    if result.scalar_one_or_none() is not None:
        raise BulkOperationConflictError(operation_id, team_id)

    # Stale marker left behind by a crashed run of the same id
    await session.execute(
        delete(BulkOperation).where(
            BulkOperation.operation_id == operation_id,
            BulkOperation.expires_at <= now,
        )
    )

    marker = BulkOperation(
        operation_id=operation_id,
        team_id=team_id,
        operation_type=operation_type,
        started_at=now,
        expires_at=now + ttl,
    )
    session.add(marker)
    try:
        await session.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent start of the same id
        await session.rollback()
        raise BulkOperationConflictError(operation_id, team_id) from e

    logger.info(
        f"Bulk {operation_type} started: {operation_id}",
        extra={"operation_id": operation_id, "team_id": team_id},
    )
    return marker


async def end_bulk_operation(session: AsyncSession, operation_id: str) -> bool:
    """
    Remove the marker. Best-effort: the bulk mutation itself has already
    succeeded, so a failure here is logged and reported as False, not raised.
    """
    try:
        result = await session.execute(
            delete(BulkOperation).where(BulkOperation.operation_id == operation_id)
        )
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.warning(
            f"Failed to end bulk operation {operation_id}: {e}",
            extra={"operation_id": operation_id},
        )
        return False

    if not result.rowcount:
        logger.warning(
            f"Bulk operation {operation_id} was already removed",
            extra={"operation_id": operation_id},
        )
        return False

    logger.info(f"Bulk operation ended: {operation_id}", extra={"operation_id": operation_id})
    return True


async def is_bulk_operation_active(
    session: AsyncSession,
    team_id: str,
    now: Optional[datetime] = None,
) -> bool:
    """True while an unexpired marker exists for ``team_id``."""
    now = now or _utcnow()
    result = await session.execute(
        select(BulkOperation.operation_id)
        .where(BulkOperation.team_id == team_id, BulkOperation.expires_at > now)
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def list_active_bulk_operations(
    session: AsyncSession,
    team_id: str,
    now: Optional[datetime] = None,
) -> List[BulkOperation]:
    now = now or _utcnow()
    result = await session.execute(
        select(BulkOperation)
        .where(BulkOperation.team_id == team_id, BulkOperation.expires_at > now)
        .order_by(BulkOperation.started_at)
    )
    return list(result.scalars().all())


async def cleanup_stale_bulk_operations(
    session: AsyncSession,
    now: Optional[datetime] = None,
) -> int:
    """Operator cleanup: delete every expired marker. Returns rows removed."""
    now = now or _utcnow()
    result = await session.execute(delete(BulkOperation).where(BulkOperation.expires_at <= now))
    await session.commit()
    removed = result.rowcount or 0
    if removed:
        logger.warning(f"Removed {removed} stale bulk operation marker(s)")
    return removed


@asynccontextmanager
async def bulk_operation(
    session_factory: async_sessionmaker,
    team_id: str,
    operation_type: str,
    operation_id: Optional[str] = None,
    ttl: Optional[timedelta] = None,
) -> AsyncIterator[str]:
    """
    Wrap a multi-row mutation::

        async with bulk_operation(AsyncSessionLocal, team_id, "delete") as op_id:
            ...delete rows...
            ...write one summary log...

    The marker is committed on its own session before the body runs and is
    always removed afterwards, even when the body raises.
    """
    operation_id = operation_id or new_operation_id(operation_type)
    async with session_factory() as session:
        await start_bulk_operation(session, operation_id, team_id, operation_type, ttl=ttl)
    try:
        yield operation_id
    finally:
        async with session_factory() as session:
            await end_bulk_operation(session, operation_id)
