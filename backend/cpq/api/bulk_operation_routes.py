"""Bulk operation routes — start / end / inspect the audit-suppression markers."""
import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from cpq.db import get_db
from cpq.errors import BulkOperationConflictError
from cpq.models.schemas import BulkOperationStart
from cpq.services.bulk_operations import (
    cleanup_stale_bulk_operations,
    end_bulk_operation,
    list_active_bulk_operations,
    start_bulk_operation,
)

router = APIRouter(prefix="/api/bulk-operations", tags=["Bulk Operations"])
logger = logging.getLogger("cpq-api")


def _marker_out(marker) -> dict:
    return {
        "operation_id": marker.operation_id,
        "team_id": marker.team_id,
        "operation_type": marker.operation_type,
        "started_at": marker.started_at.isoformat(),
        "expires_at": marker.expires_at.isoformat(),
    }


@router.post("")
async def start_operation(body: BulkOperationStart, db: AsyncSession = Depends(get_db)):
    ttl = timedelta(seconds=body.ttl_seconds) if body.ttl_seconds else None
    try:
        marker = await start_bulk_operation(
            db, body.operation_id, body.team_id, body.operation_type, ttl=ttl
        )
    except BulkOperationConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _marker_out(marker)


@router.delete("/{operation_id}")
async def end_operation(operation_id: str, db: AsyncSession = Depends(get_db)):
    """Always 200: ending is best-effort, ``ended`` reports whether a marker was removed."""
    ended = await end_bulk_operation(db, operation_id)
    return {"operation_id": operation_id, "ended": ended}


@router.get("/active")
async def active_operations(
    team_id: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
):
    markers = await list_active_bulk_operations(db, team_id)
    return {
        "team_id": team_id,
        "active": bool(markers),
        "operations": [_marker_out(m) for m in markers],
    }


@router.post("/cleanup")
async def cleanup(db: AsyncSession = Depends(get_db)):
    removed = await cleanup_stale_bulk_operations(db)
    return {"removed": removed}
