"""
Activity log writers.

Per-row entries go through log_entity_activity(), which skips the write while
a bulk operation marker is active for the team (the same check the database
triggers perform). Bulk operations write exactly one summary row through the
log_bulk_* helpers.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from cpq.models.orm_models import BULK_ENTITY_ID, ActivityLog
from cpq.services.bulk_operations import is_bulk_operation_active

logger = logging.getLogger("cpq-activity")

ENTITY_ACTIONS = ("created", "updated", "deleted")


def build_bulk_change(field: str, value: Any, count: int, description: Optional[str] = None) -> Dict[str, Any]:
    return {
        "bulk_changes": {
            "field": field,
            "value": value,
            "count": count,
            "description": description,
        }
    }


def build_items_removed(names: List[str]) -> Dict[str, Any]:
    return {"items_removed": [{"name": name, "action": "removed"} for name in names]}


async def log_entity_activity(
    session: AsyncSession,
    team_id: str,
    entity_type: str,
    entity_id: str,
    entity_name: str,
    action_type: str,
    change_summary: Optional[str] = None,
) -> Optional[ActivityLog]:
    """
    Per-row audit entry. Returns None (nothing written) while a bulk
    operation is active for ``team_id``.
    """
    if action_type not in ENTITY_ACTIONS:
        raise ValueError(f"Unsupported action_type: {action_type!r}")
    if await is_bulk_operation_active(session, team_id):
        logger.debug(f"Suppressed {action_type} log for {entity_type} {entity_id} (bulk operation active)")
        return None

    entry = ActivityLog(
        team_id=team_id,
        entity_type=entity_type,
        entity_id=entity_id,
        entity_name=entity_name,
        action_type=action_type,
        change_summary=change_summary or f"{entity_type} {action_type}: {entity_name}",
    )
    session.add(entry)
    await session.flush()
    return entry


async def _log_bulk(
    session: AsyncSession,
    team_id: str,
    action_type: str,
    entity_name: str,
    summary: str,
    details: Dict[str, Any],
    entity_type: str = "component",
) -> ActivityLog:
    entry = ActivityLog(
        team_id=team_id,
        entity_type=entity_type,
        entity_id=BULK_ENTITY_ID,
        entity_name=entity_name,
        action_type=action_type,
        change_summary=summary,
        change_details=details,
    )
    session.add(entry)
    await session.flush()
    logger.info(summary, extra={"team_id": team_id})
    return entry


async def log_bulk_import(
    session: AsyncSession,
    team_id: str,
    count: int,
    file_name: str,
    entity_type: str = "component",
) -> ActivityLog:
    return await _log_bulk(
        session, team_id, "bulk_import",
        entity_name=f"Bulk import ({count} {entity_type}s)",
        summary=f"Imported {count} {entity_type}s from {file_name}",
        details=build_bulk_change("import", file_name, count, "bulk import"),
        entity_type=entity_type,
    )


async def log_bulk_update(
    session: AsyncSession,
    team_id: str,
    field: str,
    value: Any,
    count: int,
    entity_type: str = "component",
) -> ActivityLog:
    return await _log_bulk(
        session, team_id, "bulk_update",
        entity_name=f"Bulk update ({count} {entity_type}s)",
        summary=f'Set {field} to "{value}" for {count} {entity_type}s',
        details=build_bulk_change(field, value, count),
        entity_type=entity_type,
    )


async def log_bulk_delete(
    session: AsyncSession,
    team_id: str,
    count: int,
    names: Optional[List[str]] = None,
    entity_type: str = "component",
) -> ActivityLog:
    details = build_items_removed(names) if names else build_bulk_change("delete", "bulk", count, "bulk delete")
    return await _log_bulk(
        session, team_id, "bulk_delete",
        entity_name=f"Bulk delete ({count} {entity_type}s)",
        summary=f"{count} {entity_type}s deleted",
        details=details,
        entity_type=entity_type,
    )
