"""Settings routes — team pricing settings and the process-wide rate cache."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cpq.db import get_db
from cpq.models.orm_models import PricingSettings
from cpq.models.schemas import PricingSettingsUpdate
from cpq.services.rate_cache import rate_cache

router = APIRouter(prefix="/api/settings", tags=["Pricing Settings"])
logger = logging.getLogger("cpq-api")


@router.get("/pricing")
async def get_cached_pricing():
    """Pricing the engine falls back to when a request carries no rates."""
    return {"pricing": rate_cache.pricing()}


@router.post("/pricing")
async def upsert_pricing_settings(
    payload: PricingSettingsUpdate,
    db: AsyncSession = Depends(get_db),
):
    """UPSERT the team's pricing settings and load them into the rate cache."""
    result = await db.execute(select(PricingSettings).where(PricingSettings.team_id == payload.team_id))
    row = result.scalar_one_or_none()

    if not row:
        row = PricingSettings(team_id=payload.team_id)
        db.add(row)

    for field, value in payload.model_dump(exclude_none=True, exclude={"team_id"}).items():
        setattr(row, field, value)

    await db.commit()
    await db.refresh(row)
    rate_cache.update(row.as_pricing_dict())
    logger.info(f"Pricing settings saved for team {payload.team_id}", extra={"team_id": payload.team_id})
    return {"status": "updated", "team_id": payload.team_id, "pricing": rate_cache.pricing()}


@router.post("/pricing/refresh")
async def refresh_pricing(
    team_id: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
):
    """Reload the rate cache from the team's saved settings (e.g. after an external edit)."""
    if not await rate_cache.refresh_from_db(db, team_id):
        raise HTTPException(status_code=404, detail=f"No pricing settings for team {team_id}")
    return {"team_id": team_id, "pricing": rate_cache.pricing()}
