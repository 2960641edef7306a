"""Catalog routes — three-currency price normalisation and assembly totals."""
import logging
from dataclasses import asdict

from fastapi import APIRouter, HTTPException

from cpq.models.schemas import AssemblyIn, NormalizePricesIn
from cpq.services.assembly_pricing import calculate_assembly_pricing, validate_assembly
from cpq.services.currency_engine import normalize_component_prices

router = APIRouter(prefix="/api/catalog", tags=["Catalog"])
logger = logging.getLogger("cpq-api")


@router.post("/normalize-prices")
async def normalize_prices(body: NormalizePricesIn):
    """Fill ILS / USD / EUR columns for one component from its original price."""
    rates = body.rates.to_domain() if body.rates else None
    prices = normalize_component_prices(body.component.to_domain(), rates=rates)
    return asdict(prices)


@router.post("/assembly-pricing")
async def assembly_pricing(body: AssemblyIn):
    assembly = body.to_domain()
    errors = validate_assembly(assembly.name, assembly.components)
    if errors:
        raise HTTPException(status_code=422, detail=errors)

    rates = body.rates.to_domain() if body.rates else None
    pricing = calculate_assembly_pricing(assembly, rates=rates)
    logger.info(
        f"Priced assembly {assembly.name!r}: {pricing.component_count} components, "
        f"ILS {pricing.total_cost_ils:.2f}"
    )
    return asdict(pricing)
