"""Quotation routes — totals, renumbering and statistics for a quotation payload."""
import logging

from fastapi import APIRouter, HTTPException

from cpq.errors import MissingParametersError
from cpq.models.schemas import QuotationIn, RenumberIn, calculations_out, item_out
from cpq.services.quotation_engine import calculate_quotation
from cpq.services.quotation_statistics import calculate_quotation_statistics
from cpq.services.renumbering import renumber_items, renumber_systems
from cpq.services.validation import validate_quotation_item, validate_quotation_parameters

router = APIRouter(prefix="/api/quotations", tags=["Quotations"])
logger = logging.getLogger("cpq-api")


def _validation_warnings(project) -> list:
    errors = []
    if project.parameters is not None:
        errors.extend(validate_quotation_parameters(project.parameters))
    for item in project.items:
        errors.extend(f"Item {item.id}: {msg}" for msg in validate_quotation_item(item))
    return errors


@router.post("/calculate")
async def calculate(body: QuotationIn):
    """
    Recompute every item total and the quotation calculations.

    Validation problems are reported as ``warnings``; they never block the
    calculation.
    """
    project = body.to_domain()
    try:
        calculated = calculate_quotation(project)
    except MissingParametersError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return {
        "quotation_id": calculated.id,
        "items": [item_out(i) for i in calculated.items],
        "calculations": calculations_out(calculated.calculations),
        "warnings": _validation_warnings(project),
    }


@router.post("/renumber")
async def renumber(body: RenumberIn):
    systems = renumber_systems([s.to_domain() for s in body.systems])
    items = renumber_items([i.to_domain() for i in body.items], systems)
    return {
        "systems": [
            {"id": s.id, "name": s.name, "order": s.order, "quantity": s.quantity}
            for s in systems
        ],
        "items": [item_out(i) for i in items],
    }


@router.post("/statistics")
async def statistics(body: QuotationIn):
    project = body.to_domain()
    try:
        calculated = calculate_quotation(project)
    except MissingParametersError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {
        "quotation_id": calculated.id,
        "statistics": calculate_quotation_statistics(calculated),
    }
