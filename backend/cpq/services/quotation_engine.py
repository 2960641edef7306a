"""
QuotationEngine — item, system and quotation roll-ups for robotics quotations.

Covers:
  - Item totals and customer price under the quotation's markup policy
  - System totals by item type and labor subtype, scaled by system quantity
  - Quotation rollup in fixed order: cost → profit → risk → VAT → final total

Pure functions: no I/O, no shared state, inputs are never mutated. Sums use
math.fsum so the result does not depend on item or system ordering.
"""
import logging
import math
from dataclasses import replace
from typing import Dict, Iterable, List

from cpq.errors import MissingParametersError
from cpq.models.domain import (
    LABOR_SUBTYPES,
    QuotationCalculations,
    QuotationItem,
    QuotationParameters,
    QuotationProject,
    QuotationSystem,
    SystemTotals,
)

logger = logging.getLogger("cpq-pricing")

# Labor lines saved before subtypes existed are engineering days
_DEFAULT_LABOR_SUBTYPE = "engineering"


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------

def calculate_item_totals(item: QuotationItem, parameters: QuotationParameters) -> QuotationItem:
    """Return a copy of ``item`` with totals and customer price recomputed."""
    total_usd = item.quantity * item.unit_price_usd
    total_ils = item.quantity * item.unit_price_ils
    return replace(
        item,
        total_price_usd=total_usd,
        total_price_ils=total_ils,
        customer_price_ils=parameters.markup.customer_price(total_ils),
    )


# ---------------------------------------------------------------------------
# Systems
# ---------------------------------------------------------------------------

def _system_quantity(system: QuotationSystem) -> float:
    return system.quantity or 1


def calculate_system_totals(
    system: QuotationSystem,
    items: Iterable[QuotationItem],
    parameters: QuotationParameters,
) -> SystemTotals:
    """
    Sum the items belonging to ``system``.

    Sums are split by item type and, for labor, by subtype, then multiplied
    by the system quantity once at the end.
    """
    buckets: Dict[str, List[float]] = {
        key: [] for key in (
            "total_usd", "total_ils",
            "hardware_usd", "hardware_ils",
            "software_usd", "software_ils",
            "labor_usd", "labor_ils",
            "engineering_ils", "commissioning_ils",
            "installation_ils", "programming_ils",
        )
    }
    count = 0

    for raw in items:
        if raw.system_id != system.id:
            continue
        item = calculate_item_totals(raw, parameters)
        count += 1
        buckets["total_usd"].append(item.total_price_usd)
        buckets["total_ils"].append(item.total_price_ils)

        kind = item.item_type if item.item_type in ("software", "labor") else "hardware"
        buckets[f"{kind}_usd"].append(item.total_price_usd)
        buckets[f"{kind}_ils"].append(item.total_price_ils)

        if kind == "labor":
            subtype = item.labor_subtype if item.labor_subtype in LABOR_SUBTYPES else _DEFAULT_LABOR_SUBTYPE
            buckets[f"{subtype}_ils"].append(item.total_price_ils)

    qty = _system_quantity(system)
    scaled = {key: math.fsum(values) * qty for key, values in buckets.items()}
    return SystemTotals(system_id=system.id, system_name=system.name, item_count=count, **scaled)


# ---------------------------------------------------------------------------
# Quotation
# ---------------------------------------------------------------------------

def calculate_quotation_totals(project: QuotationProject) -> QuotationCalculations:
    """
    Full quotation rollup. Steps run in this exact order, each feeding the next:

        1. cost      = Σ system totals (already × system quantity)
        2. profit    = markup(cost) − cost, applied once at aggregate level
        3. risk      = (cost + profit) × risk% / 100
        4. pre-tax   = cost + profit + risk
        5. VAT       = pre-tax × vat% / 100 when VAT is included, else 0
        6. final     = pre-tax + VAT
        7. margin %  = profit / final × 100 (0 when final is 0)

    Raises MissingParametersError when the project has no parameters.
    """
    parameters = project.parameters
    if parameters is None:
        raise MissingParametersError()

    items = [calculate_item_totals(item, parameters) for item in project.items or []]
    systems = list(project.systems or [])
    system_totals = [calculate_system_totals(s, items, parameters) for s in systems]

    def _sum(attr: str) -> float:
        return math.fsum(getattr(t, attr) for t in system_totals)

    # 1. Cost
    total_cost_ils = _sum("total_ils")

    # 2. Customer price / profit
    customer_by_system = []
    for system in systems:
        own = math.fsum(i.customer_price_ils for i in items if i.system_id == system.id)
        customer_by_system.append(own * _system_quantity(system))
    total_customer_price_ils = math.fsum(customer_by_system)

    total_profit_ils = (
        parameters.markup.customer_price(total_cost_ils) - total_cost_ils
        if total_cost_ils else 0.0
    )

    # 3. Risk — percentage of price after profit, not of raw cost
    risk_addition_ils = (total_cost_ils + total_profit_ils) * (parameters.risk_percent or 0) / 100

    # 4. Pre-tax
    total_quote_ils = total_cost_ils + total_profit_ils + risk_addition_ils

    # 5. VAT
    total_vat_ils = total_quote_ils * (parameters.vat_rate / 100) if parameters.include_vat else 0.0

    # 6. Final
    final_total_ils = total_quote_ils + total_vat_ils

    # 7. Margin against the customer-facing final total
    profit_margin_percent = (total_profit_ils / final_total_ils) * 100 if final_total_ils > 0 else 0.0

    calculations = QuotationCalculations(
        total_hardware_usd=_sum("hardware_usd"),
        total_hardware_ils=_sum("hardware_ils"),
        total_software_usd=_sum("software_usd"),
        total_software_ils=_sum("software_ils"),
        total_labor_usd=_sum("labor_usd"),
        total_labor_ils=_sum("labor_ils"),
        total_engineering_ils=_sum("engineering_ils"),
        total_commissioning_ils=_sum("commissioning_ils"),
        total_installation_ils=_sum("installation_ils"),
        total_programming_ils=_sum("programming_ils"),
        subtotal_usd=_sum("total_usd"),
        subtotal_ils=total_cost_ils,
        total_customer_price_ils=total_customer_price_ils,
        total_cost_ils=total_cost_ils,
        total_profit_ils=total_profit_ils,
        risk_addition_ils=risk_addition_ils,
        total_quote_ils=total_quote_ils,
        total_vat_ils=total_vat_ils,
        final_total_ils=final_total_ils,
        profit_margin_percent=profit_margin_percent,
    )
    logger.debug(
        "Quotation %s: cost=%.2f profit=%.2f risk=%.2f final=%.2f",
        project.id, total_cost_ils, total_profit_ils, risk_addition_ils, final_total_ils,
        extra={"quotation_id": project.id},
    )
    return calculations


def calculate_quotation(project: QuotationProject) -> QuotationProject:
    """Copy of ``project`` with every item recomputed and fresh calculations."""
    calculations = calculate_quotation_totals(project)
    items = [calculate_item_totals(item, project.parameters) for item in project.items]
    return replace(project, items=items, calculations=calculations)
