"""
Quotation statistics — business-intelligence breakdown of a calculated quotation.

Type and labor-subtype shares of the cost subtotal, the HW:Engineering:
Commissioning ratio used in sales reviews, component counts, and profit /
margin per item type. Labor is sold at cost, so its profit is always zero.
"""
import math
from typing import Dict, List

from cpq.errors import MissingParametersError
from cpq.models.domain import QuotationItem, QuotationProject


def _safe_percent(value: float, total: float) -> float:
    return round(value / total * 100, 1) if total > 0 else 0.0


def format_ratio(values: List[float]) -> str:
    return ":".join(f"{v:.1f}" for v in values)


def parse_ratio(ratio: str) -> List[float]:
    return [float(part) for part in ratio.split(":")]


def _profit_for(
    items: List[QuotationItem],
    item_type: str,
    project: QuotationProject,
    quantities: Dict[str, float],
) -> Dict[str, float]:
    # Items outside every system are not part of the totals either
    cost = math.fsum(i.total_price_ils * quantities.get(i.system_id, 0) for i in items)
    if item_type == "labor":
        customer_price = cost
    else:
        customer_price = project.parameters.markup.customer_price(cost)
    profit = customer_price - cost
    margin = profit / customer_price * 100 if customer_price > 0 else 0.0
    return {"profit": round(profit, 2), "margin": round(margin, 1)}


def calculate_quotation_statistics(project: QuotationProject) -> Dict:
    """Requires ``project.calculations`` (run calculate_quotation first)."""
    calc = project.calculations
    if calc is None:
        raise ValueError("Quotation must be calculated before generating statistics")
    if project.parameters is None:
        raise MissingParametersError()

    total = calc.subtotal_ils
    hardware_pct = _safe_percent(calc.total_hardware_ils, total)
    software_pct = _safe_percent(calc.total_software_ils, total)
    labor_pct = _safe_percent(calc.total_labor_ils, total)
    engineering_pct = _safe_percent(calc.total_engineering_ils, total)
    commissioning_pct = _safe_percent(calc.total_commissioning_ils, total)
    installation_pct = _safe_percent(calc.total_installation_ils, total)

    by_type = {t: [i for i in project.items if i.item_type == t] for t in ("hardware", "software", "labor")}
    quantities = {s.id: s.quantity or 1 for s in project.systems or []}

    return {
        "hardware_percent": hardware_pct,
        "software_percent": software_pct,
        "labor_percent": labor_pct,
        "engineering_percent": engineering_pct,
        "commissioning_percent": commissioning_pct,
        "installation_percent": installation_pct,
        "material_percent": _safe_percent(calc.total_hardware_ils + calc.total_software_ils, total),
        "hw_engineering_commissioning_ratio": f"{hardware_pct}:{engineering_pct}:{commissioning_pct}",
        "component_counts": {
            "hardware": len(by_type["hardware"]),
            "software": len(by_type["software"]),
            "labor": len(by_type["labor"]),
            "total": len(project.items),
        },
        "profit_by_type": {
            t: _profit_for(items, t, project, quantities) for t, items in by_type.items()
        },
    }


def compare_quotation_statistics(current: Dict, previous: Dict) -> Dict[str, float]:
    return {
        "hardware_percent_delta": round(current["hardware_percent"] - previous["hardware_percent"], 1),
        "labor_percent_delta": round(current["labor_percent"] - previous["labor_percent"], 1),
        "total_components_delta": current["component_counts"]["total"] - previous["component_counts"]["total"],
    }
