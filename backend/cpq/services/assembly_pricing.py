"""Assembly pricing — sums component lines in their original currency, then converts."""
import logging
from typing import List, Optional

from cpq.models.domain import (
    Assembly,
    AssemblyComponent,
    AssemblyPricing,
    CurrencyBreakdown,
    ExchangeRates,
)
from cpq.services.currency_engine import resolve_original_price, round_money, safe_div
from cpq.services.rate_cache import rate_cache

logger = logging.getLogger("cpq-pricing")


def calculate_assembly_pricing(
    assembly: Assembly,
    rates: Optional[ExchangeRates] = None,
) -> AssemblyPricing:
    """
    Total an assembly in all three currencies.

    Each line is the component's resolved original price × quantity (the
    declared currency and original cost, else whichever stored column the
    legacy detection picks) and is converted through the ILS hub. Lines whose
    component was deleted are counted as missing and skipped.
    """
    rates = rates or rate_cache.get_global_exchange_rates()
    usd_rate, eur_rate = rates.usd_to_ils_rate, rates.eur_to_ils_rate

    total_ils = total_usd = total_eur = 0.0
    counts = {"ILS": 0, "USD": 0, "EUR": 0}
    sums = {"ILS": 0.0, "USD": 0.0, "EUR": 0.0}
    component_count = missing = 0

    for line in assembly.components:
        component = line.component
        if component is None:
            missing += 1
            continue
        component_count += 1

        currency, unit = resolve_original_price(component)
        line_total = unit * line.quantity
        counts[currency] += 1
        sums[currency] += line_total

        if currency == "ILS":
            ils = line_total
        elif currency == "USD":
            ils = line_total * usd_rate
        else:
            ils = line_total * eur_rate
        total_ils += ils
        total_usd += line_total if currency == "USD" else safe_div(ils, usd_rate)
        total_eur += line_total if currency == "EUR" else safe_div(ils, eur_rate)

    if missing:
        logger.warning(f"Assembly {assembly.name!r}: {missing} component(s) no longer in catalog")

    return AssemblyPricing(
        total_cost_ils=round_money(total_ils),
        total_cost_usd=round_money(total_usd),
        total_cost_eur=round_money(total_eur),
        component_count=component_count,
        missing_component_count=missing,
        breakdown={
            currency: CurrencyBreakdown(count=counts[currency], total=round_money(sums[currency]))
            for currency in ("ILS", "USD", "EUR")
        },
    )


def validate_assembly(name: str, components: List[AssemblyComponent]) -> List[str]:
    errors: List[str] = []
    if not name or not name.strip():
        errors.append("Assembly name is required")
    if not components:
        errors.append("An assembly needs at least one component")
    elif any(c.quantity <= 0 for c in components):
        errors.append("Component quantities must be greater than 0")
    return errors
