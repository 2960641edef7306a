"""
Currency Normalizer — three-currency pricing (ILS / USD / EUR) for catalog
components and quotation items.

ILS is the hub currency: USD = ILS / usd_rate, EUR = ILS / eur_rate, and
USD <-> EUR always goes through ILS using both rates.

A price record keeps one (currency, original_cost) pair that is never
re-derived. The two other currency columns are derived from that pair every
time rates change; deriving from a previously rounded column would let
rounding error creep into the original price on each rate change.
"""
import logging
from dataclasses import replace
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Tuple

from cpq.models.domain import (
    ComponentPrice,
    Currency,
    CurrencyPrices,
    ExchangeRates,
    coerce_currency,
)
from cpq.services.rate_cache import RateSource, rate_cache

logger = logging.getLogger("cpq-pricing")

_CENT = Decimal("0.01")


def round_money(value: float) -> float:
    """Round to 2 dp, half away from zero (2.675 → 2.68, -2.675 → -2.68)."""
    return float(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def safe_div(numerator: float, denominator: float) -> float:
    if not denominator:
        return 0.0
    return numerator / denominator


def convert_usd_to_ils(usd_amount: float, exchange_rate: float) -> float:
    return usd_amount * exchange_rate


def convert_eur_to_ils(eur_amount: float, exchange_rate: float) -> float:
    return eur_amount * exchange_rate


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------

def detect_original_currency(
    amount_ils: Optional[float] = None,
    amount_usd: Optional[float] = None,
    amount_eur: Optional[float] = None,
    declared_currency: Optional[str] = None,
) -> Tuple[Currency, float]:
    """
    Work out which stored column holds the source price.

    1. The declared currency wins when its column is present and positive.
    2. Otherwise the first positive column in ILS → USD → EUR order
       (legacy rows without a currency tag).
    3. Nothing usable → ("ILS", 0.0).
    """
    amounts = {"ILS": amount_ils, "USD": amount_usd, "EUR": amount_eur}

    declared = coerce_currency(declared_currency)
    if declared is not None:
        value = amounts[declared]
        if value and value > 0:
            return declared, value

    for currency in ("ILS", "USD", "EUR"):
        value = amounts[currency]
        if value and value > 0:
            return currency, value

    return "ILS", 0.0


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------

def convert_to_all_currencies(
    amount: float,
    currency: str,
    rates: ExchangeRates,
) -> CurrencyPrices:
    """
    Express ``amount`` (in ``currency``) in all three currencies.

    The column matching ``currency`` carries ``amount`` unchanged; the other
    two are derived and rounded to 2 dp. A zero rate yields 0.0 for any
    column that would divide by it.
    """
    currency = coerce_currency(currency)
    usd_rate = rates.usd_to_ils_rate
    eur_rate = rates.eur_to_ils_rate

    if currency == "ILS":
        unit_ils = amount
        unit_usd = round_money(safe_div(amount, usd_rate))
        unit_eur = round_money(safe_div(amount, eur_rate))
    elif currency == "USD":
        unit_usd = amount
        unit_ils = round_money(amount * usd_rate)
        unit_eur = round_money(safe_div(amount * usd_rate, eur_rate))
    else:
        unit_eur = amount
        unit_ils = round_money(amount * eur_rate)
        unit_usd = round_money(safe_div(amount * eur_rate, usd_rate))

    return CurrencyPrices(
        unit_cost_ils=unit_ils,
        unit_cost_usd=unit_usd,
        unit_cost_eur=unit_eur,
        currency=currency,
        original_cost=amount,
    )


def resolve_original_price(component: ComponentPrice) -> Tuple[Currency, float]:
    """(currency, amount) that a component's price must always be derived from."""
    declared = coerce_currency(component.currency)
    if declared is not None and component.original_cost:
        return declared, component.original_cost

    currency, amount = detect_original_currency(
        component.unit_cost_ils,
        component.unit_cost_usd,
        component.unit_cost_eur,
        declared,
    )
    return currency, component.original_cost or amount


def normalize_component_prices(
    component: ComponentPrice,
    rates: Optional[ExchangeRates] = None,
    rate_source: Optional[RateSource] = None,
) -> CurrencyPrices:
    """
    Fill all three currency columns of a component from its original price.

    When ``rates`` is omitted the process-wide rate cache (or the supplied
    ``rate_source``) is consulted; this is the only global read in the engine.
    """
    if rates is None:
        rates = (rate_source or rate_cache).get_global_exchange_rates()

    currency, amount = resolve_original_price(component)
    prices = convert_to_all_currencies(amount, currency, rates)
    logger.debug(
        "normalized %s: %s %.2f → ILS %.2f / USD %.2f / EUR %.2f",
        component.name or "component", currency, amount,
        prices.unit_cost_ils, prices.unit_cost_usd, prices.unit_cost_eur,
    )
    return prices


def apply_rate_change(prices: CurrencyPrices, new_rates: ExchangeRates) -> CurrencyPrices:
    """Re-derive a price record after a rate change, starting from its original pair."""
    return convert_to_all_currencies(prices.original_cost, prices.currency, new_rates)


def component_from_prices(component: ComponentPrice, prices: CurrencyPrices) -> ComponentPrice:
    """Copy of ``component`` with its price columns replaced by ``prices``."""
    return replace(
        component,
        unit_cost_ils=prices.unit_cost_ils,
        unit_cost_usd=prices.unit_cost_usd,
        unit_cost_eur=prices.unit_cost_eur,
        currency=prices.currency,
        original_cost=prices.original_cost,
    )
