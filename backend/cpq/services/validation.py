"""
Pre-calculation validation. The calculation functions never validate; callers
run these first and refuse to trust totals while any message is returned.
"""
from typing import List

from cpq.models.domain import QuotationItem, QuotationParameters


def validate_quotation_item(item: QuotationItem) -> List[str]:
    errors: List[str] = []

    if not item.component_name or not item.component_name.strip():
        errors.append("Item name is required")
    if item.quantity is None or item.quantity <= 0:
        errors.append("Quantity must be greater than 0")
    if item.unit_price_usd is None or item.unit_price_usd < 0:
        errors.append("USD unit price must be non-negative")
    if item.unit_price_ils is None or item.unit_price_ils < 0:
        errors.append("ILS unit price must be non-negative")
    if item.item_markup_percent is not None and item.item_markup_percent < 0:
        errors.append("Markup percent cannot be negative")
    if item.item_type != "labor" and item.labor_subtype is not None:
        errors.append("Labor subtype is only valid for labor items")

    return errors


def validate_quotation_parameters(parameters: QuotationParameters) -> List[str]:
    errors: List[str] = []

    if parameters.rates.usd_to_ils_rate <= 0:
        errors.append("USD to ILS exchange rate must be positive")
    if parameters.rates.eur_to_ils_rate <= 0:
        errors.append("EUR to ILS exchange rate must be positive")
    if parameters.day_work_cost < 0:
        errors.append("Day work cost cannot be negative")
    if parameters.risk_percent < 0:
        errors.append("Risk percent cannot be negative")
    if parameters.vat_rate < 0:
        errors.append("VAT rate cannot be negative")
    if parameters.markup.coefficient <= 0:
        errors.append("Markup must produce a positive profit coefficient")

    return errors
