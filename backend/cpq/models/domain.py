"""
Domain types for the quotation pricing engine.

Plain dataclasses, no persistence. Every engine function takes these as input
and returns new instances (dataclasses.replace) rather than mutating them.
All monetary values are ILS unless the field name says otherwise.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional, Union

Currency = Literal["ILS", "USD", "EUR"]
ItemType = Literal["hardware", "software", "labor"]
LaborSubtype = Literal["engineering", "commissioning", "installation", "programming"]

CURRENCIES: tuple = ("ILS", "USD", "EUR")
ITEM_TYPES: tuple = ("hardware", "software", "labor")
LABOR_SUBTYPES: tuple = ("engineering", "commissioning", "installation", "programming")

# Legacy records tag the shekel as "NIS"
_CURRENCY_ALIASES = {"NIS": "ILS"}


def coerce_currency(value: Optional[str]) -> Optional[Currency]:
    """Normalise a currency tag ("NIS" → "ILS"); None passes through."""
    if value is None:
        return None
    tag = _CURRENCY_ALIASES.get(value.upper(), value.upper())
    if tag not in CURRENCIES:
        raise ValueError(f"Unsupported currency: {value!r}")
    return tag


def generate_display_number(system_order: int, item_order: int) -> str:
    return f"{system_order}.{item_order}"


# ── Exchange rates ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ExchangeRates:
    usd_to_ils_rate: float
    eur_to_ils_rate: float


# ── Markup policies ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PercentMarkup:
    """Percentage over cost: customer = cost × (1 + percent/100)."""
    percent: float

    @property
    def coefficient(self) -> float:
        base = 1.0 + self.percent / 100.0
        return 1.0 / base if base > 0 else 0.0

    def customer_price(self, cost: float) -> float:
        coefficient = self.coefficient
        if coefficient <= 0:
            return cost
        return cost / coefficient


@dataclass(frozen=True)
class RatioMarkup:
    """Cost-to-price ratio: customer = cost / ratio (0.75 → +33.33 %)."""
    ratio: float

    @property
    def coefficient(self) -> float:
        return self.ratio

    def customer_price(self, cost: float) -> float:
        if self.ratio <= 0:
            return cost
        return cost / self.ratio


MarkupPolicy = Union[PercentMarkup, RatioMarkup]


# ── Quotation inputs ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class QuotationParameters:
    rates: ExchangeRates
    markup: MarkupPolicy
    day_work_cost: float = 1200.0
    risk_percent: float = 10.0
    include_vat: bool = True
    vat_rate: float = 17.0
    payment_terms: str = ""
    delivery_time: str = ""


@dataclass
class QuotationSystem:
    id: str
    name: str = ""
    description: str = ""
    order: int = 1
    quantity: float = 1


@dataclass
class QuotationItem:
    id: str
    system_id: str
    system_order: int = 1
    item_order: int = 1
    component_name: str = ""
    component_category: str = ""
    item_type: ItemType = "hardware"
    labor_subtype: Optional[LaborSubtype] = None
    quantity: float = 1
    unit_price_usd: float = 0.0
    unit_price_ils: float = 0.0
    unit_price_eur: Optional[float] = None
    original_currency: Optional[Currency] = None
    original_cost: Optional[float] = None
    item_markup_percent: float = 0.0
    total_price_usd: float = 0.0
    total_price_ils: float = 0.0
    customer_price_ils: float = 0.0
    component_id: Optional[str] = None
    notes: str = ""

    @property
    def display_number(self) -> str:
        return generate_display_number(self.system_order, self.item_order)


# ── Engine outputs ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CurrencyPrices:
    unit_cost_ils: float
    unit_cost_usd: float
    unit_cost_eur: float
    currency: Currency
    original_cost: float

    def amount_in(self, currency: Currency) -> float:
        return {
            "ILS": self.unit_cost_ils,
            "USD": self.unit_cost_usd,
            "EUR": self.unit_cost_eur,
        }[currency]


@dataclass(frozen=True)
class SystemTotals:
    system_id: str
    system_name: str
    total_usd: float = 0.0
    total_ils: float = 0.0
    hardware_usd: float = 0.0
    hardware_ils: float = 0.0
    software_usd: float = 0.0
    software_ils: float = 0.0
    labor_usd: float = 0.0
    labor_ils: float = 0.0
    engineering_ils: float = 0.0
    commissioning_ils: float = 0.0
    installation_ils: float = 0.0
    programming_ils: float = 0.0
    item_count: int = 0


@dataclass(frozen=True)
class QuotationCalculations:
    total_hardware_usd: float = 0.0
    total_hardware_ils: float = 0.0
    total_software_usd: float = 0.0
    total_software_ils: float = 0.0
    total_labor_usd: float = 0.0
    total_labor_ils: float = 0.0
    total_engineering_ils: float = 0.0
    total_commissioning_ils: float = 0.0
    total_installation_ils: float = 0.0
    total_programming_ils: float = 0.0
    subtotal_usd: float = 0.0
    subtotal_ils: float = 0.0
    total_customer_price_ils: float = 0.0
    total_cost_ils: float = 0.0
    total_profit_ils: float = 0.0
    risk_addition_ils: float = 0.0
    total_quote_ils: float = 0.0
    total_vat_ils: float = 0.0
    final_total_ils: float = 0.0
    profit_margin_percent: float = 0.0

    @classmethod
    def zero(cls) -> "QuotationCalculations":
        return cls()


@dataclass
class QuotationProject:
    id: str
    name: str = ""
    customer_name: str = ""
    description: str = ""
    status: Literal["draft", "sent", "won", "lost"] = "draft"
    systems: List[QuotationSystem] = field(default_factory=list)
    items: List[QuotationItem] = field(default_factory=list)
    parameters: Optional[QuotationParameters] = None
    calculations: Optional[QuotationCalculations] = None


# ── Catalog / assemblies ──────────────────────────────────────────────────────

@dataclass
class ComponentPrice:
    """A catalog component's stored price columns, any of which may be empty."""
    unit_cost_ils: Optional[float] = None
    unit_cost_usd: Optional[float] = None
    unit_cost_eur: Optional[float] = None
    currency: Optional[Currency] = None
    original_cost: Optional[float] = None
    name: str = ""


@dataclass
class AssemblyComponent:
    component: Optional[ComponentPrice]
    quantity: float = 1


@dataclass
class Assembly:
    name: str
    components: List[AssemblyComponent] = field(default_factory=list)


@dataclass(frozen=True)
class CurrencyBreakdown:
    count: int = 0
    total: float = 0.0


@dataclass(frozen=True)
class AssemblyPricing:
    total_cost_ils: float
    total_cost_usd: float
    total_cost_eur: float
    component_count: int
    missing_component_count: int
    breakdown: dict
