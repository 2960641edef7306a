"""Pydantic request/response schemas for the HTTP layer, with domain converters."""
from dataclasses import asdict
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from cpq.models.domain import (
    Assembly,
    AssemblyComponent,
    ComponentPrice,
    ExchangeRates,
    PercentMarkup,
    QuotationCalculations,
    QuotationItem,
    QuotationParameters,
    QuotationProject,
    QuotationSystem,
    RatioMarkup,
)


# ── Quotation inputs ─────────────────────────────────────────────────────────

class ExchangeRatesIn(BaseModel):
    usd_to_ils_rate: float
    eur_to_ils_rate: float

    def to_domain(self) -> ExchangeRates:
        return ExchangeRates(self.usd_to_ils_rate, self.eur_to_ils_rate)


class ParametersIn(BaseModel):
    rates: ExchangeRatesIn
    markup_type: Literal["percent", "ratio"] = "ratio"
    markup_value: float = 0.75
    day_work_cost: float = 1200.0
    risk_percent: float = 10.0
    include_vat: bool = True
    vat_rate: float = 17.0
    payment_terms: str = ""
    delivery_time: str = ""

    def to_domain(self) -> QuotationParameters:
        markup = (
            PercentMarkup(self.markup_value) if self.markup_type == "percent"
            else RatioMarkup(self.markup_value)
        )
        return QuotationParameters(
            rates=self.rates.to_domain(),
            markup=markup,
            day_work_cost=self.day_work_cost,
            risk_percent=self.risk_percent,
            include_vat=self.include_vat,
            vat_rate=self.vat_rate,
            payment_terms=self.payment_terms,
            delivery_time=self.delivery_time,
        )


class SystemIn(BaseModel):
    id: str
    name: str = ""
    description: str = ""
    order: int = 1
    quantity: float = 1

    def to_domain(self) -> QuotationSystem:
        return QuotationSystem(**self.model_dump())


class ItemIn(BaseModel):
    id: str
    system_id: str
    system_order: int = 1
    item_order: int = 1
    component_name: str = ""
    component_category: str = ""
    item_type: Literal["hardware", "software", "labor"] = "hardware"
    labor_subtype: Optional[Literal["engineering", "commissioning", "installation", "programming"]] = None
    quantity: float = Field(1, ge=0)
    unit_price_usd: float = 0.0
    unit_price_ils: float = 0.0
    unit_price_eur: Optional[float] = None
    original_currency: Optional[Literal["ILS", "USD", "EUR"]] = None
    original_cost: Optional[float] = None
    item_markup_percent: float = 0.0
    component_id: Optional[str] = None
    notes: str = ""

    def to_domain(self) -> QuotationItem:
        return QuotationItem(**self.model_dump())


class QuotationIn(BaseModel):
    id: str
    name: str = ""
    customer_name: str = ""
    description: str = ""
    status: Literal["draft", "sent", "won", "lost"] = "draft"
    systems: List[SystemIn] = []
    items: List[ItemIn] = []
    parameters: Optional[ParametersIn] = None

    def to_domain(self) -> QuotationProject:
        return QuotationProject(
            id=self.id,
            name=self.name,
            customer_name=self.customer_name,
            description=self.description,
            status=self.status,
            systems=[s.to_domain() for s in self.systems],
            items=[i.to_domain() for i in self.items],
            parameters=self.parameters.to_domain() if self.parameters else None,
        )


class RenumberIn(BaseModel):
    systems: List[SystemIn] = []
    items: List[ItemIn] = []


# ── Catalog inputs ───────────────────────────────────────────────────────────

class ComponentPriceIn(BaseModel):
    name: str = ""
    unit_cost_ils: Optional[float] = None
    unit_cost_usd: Optional[float] = None
    unit_cost_eur: Optional[float] = None
    currency: Optional[Literal["ILS", "NIS", "USD", "EUR"]] = None
    original_cost: Optional[float] = None

    def to_domain(self) -> ComponentPrice:
        return ComponentPrice(**self.model_dump())


class NormalizePricesIn(BaseModel):
    component: ComponentPriceIn
    rates: Optional[ExchangeRatesIn] = None


class AssemblyLineIn(BaseModel):
    component: Optional[ComponentPriceIn] = None
    quantity: float = 1


class AssemblyIn(BaseModel):
    name: str
    components: List[AssemblyLineIn] = []
    rates: Optional[ExchangeRatesIn] = None

    def to_domain(self) -> Assembly:
        return Assembly(
            name=self.name,
            components=[
                AssemblyComponent(
                    component=line.component.to_domain() if line.component else None,
                    quantity=line.quantity,
                )
                for line in self.components
            ],
        )


# ── Bulk operations ──────────────────────────────────────────────────────────

class BulkOperationStart(BaseModel):
    operation_id: str = Field(..., min_length=1)
    team_id: str = Field(..., min_length=1)
    operation_type: Literal["import", "delete", "update"]
    ttl_seconds: Optional[int] = Field(None, gt=0)


# ── Serialisers ──────────────────────────────────────────────────────────────

def item_out(item: QuotationItem) -> dict:
    data = asdict(item)
    data["display_number"] = item.display_number
    return data


def calculations_out(calculations: QuotationCalculations) -> dict:
    return asdict(calculations)
