"""
test_quotation_statistics.py — Tests for the quotation BI breakdown, the
validation helpers and display formatting.

The mixed project fixture costs 10 000 ILS: hardware 6000, software 1000,
engineering 2000, commissioning 1000; ratio markup 0.75.
"""

from dataclasses import replace

import pytest

from cpq.errors import MissingParametersError
from cpq.models.domain import (
    ExchangeRates,
    PercentMarkup,
    QuotationItem,
    QuotationParameters,
    RatioMarkup,
)
from cpq.services.formatting import format_currency, format_number, format_percent
from cpq.services.quotation_engine import calculate_quotation
from cpq.services.quotation_statistics import (
    calculate_quotation_statistics,
    compare_quotation_statistics,
    format_ratio,
    parse_ratio,
)
from cpq.services.validation import validate_quotation_item, validate_quotation_parameters


# ===========================================================================
# Class 1: Statistics
# ===========================================================================

class TestQuotationStatistics:

    def test_type_percentages(self, mixed_project):
        stats = calculate_quotation_statistics(calculate_quotation(mixed_project))
        assert stats["hardware_percent"] == 60.0
        assert stats["software_percent"] == 10.0
        assert stats["labor_percent"] == 30.0
        assert stats["engineering_percent"] == 20.0
        assert stats["commissioning_percent"] == 10.0
        assert stats["installation_percent"] == 0.0
        assert stats["material_percent"] == 70.0

    def test_ratio_string(self, mixed_project):
        stats = calculate_quotation_statistics(calculate_quotation(mixed_project))
        assert stats["hw_engineering_commissioning_ratio"] == "60.0:20.0:10.0"
        assert parse_ratio(stats["hw_engineering_commissioning_ratio"]) == [60.0, 20.0, 10.0]

    def test_component_counts(self, mixed_project):
        counts = calculate_quotation_statistics(calculate_quotation(mixed_project))["component_counts"]
        assert counts == {"hardware": 1, "software": 1, "labor": 2, "total": 4}

    def test_profit_by_type(self, mixed_project):
        """Hardware 6000 / 0.75 = 8000 → profit 2000, margin 25 %; labor sold at cost."""
        profit = calculate_quotation_statistics(calculate_quotation(mixed_project))["profit_by_type"]
        assert profit["hardware"] == {"profit": 2000.0, "margin": 25.0}
        assert profit["labor"] == {"profit": 0.0, "margin": 0.0}
        assert profit["software"]["profit"] == pytest.approx(333.33, abs=0.01)

    def test_profit_scales_with_system_quantity(self, mixed_project):
        """sys-a × 2: hardware cost 12 000 → price 16 000 → profit 4000; software 2000 → 666.67."""
        systems = [replace(mixed_project.systems[0], quantity=2), mixed_project.systems[1]]
        project = calculate_quotation(replace(mixed_project, systems=systems))
        profit = calculate_quotation_statistics(project)["profit_by_type"]
        assert profit["hardware"] == {"profit": 4000.0, "margin": 25.0}
        assert profit["software"]["profit"] == pytest.approx(666.67, abs=0.01)
        assert profit["labor"]["profit"] == 0.0

    def test_items_outside_any_system_add_no_profit(self, mixed_project):
        orphan = QuotationItem(id="i9", system_id="sys-gone", component_name="Spare gripper",
                               item_type="hardware", unit_price_ils=500.0)
        project = calculate_quotation(replace(mixed_project, items=mixed_project.items + [orphan]))
        stats = calculate_quotation_statistics(project)
        assert stats["profit_by_type"]["hardware"] == {"profit": 2000.0, "margin": 25.0}
        assert stats["component_counts"]["hardware"] == 2

    def test_requires_calculations(self, mixed_project):
        with pytest.raises(ValueError, match="calculated"):
            calculate_quotation_statistics(mixed_project)

    def test_requires_parameters(self, mixed_project):
        calculated = calculate_quotation(mixed_project)
        calculated.parameters = None
        with pytest.raises(MissingParametersError):
            calculate_quotation_statistics(calculated)

    def test_compare(self, mixed_project):
        current = calculate_quotation_statistics(calculate_quotation(mixed_project))
        mixed_project.items = mixed_project.items[:2]
        previous = calculate_quotation_statistics(calculate_quotation(mixed_project))
        delta = compare_quotation_statistics(current, previous)
        assert delta["total_components_delta"] == 2
        assert delta["labor_percent_delta"] == 30.0

    def test_format_ratio(self):
        assert format_ratio([50, 25.55, 0]) == "50.0:25.6:0.0"


# ===========================================================================
# Class 2: Validation
# ===========================================================================

class TestValidation:

    def test_valid_item(self):
        item = QuotationItem(id="i", system_id="s", component_name="Robot", unit_price_ils=10.0)
        assert validate_quotation_item(item) == []

    def test_item_messages(self):
        item = QuotationItem(
            id="i", system_id="s", component_name="", quantity=0,
            unit_price_usd=-1.0, unit_price_ils=-1.0, item_markup_percent=-5.0,
            labor_subtype="engineering",
        )
        assert validate_quotation_item(item) == [
            "Item name is required",
            "Quantity must be greater than 0",
            "USD unit price must be non-negative",
            "ILS unit price must be non-negative",
            "Markup percent cannot be negative",
            "Labor subtype is only valid for labor items",
        ]

    def test_valid_parameters(self, ratio_parameters):
        assert validate_quotation_parameters(ratio_parameters) == []

    def test_parameter_messages(self):
        params = QuotationParameters(
            rates=ExchangeRates(0.0, -1.0),
            markup=RatioMarkup(0.0),
            day_work_cost=-1.0,
            risk_percent=-1.0,
            vat_rate=-1.0,
        )
        assert validate_quotation_parameters(params) == [
            "USD to ILS exchange rate must be positive",
            "EUR to ILS exchange rate must be positive",
            "Day work cost cannot be negative",
            "Risk percent cannot be negative",
            "VAT rate cannot be negative",
            "Markup must produce a positive profit coefficient",
        ]

    def test_percent_markup_of_minus_100_rejected(self, rates):
        params = QuotationParameters(rates=rates, markup=PercentMarkup(-100.0))
        assert "Markup must produce a positive profit coefficient" in validate_quotation_parameters(params)


# ===========================================================================
# Class 3: Formatting
# ===========================================================================

class TestFormatting:

    def test_format_currency(self):
        assert format_currency(1234.5, "USD") == "$1,234.50"
        assert format_currency(17160, "ILS") == "₪17,160.00"
        assert format_currency(-10, "EUR") == "-€10.00"

    def test_format_number_and_percent(self):
        assert format_number(1234567.891) == "1,234,567.89"
        assert format_number(3.14159, decimals=3) == "3.142"
        assert format_percent(19.43) == "19.4%"
