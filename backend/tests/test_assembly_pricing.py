"""
test_assembly_pricing.py — Tests for assembly totals across ILS / USD / EUR.

Rates: USD/ILS = 3.7, EUR/ILS = 4.0.
"""

import pytest

from cpq.models.domain import Assembly, AssemblyComponent, ComponentPrice, CurrencyBreakdown
from cpq.services.assembly_pricing import calculate_assembly_pricing, validate_assembly


@pytest.fixture
def gripper_assembly():
    """
    2 × 100 ILS bracket, 3 × 10 USD sensor, 1 deleted component:
        ILS = 200 + 30 × 3.7          = 311.00
        USD = 200 / 3.7 + 30          =  84.05
        EUR = 200 / 4.0 + 111 / 4.0   =  77.75
    """
    return Assembly(
        name="Vacuum gripper",
        components=[
            AssemblyComponent(ComponentPrice(unit_cost_ils=100.0, currency="ILS", original_cost=100.0, name="Bracket"), 2),
            AssemblyComponent(ComponentPrice(unit_cost_usd=10.0, currency="USD", original_cost=10.0, name="Sensor"), 3),
            AssemblyComponent(None, 1),
        ],
    )


class TestAssemblyPricing:

    def test_totals(self, gripper_assembly, rates):
        pricing = calculate_assembly_pricing(gripper_assembly, rates)
        assert pricing.total_cost_ils == 311.0
        assert pricing.total_cost_usd == 84.05
        assert pricing.total_cost_eur == 77.75

    def test_counts_and_breakdown(self, gripper_assembly, rates):
        pricing = calculate_assembly_pricing(gripper_assembly, rates)
        assert pricing.component_count == 2
        assert pricing.missing_component_count == 1
        assert pricing.breakdown["ILS"] == CurrencyBreakdown(count=1, total=200.0)
        assert pricing.breakdown["USD"] == CurrencyBreakdown(count=1, total=30.0)
        assert pricing.breakdown["EUR"] == CurrencyBreakdown(count=0, total=0.0)

    def test_untagged_component_without_original_cost_uses_ils(self, rates):
        assembly = Assembly(name="Legacy", components=[AssemblyComponent(ComponentPrice(unit_cost_ils=40.0), 2)])
        pricing = calculate_assembly_pricing(assembly, rates)
        assert pricing.total_cost_ils == 80.0
        assert pricing.breakdown["ILS"].count == 1

    def test_tagged_component_without_original_cost_reads_its_own_column(self, rates):
        """USD-tagged, 100 USD / 370 ILS stored, no original cost → 100 USD, not 370 USD."""
        assembly = Assembly(name="Camera", components=[
            AssemblyComponent(ComponentPrice(unit_cost_ils=370.0, unit_cost_usd=100.0, currency="USD"), 1),
        ])
        pricing = calculate_assembly_pricing(assembly, rates)
        assert pricing.total_cost_ils == 370.0
        assert pricing.total_cost_usd == 100.0
        assert pricing.total_cost_eur == 92.5
        assert pricing.breakdown["USD"] == CurrencyBreakdown(count=1, total=100.0)
        assert pricing.breakdown["ILS"].count == 0

    def test_untagged_usd_only_component(self, rates):
        """2 × 100 USD, no tag: ILS = 740, EUR = 740 / 4.0 = 185."""
        assembly = Assembly(name="Legacy USD", components=[
            AssemblyComponent(ComponentPrice(unit_cost_usd=100.0), 2),
        ])
        pricing = calculate_assembly_pricing(assembly, rates)
        assert pricing.total_cost_ils == 740.0
        assert pricing.total_cost_usd == 200.0
        assert pricing.total_cost_eur == 185.0
        assert pricing.breakdown["USD"] == CurrencyBreakdown(count=1, total=200.0)

    def test_eur_component(self, rates):
        assembly = Assembly(name="Drive", components=[
            AssemblyComponent(ComponentPrice(currency="EUR", original_cost=25.0), 4),
        ])
        pricing = calculate_assembly_pricing(assembly, rates)
        assert pricing.total_cost_eur == 100.0
        assert pricing.total_cost_ils == 400.0
        assert pricing.total_cost_usd == 108.11

    def test_empty_assembly(self, rates):
        pricing = calculate_assembly_pricing(Assembly(name="Empty"), rates)
        assert pricing.total_cost_ils == 0.0
        assert pricing.component_count == 0


class TestValidateAssembly:

    def test_valid(self):
        assert validate_assembly("Cell", [AssemblyComponent(ComponentPrice(), 1)]) == []

    def test_name_required(self):
        assert "Assembly name is required" in validate_assembly("  ", [AssemblyComponent(None, 1)])

    def test_needs_components(self):
        assert validate_assembly("Cell", []) == ["An assembly needs at least one component"]

    def test_quantities_positive(self):
        errors = validate_assembly("Cell", [AssemblyComponent(ComponentPrice(), 0)])
        assert errors == ["Component quantities must be greater than 0"]
