"""
conftest.py — Shared pytest fixtures for the CPQ pricing backend test suite.

Pricing tests are pure unit tests over the domain dataclasses. Database tests
run against an in-memory SQLite database (aiosqlite); each scenario gets a
fresh engine created inside its own event loop.

Import-path bootstrapping:
    The ``backend/`` directory is inserted into sys.path so that all
    ``cpq.*`` imports resolve correctly regardless of where pytest is invoked.
"""

import asyncio
import sys
import os
import pytest

# ---------------------------------------------------------------------------
# Ensure ``backend/`` is on the import path before any cpq imports occur.
# ---------------------------------------------------------------------------
_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

SQLITE_URL = "sqlite+aiosqlite:///:memory:"


# ---------------------------------------------------------------------------
# Pricing parameters
# ---------------------------------------------------------------------------

@pytest.fixture
def rates():
    """USD/ILS = 3.7, EUR/ILS = 4.0 (the documented fallback rates)."""
    from cpq.models.domain import ExchangeRates
    return ExchangeRates(usd_to_ils_rate=3.7, eur_to_ils_rate=4.0)


@pytest.fixture
def ratio_parameters(rates):
    """
    Ratio markup 0.75 (cost / 0.75 → +33.33 %), risk 10 %, VAT 17 % included.
    """
    from cpq.models.domain import QuotationParameters, RatioMarkup
    return QuotationParameters(
        rates=rates,
        markup=RatioMarkup(0.75),
        day_work_cost=1200.0,
        risk_percent=10.0,
        include_vat=True,
        vat_rate=17.0,
    )


# ---------------------------------------------------------------------------
# Sample quotation
# ---------------------------------------------------------------------------

@pytest.fixture
def mixed_project(ratio_parameters):
    """
    Two systems, ILS cost 10 000 in total:
      sys-a (qty 1): robot arm 6000 (hardware), PLC licence 1000 (software)
      sys-b (qty 1): engineering 2 days × 1000, commissioning 1 day × 1000
    """
    from cpq.models.domain import QuotationItem, QuotationProject, QuotationSystem
    systems = [
        QuotationSystem(id="sys-a", name="Palletizing cell", order=1),
        QuotationSystem(id="sys-b", name="Integration", order=2),
    ]
    items = [
        QuotationItem(id="i1", system_id="sys-a", system_order=1, item_order=1,
                      component_name="Robot arm", item_type="hardware",
                      unit_price_ils=6000.0, unit_price_usd=1621.62),
        QuotationItem(id="i2", system_id="sys-a", system_order=1, item_order=2,
                      component_name="PLC licence", item_type="software",
                      unit_price_ils=1000.0, unit_price_usd=270.27),
        QuotationItem(id="i3", system_id="sys-b", system_order=2, item_order=1,
                      component_name="Engineering", item_type="labor",
                      labor_subtype="engineering", quantity=2, unit_price_ils=1000.0),
        QuotationItem(id="i4", system_id="sys-b", system_order=2, item_order=2,
                      component_name="Commissioning", item_type="labor",
                      labor_subtype="commissioning", unit_price_ils=1000.0),
    ]
    return QuotationProject(id="q-1", name="Line 3", customer_name="Acme Foods",
                            systems=systems, items=items, parameters=ratio_parameters)


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
def run_with_db():
    """
    Run ``scenario(session_factory)`` against a fresh in-memory database and
    return its result. Tables are created from the ORM metadata.
    """
    def _run(scenario):
        async def _main():
            from cpq.db import Base, make_engine, make_session_factory
            from cpq.models import orm_models  # noqa: F401

            engine = make_engine(SQLITE_URL)
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            try:
                return await scenario(make_session_factory(engine))
            finally:
                await engine.dispose()

        return asyncio.run(_main())
    return _run
