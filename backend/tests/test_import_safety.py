"""
test_import_safety.py — Circular import and import-time side-effect checks.

Verifies that:
  1. Every cpq module imports cleanly (no circular imports, no DB connection
     made at import time even without DATABASE_URL).
  2. The pure pricing modules do not pull in the web or database layers.

No database, network, or external services are required.
"""

import importlib
import sys

import pytest

CPQ_MODULES = [
    "cpq.config",
    "cpq.errors",
    "cpq.db",
    "cpq.models.domain",
    "cpq.models.orm_models",
    "cpq.models.schemas",
    "cpq.services.rate_cache",
    "cpq.services.currency_engine",
    "cpq.services.quotation_engine",
    "cpq.services.renumbering",
    "cpq.services.assembly_pricing",
    "cpq.services.quotation_statistics",
    "cpq.services.validation",
    "cpq.services.formatting",
    "cpq.services.bulk_operations",
    "cpq.services.activity_log",
    "cpq.services.logging_config",
    "cpq.services.middleware",
    "cpq.api.quotation_routes",
    "cpq.api.catalog_routes",
    "cpq.api.bulk_operation_routes",
    "cpq.main",
]

PURE_MODULES = [
    "cpq.models.domain",
    "cpq.services.quotation_engine",
    "cpq.services.renumbering",
    "cpq.services.validation",
    "cpq.services.formatting",
]


@pytest.mark.parametrize("module_name", CPQ_MODULES)
def test_module_imports(module_name):
    module = importlib.import_module(module_name)
    assert module is not None


@pytest.mark.parametrize("module_name", PURE_MODULES)
def test_pure_module_has_no_web_or_db_imports(module_name):
    module = importlib.import_module(module_name)
    source_names = set(vars(module))
    assert "fastapi" not in source_names
    assert "sqlalchemy" not in source_names
    assert not hasattr(module, "AsyncSession")


def test_app_routes_registered():
    from cpq.main import app

    paths = set(app.openapi()["paths"])
    for path in (
        "/health",
        "/api/quotations/calculate",
        "/api/quotations/renumber",
        "/api/quotations/statistics",
        "/api/catalog/normalize-prices",
        "/api/catalog/assembly-pricing",
        "/api/bulk-operations",
        "/api/bulk-operations/{operation_id}",
        "/api/bulk-operations/active",
        "/api/bulk-operations/cleanup",
        "/api/settings/pricing",
        "/api/settings/pricing/refresh",
    ):
        assert path in paths, f"missing route {path}"
    assert "cpq.main" in sys.modules
