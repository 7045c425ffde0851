"""
KPI Derivation Test Module

Covers derive_kpis():
- Base floor with no contributing attributes
- Summation of enabled, weighted attributes only
- Idempotence and independence from toggle order
- Default store catalog counters
"""

import itertools

import pytest

from loyalty_backend.models.schemas import AttributeConfig, KPICounters, KPIWeight
from loyalty_backend.services.attribute_catalog import catalog_for_entity, set_attribute_enabled
from loyalty_backend.services.kpi_derivation import base_counters, derive_catalog_kpis, derive_kpis


class TestBaseFloor:
    """Counters never drop below the configured base."""

    def test_empty_catalog_returns_base(self, base_counters):
        """No attributes yields exactly the base floor."""
        assert derive_kpis({}, base=base_counters) == base_counters

    def test_disabled_attributes_contribute_nothing(self, base_counters):
        attributes = {
            'Staff Count': AttributeConfig(enabled=False, kpiWeight=KPIWeight(kpis=3, analytics=2, ai=1)),
        }
        assert derive_kpis(attributes, base=base_counters) == base_counters

    def test_unweighted_attributes_contribute_nothing(self, base_counters):
        """Identity fields and custom attributes have no weight."""
        attributes = {
            'Store ID': AttributeConfig(enabled=True, required=True),
            'Loyalty Notes': AttributeConfig(enabled=True, dataType='text'),
        }
        assert derive_kpis(attributes, base=base_counters) == base_counters

    def test_default_base_comes_from_settings(self):
        assert base_counters() == KPICounters(total=10, analytics=5, ai=3)

    def test_base_is_configurable(self, monkeypatch):
        """KPI_BASE_* environment variables move the floor."""
        monkeypatch.setenv('KPI_BASE_TOTAL', '20')
        assert derive_kpis({}).total == 20


class TestSummation:
    """Enabled attributes add their weights."""

    def test_square_footage_scenario(self, square_footage_catalog, base_counters):
        """Square Footage {3,2,1} on base {10,5,3} gives {13,7,4}."""
        result = derive_catalog_kpis(square_footage_catalog, base=base_counters)
        assert result == KPICounters(total=13, analytics=7, ai=4)

    def test_default_store_catalog(self):
        """Address, Square Footage and Operating Hours are on by default."""
        result = derive_catalog_kpis(catalog_for_entity('store'))
        assert result == KPICounters(total=17, analytics=9, ai=6)

    def test_enabling_attribute_adds_its_weight(self):
        catalog = catalog_for_entity('store')
        before = derive_catalog_kpis(catalog)
        after = derive_catalog_kpis(set_attribute_enabled(catalog, 'Staff Count', True))
        assert after.total - before.total == 3
        assert after.analytics - before.analytics == 2
        assert after.ai - before.ai == 1


@pytest.mark.invariant
class TestDeterminism:
    """Derivation is a pure function of the snapshot."""

    def test_idempotent(self, square_footage_catalog, base_counters):
        first = derive_catalog_kpis(square_footage_catalog, base=base_counters)
        second = derive_catalog_kpis(square_footage_catalog, base=base_counters)
        assert first == second

    def test_toggle_order_does_not_matter(self):
        """Every order of the same toggles converges to the same counters."""
        toggles = [('Staff Count', True), ('Square Footage', False), ('Drive-Thru', True)]
        results = set()
        for order in itertools.permutations(toggles):
            catalog = catalog_for_entity('store')
            for name, enabled in order:
                catalog = set_attribute_enabled(catalog, name, enabled)
            counters = derive_catalog_kpis(catalog)
            results.add((counters.total, counters.analytics, counters.ai))
        assert len(results) == 1

    def test_toggle_off_and_on_restores_counters(self):
        catalog = catalog_for_entity('store')
        original = derive_catalog_kpis(catalog)
        catalog = set_attribute_enabled(catalog, 'Square Footage', False)
        catalog = set_attribute_enabled(catalog, 'Square Footage', True)
        assert derive_catalog_kpis(catalog) == original
