'''
Loyalty Onboarding Backend Test Suite

Test Modules:
-------------
- test_kpi_derivation.py: KPI counter derivation
  - Base floor {10, 5, 3} with no contributing attributes
  - Enabled, weighted attributes only
  - Idempotence and toggle-order independence

- test_attribute_catalog.py: Entity attribute sets and toggles
- test_earning_rules.py: Partial merge, default filling, soft disable, ranges
- test_value_program.py: Value-type variants, hybrid strategies, tiers
- test_queues.py: Queues, signal templates, template materialization
- test_signal_builder.py: Five-step builder navigation and save/cancel
- test_organization.py: Business hierarchy and customer types
- test_store.py: Single-writer store, KPI recompute, export/load
- test_api.py: HTTP surface and error status mapping

Running Tests:
--------------
    pip install -e ".[test]"
    pytest -v
    pytest -m "not api"

Configuration:
--------------
See conftest.py for shared fixtures and test configuration.
'''

__all__ = []
