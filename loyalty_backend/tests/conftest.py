"""
Pytest Configuration and Shared Fixtures for the Loyalty Onboarding Backend.

This module provides fixtures and configuration for all backend tests:
- Async API tests through httpx.AsyncClient + ASGITransport (pytest-asyncio)
- A fresh OnboardingStore per test, injected via dependency override
- Settings isolation: the get_settings() cache is cleared around every test
  so environment overrides (monkeypatch.setenv) take effect
- Sample attribute catalogs, earning rules and signal templates

Test Coverage Map:
- test_kpi_derivation: base floor, summation, idempotence, order independence
- test_attribute_catalog: entity sets, toggles, required attributes
- test_earning_rules: partial merge, default filling, soft disable, ranges
- test_value_program: variants, hybrid strategies, tiers, tiering mode
- test_queues: queue and signal collections, template materialization
- test_signal_builder: wizard navigation, save/cancel contract
- test_organization: hierarchy levels and customer types
- test_store: single-writer store, KPI recompute, export/load
- test_api: HTTP surface and error mapping
"""

from typing import Any, AsyncGenerator, Dict, Generator

import httpx
import pytest
import pytest_asyncio

from loyalty_backend.core.config import get_settings
from loyalty_backend.core.dependencies import get_store_dependency
from loyalty_backend.core.store import OnboardingStore
from loyalty_backend.main import app
from loyalty_backend.models.schemas import (
    AttributeCatalog,
    AttributeConfig,
    KPICounters,
    KPIWeight,
)
from loyalty_backend.services.earning_rules import default_earning_rules


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """
    Configure custom pytest markers for test organization.

    Custom markers defined:
    - api: Tests driving the FastAPI app over ASGI
    - invariant: Property-style tests of merge and derivation guarantees

    Usage:
        pytest -m "not api"
        pytest -m invariant
    """
    config.addinivalue_line(
        'markers',
        'api: marks tests that exercise the HTTP surface'
    )
    config.addinivalue_line(
        'markers',
        'invariant: marks tests asserting merge/derivation guarantees'
    )


# ============================================================
# SETTINGS ISOLATION
# ============================================================

@pytest.fixture(autouse=True)
def fresh_settings() -> Generator[None, None, None]:
    """
    Clear the cached Settings before and after each test.

    Tests that need a policy switch set the environment variable with
    monkeypatch and read settings afresh.
    """
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def enforce_unique_names(monkeypatch) -> None:
    """Turn on tier and customer-type name uniqueness."""
    monkeypatch.setenv('ENFORCE_UNIQUE_TIER_NAMES', 'true')
    monkeypatch.setenv('ENFORCE_UNIQUE_CUSTOMER_TYPE_NAMES', 'true')
    get_settings.cache_clear()


# ============================================================
# STORE & API CLIENT
# ============================================================

@pytest.fixture
def store() -> OnboardingStore:
    """Fresh onboarding store seeded with the default entity (store)."""
    return OnboardingStore()


@pytest_asyncio.fixture
async def client(store: OnboardingStore) -> AsyncGenerator[httpx.AsyncClient, None]:
    """
    Async HTTP client bound to the FastAPI app.

    The app's store dependency is overridden with the per-test store.
    """
    app.dependency_overrides[get_store_dependency] = lambda: store
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url='http://testserver') as http:
        yield http
    app.dependency_overrides.clear()


# ============================================================
# SAMPLE DATA
# ============================================================

@pytest.fixture
def base_counters() -> KPICounters:
    """The documented base floor {10, 5, 3}."""
    return KPICounters(total=10, analytics=5, ai=3)


@pytest.fixture
def square_footage_catalog() -> AttributeCatalog:
    """Single enabled attribute weighted {3, 2, 1}."""
    return AttributeCatalog(
        entity='store',
        attributes={
            'Square Footage': AttributeConfig(
                enabled=True,
                kpiWeight=KPIWeight(kpis=3, analytics=2, ai=1),
            ),
        },
    )


@pytest.fixture
def rules():
    """Default earning rules: every sub-rule present and disabled."""
    return default_earning_rules()


@pytest.fixture
def signal_data() -> Dict[str, Any]:
    """Complete signal template payload."""
    return {
        'id': 'signal_revenue_drop',
        'name': 'Revenue drop',
        'description': 'Weekly revenue falls more than 10%',
        'metric': 'revenue',
        'operator': 'percentage_change',
        'period': '7d',
        'condition': 'less_than',
        'threshold': -10,
        'unit': 'percentage',
        'priority': 'high',
        'actions': ['Send email alert'],
        'cooldownHours': 24,
    }
