"""
KPI Derivation Service

Pure computation of the aggregate KPI counters from an attribute catalog.

Algorithm:
- Start from the base counters (Settings.kpi_base_total / _analytics / _ai)
- For every attribute that is enabled and carries a KPI weight, add the
  weight's three components
- Attributes without a weight contribute zero

The result depends only on the input snapshot. The whole catalog is summed on
every call; there is no incremental bookkeeping, so toggling attributes in
any order always converges to the same counters.
"""

from typing import Mapping, Optional

from loyalty_backend.core.config import get_settings
from loyalty_backend.models.schemas import AttributeCatalog, AttributeConfig, KPICounters


def base_counters() -> KPICounters:
    """Return the configured KPI base floor."""
    settings = get_settings()
    return KPICounters(
        total=settings.kpi_base_total,
        analytics=settings.kpi_base_analytics,
        ai=settings.kpi_base_ai,
    )


def derive_kpis(
    attributes: Mapping[str, AttributeConfig],
    base: Optional[KPICounters] = None
) -> KPICounters:
    """
    Derive KPI counters from the full attribute set.

    Args:
        attributes: Attribute name to state; the complete set, not a delta.
        base: Base floor to start from. Defaults to base_counters().

    Returns:
        KPICounters with base plus the weights of all enabled attributes.

    Example:
        >>> derive_kpis({"Square Footage": AttributeConfig(
        ...     enabled=True, kpiWeight=KPIWeight(kpis=3, analytics=2, ai=1))},
        ...     base=KPICounters(total=10, analytics=5, ai=3))
        KPICounters(total=13, analytics=7, ai=4)
    """
    if base is None:
        base = base_counters()

    total = base.total
    analytics = base.analytics
    ai = base.ai

    for config in attributes.values():
        if not config.enabled or config.kpiWeight is None:
            continue
        total += config.kpiWeight.kpis
        analytics += config.kpiWeight.analytics
        ai += config.kpiWeight.ai

    return KPICounters(total=total, analytics=analytics, ai=ai)


def derive_catalog_kpis(catalog: AttributeCatalog, base: Optional[KPICounters] = None) -> KPICounters:
    """Convenience wrapper deriving counters for an AttributeCatalog."""
    return derive_kpis(catalog.attributes, base=base)
