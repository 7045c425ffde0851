"""
Backend Services Module

Business logic for the loyalty rule configuration engine. Every service is a
set of pure functions over frozen pydantic models: an operation takes the
current configuration, validates the change, and returns a new
configuration. State ownership lives in loyalty_backend.core.store.

Services:
- attribute_catalog: Entity attribute sets and the KPI weight table
- kpi_derivation: KPI counters derived from the attribute catalog
- earning_rules: Partial merge and validation of earning rule sets
- value_program: Value type variants, tiers, tiering mode
- signal_templates: Signal catalogs and template materialization
- queues: Queue and signal template collections
- signal_builder: Five-step signal template editor
- organization: Business hierarchy and customer types
- identifiers: Prefixed id generation
"""

# =============================================================================
# Attribute Catalog & KPI Derivation
# =============================================================================

from loyalty_backend.services.attribute_catalog import (
    KPI_WEIGHTS,
    ENTITY_ATTRIBUTE_SETS,
    catalog_for_entity,
    set_attribute_enabled,
    add_custom_attribute,
)
from loyalty_backend.services.kpi_derivation import (
    base_counters,
    derive_kpis,
    derive_catalog_kpis,
)

# =============================================================================
# Earning Rules & Value Program
# =============================================================================

from loyalty_backend.services.earning_rules import (
    default_earning_rules,
    new_sub_rule,
    new_birthday_bonus,
    update_earning_rules,
    set_category_multiplier,
    remove_category_multiplier,
    validate_earning_rules,
)
from loyalty_backend.services.value_program import (
    default_value_config,
    default_value_program,
    earning_mode,
    set_value_type,
    update_value_config,
    set_use_tiers,
    update_program_earning_rules,
    resolve_earning_rules,
    get_tier,
    sorted_tiers,
    add_tier,
    update_tier,
    remove_tier,
    validate_program,
)

# =============================================================================
# Queues & Signal Templates
# =============================================================================

from loyalty_backend.services.signal_templates import (
    METRIC_CATEGORIES,
    AVAILABLE_ACTIONS,
    metrics_by_category,
    find_missing_fields,
    materialize_template,
)
from loyalty_backend.services.queues import (
    default_queues,
    find_queue,
    find_signal,
    active_signals,
    add_queue,
    update_queue,
    remove_queue,
    add_signal,
    replace_signal,
    update_signal,
    remove_signal,
)
from loyalty_backend.services.signal_builder import SignalTemplateBuilder

# =============================================================================
# Organization
# =============================================================================

from loyalty_backend.services.organization import (
    default_organization_hierarchy,
    default_customer_hierarchy,
    update_hierarchy_level,
    add_custom_hierarchy_level,
    reorder_hierarchy_level,
    add_customer_type,
)


__all__ = [
    # Attribute catalog & KPIs
    'KPI_WEIGHTS',
    'ENTITY_ATTRIBUTE_SETS',
    'catalog_for_entity',
    'set_attribute_enabled',
    'add_custom_attribute',
    'base_counters',
    'derive_kpis',
    'derive_catalog_kpis',
    # Earning rules
    'default_earning_rules',
    'new_sub_rule',
    'new_birthday_bonus',
    'update_earning_rules',
    'set_category_multiplier',
    'remove_category_multiplier',
    'validate_earning_rules',
    # Value program
    'default_value_config',
    'default_value_program',
    'earning_mode',
    'set_value_type',
    'update_value_config',
    'set_use_tiers',
    'update_program_earning_rules',
    'resolve_earning_rules',
    'get_tier',
    'sorted_tiers',
    'add_tier',
    'update_tier',
    'remove_tier',
    'validate_program',
    # Signal templates & queues
    'METRIC_CATEGORIES',
    'AVAILABLE_ACTIONS',
    'metrics_by_category',
    'find_missing_fields',
    'materialize_template',
    'default_queues',
    'find_queue',
    'find_signal',
    'active_signals',
    'add_queue',
    'update_queue',
    'remove_queue',
    'add_signal',
    'replace_signal',
    'update_signal',
    'remove_signal',
    'SignalTemplateBuilder',
    # Organization
    'default_organization_hierarchy',
    'default_customer_hierarchy',
    'update_hierarchy_level',
    'add_custom_hierarchy_level',
    'reorder_hierarchy_level',
    'add_customer_type',
]
