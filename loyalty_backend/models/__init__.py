"""
Package initialization file for backend models.

This module exports all Pydantic schemas and enumerations from schemas.py and enums.py,
making them importable from loyalty_backend.models directly.

Usage:
    from loyalty_backend.models import (
        ValueType,
        EarningRules,
        SignalTemplate,
        Queue,
        # ... etc
    )
"""

# =============================================================================
# Enums - Import and re-export all enumerations from enums.py
# =============================================================================

from loyalty_backend.models.enums import (
    # Value Program Enums
    ValueType,
    EarningMode,
    HybridStrategy,
    TierColor,
    # Earning Rule Enums
    EarningPeriod,
    BirthdayRewardType,
    VoucherType,
    # Signal Template Enums
    MetricCategory,
    SignalMetric,
    SignalOperator,
    SignalPeriod,
    SignalCondition,
    SignalUnit,
    SignalPriority,
    BuilderStep,
    # Organization Enums
    HierarchyDirection,
)


# =============================================================================
# Schemas - Import and re-export all Pydantic models from schemas.py
# =============================================================================

from loyalty_backend.models.schemas import (
    # -------------------------------------------------------------------------
    # Attribute Catalog & KPI Models
    # -------------------------------------------------------------------------
    KPIWeight,
    AttributeConfig,
    AttributeCatalog,
    KPICounters,

    # -------------------------------------------------------------------------
    # Earning Rule Models
    # -------------------------------------------------------------------------
    BaseRate,
    SpendThresholdRule,
    PurchaseFrequencyRule,
    PeriodSpendRule,
    ThresholdEarning,
    FrequencyBonus,
    SpendBonus,
    BirthdayMultiplierBonus,
    BirthdayPointsBonus,
    BirthdayVoucherBonus,
    BirthdayBonus,
    FirstPurchaseBonus,
    BehavioralBonuses,
    EarningRules,

    # -------------------------------------------------------------------------
    # Value Program Models
    # -------------------------------------------------------------------------
    Tier,
    CommonValueOptions,
    PointsValueConfig,
    CashbackValueConfig,
    CreditsValueConfig,
    VouchersValueConfig,
    DualEarningConfig,
    ConversionConfig,
    HybridValueConfig,
    ValueConfig,
    ValueProgram,

    # -------------------------------------------------------------------------
    # Signal & Queue Models
    # -------------------------------------------------------------------------
    SignalTemplate,
    SignalDraft,
    Queue,

    # -------------------------------------------------------------------------
    # Organization & Aggregate State
    # -------------------------------------------------------------------------
    HierarchyLevel,
    OnboardingState,
    StateDocument,

    # -------------------------------------------------------------------------
    # API Request Bodies
    # -------------------------------------------------------------------------
    TierCreate,
    QueueCreate,
    ValueTypeSelection,
    UseTiersSelection,
    EntitySelection,
    AttributeToggle,
    CustomAttributeCreate,
    HierarchyLevelCreate,
    HierarchyMove,
    ValidationReport,
)


__all__ = [
    # Enums
    'ValueType',
    'EarningMode',
    'HybridStrategy',
    'TierColor',
    'EarningPeriod',
    'BirthdayRewardType',
    'VoucherType',
    'MetricCategory',
    'SignalMetric',
    'SignalOperator',
    'SignalPeriod',
    'SignalCondition',
    'SignalUnit',
    'SignalPriority',
    'BuilderStep',
    'HierarchyDirection',
    # Attribute Catalog & KPI Models
    'KPIWeight',
    'AttributeConfig',
    'AttributeCatalog',
    'KPICounters',
    # Earning Rule Models
    'BaseRate',
    'SpendThresholdRule',
    'PurchaseFrequencyRule',
    'PeriodSpendRule',
    'ThresholdEarning',
    'FrequencyBonus',
    'SpendBonus',
    'BirthdayMultiplierBonus',
    'BirthdayPointsBonus',
    'BirthdayVoucherBonus',
    'BirthdayBonus',
    'FirstPurchaseBonus',
    'BehavioralBonuses',
    'EarningRules',
    # Value Program Models
    'Tier',
    'CommonValueOptions',
    'PointsValueConfig',
    'CashbackValueConfig',
    'CreditsValueConfig',
    'VouchersValueConfig',
    'DualEarningConfig',
    'ConversionConfig',
    'HybridValueConfig',
    'ValueConfig',
    'ValueProgram',
    # Signal & Queue Models
    'SignalTemplate',
    'SignalDraft',
    'Queue',
    # Organization & Aggregate State
    'HierarchyLevel',
    'OnboardingState',
    'StateDocument',
    # API Request Bodies
    'TierCreate',
    'QueueCreate',
    'ValueTypeSelection',
    'UseTiersSelection',
    'EntitySelection',
    'AttributeToggle',
    'CustomAttributeCreate',
    'HierarchyLevelCreate',
    'HierarchyMove',
    'ValidationReport',
]
