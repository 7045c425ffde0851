"""
Enumeration definitions for the loyalty onboarding backend.

All enums inherit from both `str` and `Enum` so that Pydantic models serialize
them as plain strings and accept the raw string values on input.

Groups:
- Value program: ValueType, EarningMode, HybridStrategy, TierColor
- Earning rules: EarningPeriod, BirthdayRewardType, VoucherType
- Signal templates: SignalMetric, MetricCategory, SignalOperator, SignalPeriod,
  SignalCondition, SignalUnit, SignalPriority, BuilderStep
- Organization: HierarchyDirection
"""

from enum import Enum


# =============================================================================
# Value Program Enums
# =============================================================================


class ValueType(str, Enum):
    """
    Accrual currency of the loyalty program.

    - points / cashback: continuous accrual per unit of spend
    - credits / vouchers: issued when a threshold is crossed
    - hybrid: combination of two value types (dual earning and/or conversion)
    """
    POINTS = "points"
    CASHBACK = "cashback"
    CREDITS = "credits"
    VOUCHERS = "vouchers"
    HYBRID = "hybrid"


class EarningMode(str, Enum):
    """
    Which earning-rule sections apply to a value type.

    - continuous: baseRate + categoryMultipliers
    - threshold: thresholdEarning
    - hybrid: both sections
    """
    CONTINUOUS = "continuous"
    THRESHOLD = "threshold"
    HYBRID = "hybrid"


class HybridStrategy(str, Enum):
    """
    How a hybrid program combines value types.

    - dual: customers earn two value types at once
    - conversion: one value type converts into another
    - both: dual earning plus conversion
    """
    DUAL = "dual"
    CONVERSION = "conversion"
    BOTH = "both"


class TierColor(str, Enum):
    """Display color of a tier badge."""
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"
    DIAMOND = "diamond"
    BLUE = "blue"
    GREEN = "green"
    PURPLE = "purple"


# =============================================================================
# Earning Rule Enums
# =============================================================================


class EarningPeriod(str, Enum):
    """Accumulation window for period-spend threshold earning."""
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"


class BirthdayRewardType(str, Enum):
    """Discriminator of the birthday bonus variants."""
    MULTIPLIER = "multiplier"
    POINTS = "points"
    VOUCHER = "voucher"


class VoucherType(str, Enum):
    """
    Birthday voucher flavor.

    - sku: a specific product identified by SKU
    - value: a fixed monetary value
    """
    SKU = "sku"
    VALUE = "value"


# =============================================================================
# Signal Template Enums
# =============================================================================


class MetricCategory(str, Enum):
    """Grouping of signal metrics shown in the metric picker."""
    FINANCIAL = "Financial"
    CUSTOMER = "Customer"
    OPERATIONS = "Operations"
    CAMPAIGN = "Campaign"
    RISK = "Risk"


class SignalMetric(str, Enum):
    """
    Metric a signal template observes.

    Financial: revenue, avg_basket_size, profit_margin
    Customer: churn_risk_percentage, customer_ltv, segment_transition, active_customers
    Operations: transaction_count, transaction_velocity
    Campaign: campaign_roi, budget_burn_rate, engagement_rate
    Risk: redemptions_per_hour, points_balance_change, geographic_distance
    """
    REVENUE = "revenue"
    AVG_BASKET_SIZE = "avg_basket_size"
    PROFIT_MARGIN = "profit_margin"
    CHURN_RISK_PERCENTAGE = "churn_risk_percentage"
    CUSTOMER_LTV = "customer_ltv"
    SEGMENT_TRANSITION = "segment_transition"
    ACTIVE_CUSTOMERS = "active_customers"
    TRANSACTION_COUNT = "transaction_count"
    TRANSACTION_VELOCITY = "transaction_velocity"
    CAMPAIGN_ROI = "campaign_roi"
    BUDGET_BURN_RATE = "budget_burn_rate"
    ENGAGEMENT_RATE = "engagement_rate"
    REDEMPTIONS_PER_HOUR = "redemptions_per_hour"
    POINTS_BALANCE_CHANGE = "points_balance_change"
    GEOGRAPHIC_DISTANCE = "geographic_distance"


class SignalOperator(str, Enum):
    """
    Analysis applied to the metric over the time window.

    The configuration only records the choice; evaluating it is the job of a
    downstream execution engine.
    """
    TREND = "trend"
    PERCENTAGE_CHANGE = "percentage_change"
    THRESHOLD_BREACH = "threshold_breach"
    COMPARATIVE = "comparative"
    ANOMALY = "anomaly"
    ABSOLUTE = "absolute"


class SignalPeriod(str, Enum):
    """Time window of a signal. CUSTOM requires customPeriodDays."""
    LAST_24H = "24h"
    LAST_7D = "7d"
    LAST_30D = "30d"
    LAST_90D = "90d"
    CUSTOM = "custom"


class SignalCondition(str, Enum):
    """Trigger condition. BETWEEN requires thresholdMax."""
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    EQUALS = "equals"
    BETWEEN = "between"


class SignalUnit(str, Enum):
    """Unit of the threshold value(s)."""
    PERCENTAGE = "percentage"
    CURRENCY = "currency"
    COUNT = "count"
    ABSOLUTE = "absolute"


class SignalPriority(str, Enum):
    """Priority of alerts raised by a signal."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class BuilderStep(str, Enum):
    """Steps of the signal template builder, in navigation order."""
    METRIC = "metric"
    OPERATOR = "operator"
    CONDITIONS = "conditions"
    ACTIONS = "actions"
    REVIEW = "review"


# =============================================================================
# Organization Enums
# =============================================================================


class HierarchyDirection(str, Enum):
    """Direction for moving a hierarchy level one slot."""
    UP = "up"
    DOWN = "down"
