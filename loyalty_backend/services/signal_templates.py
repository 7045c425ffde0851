"""
Signal Template Service

Catalogs and the single materialization path that turns loose template data
(a builder draft, an API body, or a merged partial update) into a validated
SignalTemplate.

materialize_template() checks, in order:
1. Shape: enum values and types via pydantic (lax coercion, e.g. "10" -> 10).
   -> pydantic.ValidationError
2. Required fields: id, name, metric, operator, period, condition, threshold,
   unit, priority and at least one action; thresholdMax when the condition is
   between; customPeriodDays when the period is custom.
   -> IncompleteTemplateError naming every missing field
3. Ranges: threshold < thresholdMax for between, customPeriodDays >= 1,
   cooldownHours >= 0.
   -> InvalidRangeError

Gated fields whose gate is off (thresholdMax without between,
customPeriodDays without custom) are dropped from the materialized template.
"""

from typing import Any, Dict, List, Mapping, Tuple

from loyalty_backend.core.errors import IncompleteTemplateError, InvalidRangeError
from loyalty_backend.models.enums import (
    MetricCategory,
    SignalCondition,
    SignalMetric,
    SignalOperator,
    SignalPeriod,
    SignalPriority,
    SignalUnit,
)
from loyalty_backend.models.schemas import SignalDraft, SignalTemplate


# =============================================================================
# Catalogs
# =============================================================================

METRIC_CATEGORIES: Dict[SignalMetric, MetricCategory] = {
    SignalMetric.REVENUE: MetricCategory.FINANCIAL,
    SignalMetric.AVG_BASKET_SIZE: MetricCategory.FINANCIAL,
    SignalMetric.PROFIT_MARGIN: MetricCategory.FINANCIAL,
    SignalMetric.CHURN_RISK_PERCENTAGE: MetricCategory.CUSTOMER,
    SignalMetric.CUSTOMER_LTV: MetricCategory.CUSTOMER,
    SignalMetric.SEGMENT_TRANSITION: MetricCategory.CUSTOMER,
    SignalMetric.ACTIVE_CUSTOMERS: MetricCategory.CUSTOMER,
    SignalMetric.TRANSACTION_COUNT: MetricCategory.OPERATIONS,
    SignalMetric.TRANSACTION_VELOCITY: MetricCategory.OPERATIONS,
    SignalMetric.CAMPAIGN_ROI: MetricCategory.CAMPAIGN,
    SignalMetric.BUDGET_BURN_RATE: MetricCategory.CAMPAIGN,
    SignalMetric.ENGAGEMENT_RATE: MetricCategory.CAMPAIGN,
    SignalMetric.REDEMPTIONS_PER_HOUR: MetricCategory.RISK,
    SignalMetric.POINTS_BALANCE_CHANGE: MetricCategory.RISK,
    SignalMetric.GEOGRAPHIC_DISTANCE: MetricCategory.RISK,
}

AVAILABLE_ACTIONS: Tuple[str, ...] = (
    "Send email alert",
    "Send SMS notification",
    "Create task in queue",
    "Alert account manager",
    "Trigger automation",
    "Pause related campaigns",
    "Adjust budget allocation",
    "Generate detailed report",
    "Flag for manual review",
    "Update customer segment",
    "Send to external webhook",
    "Log to analytics platform",
)

# Values a new draft starts from (the id is generated per draft)
DRAFT_DEFAULTS: Dict[str, Any] = {
    "name": "",
    "description": "",
    "enabled": True,
    "metric": SignalMetric.REVENUE,
    "operator": SignalOperator.TREND,
    "period": SignalPeriod.LAST_7D,
    "condition": SignalCondition.LESS_THAN,
    "threshold": 0,
    "unit": SignalUnit.PERCENTAGE,
    "priority": SignalPriority.MEDIUM,
    "actions": [],
    "cooldownHours": 24,
}

REQUIRED_FIELDS: Tuple[str, ...] = (
    "id",
    "name",
    "metric",
    "operator",
    "period",
    "condition",
    "threshold",
    "unit",
    "priority",
    "actions",
)

DEFAULT_COOLDOWN_HOURS: float = 24


def metrics_by_category() -> Dict[MetricCategory, List[SignalMetric]]:
    """Group the metric catalog for the metric picker."""
    grouped: Dict[MetricCategory, List[SignalMetric]] = {category: [] for category in MetricCategory}
    for metric, category in METRIC_CATEGORIES.items():
        grouped[category].append(metric)
    return grouped


# =============================================================================
# Validation
# =============================================================================


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set)):
        return len(value) == 0
    return False


def find_missing_fields(data: Mapping[str, Any]) -> List[str]:
    """Names of required fields that are absent or blank, in field order."""
    missing = [name for name in REQUIRED_FIELDS if _is_blank(data.get(name))]
    if data.get("condition") == SignalCondition.BETWEEN and data.get("thresholdMax") is None:
        missing.append("thresholdMax")
    if data.get("period") == SignalPeriod.CUSTOM and data.get("customPeriodDays") is None:
        missing.append("customPeriodDays")
    return missing


def check_ranges(data: Mapping[str, Any]) -> None:
    """
    Raises:
        InvalidRangeError: On the first out-of-range value.
    """
    if data.get("condition") == SignalCondition.BETWEEN:
        threshold = data.get("threshold")
        threshold_max = data.get("thresholdMax")
        if threshold is not None and threshold_max is not None and threshold >= threshold_max:
            raise InvalidRangeError(
                "thresholdMax",
                f"threshold ({threshold}) must be less than thresholdMax ({threshold_max})",
                threshold_max,
            )

    if data.get("period") == SignalPeriod.CUSTOM:
        days = data.get("customPeriodDays")
        if days is not None and days < 1:
            raise InvalidRangeError("customPeriodDays", "Custom period must be at least one day", days)

    cooldown = data.get("cooldownHours")
    if cooldown is not None and cooldown < 0:
        raise InvalidRangeError("cooldownHours", "Cooldown must not be negative", cooldown)


def materialize_template(data: Mapping[str, Any]) -> SignalTemplate:
    """
    Build a complete SignalTemplate from loose data.

    Args:
        data: Template fields, e.g. a draft dump or a merged partial update.

    Returns:
        Validated SignalTemplate.

    Raises:
        IncompleteTemplateError: Required field(s) missing.
        InvalidRangeError: A value is out of range.
        pydantic.ValidationError: Invalid enum value or type.
    """
    # Coerce types first so the checks below compare numbers and enum members
    fields = SignalDraft.model_validate(dict(data)).model_dump()

    missing = find_missing_fields(fields)
    if missing:
        raise IncompleteTemplateError(missing)

    check_ranges(fields)

    if fields.get("condition") != SignalCondition.BETWEEN:
        fields["thresholdMax"] = None
    if fields.get("period") != SignalPeriod.CUSTOM:
        fields["customPeriodDays"] = None
    if fields.get("description") is None:
        fields["description"] = ""
    if fields.get("enabled") is None:
        fields["enabled"] = True
    if fields.get("cooldownHours") is None:
        fields["cooldownHours"] = DEFAULT_COOLDOWN_HOURS

    return SignalTemplate.model_validate(fields)
