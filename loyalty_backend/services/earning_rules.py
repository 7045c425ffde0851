"""
Earning Rules Service

Merge and validation logic for EarningRules, used for both the program-wide
rules and each tier's override.

Merge semantics of update_earning_rules(rules, partial):
- ``baseRate``: field-level merge into the current base rate
- ``categoryMultipliers``: replaces the whole map (keys are unique by
  construction); use set_category_multiplier / remove_category_multiplier
  for single entries
- ``thresholdEarning`` / ``behavioralBonuses``: merged one named sub-rule at
  a time. Sub-rules not named in the partial are carried over untouched.
  Within a sub-rule only the supplied (non-None) fields change.
- A sub-rule touched for the first time is created from its default factory,
  so ``enabled: true`` is never paired with missing parameters.
- Disabling a sub-rule only flips ``enabled``; its parameters are kept so
  re-enabling restores them.
- The birthday bonus is merged by variant. Changing ``rewardType`` rebuilds
  the bonus from the new variant's factory (keeping ``enabled``); fields that
  belong to another variant are rejected by model validation.

An update is applied in full or not at all: the merged result is validated
(shape by pydantic, ranges here) before it is returned, and the input rules
are never modified.
"""

import logging
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional

from pydantic import BaseModel, TypeAdapter

from loyalty_backend.core.errors import InvalidRangeError, NotFoundError
from loyalty_backend.models.enums import BirthdayRewardType, VoucherType
from loyalty_backend.models.schemas import (
    BehavioralBonuses,
    BirthdayMultiplierBonus,
    BirthdayPointsBonus,
    BirthdayVoucherBonus,
    EarningRules,
    FirstPurchaseBonus,
    FrequencyBonus,
    PeriodSpendRule,
    PurchaseFrequencyRule,
    SpendBonus,
    SpendThresholdRule,
    ThresholdEarning,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Default Factories
# One factory per sub-rule kind; each returns the documented defaults with
# the sub-rule disabled.
# =============================================================================

THRESHOLD_EARNING_GROUP = "thresholdEarning"
BEHAVIORAL_BONUSES_GROUP = "behavioralBonuses"
BIRTHDAY = "birthday"

SUB_RULE_FACTORIES: Dict[str, Dict[str, Callable[..., BaseModel]]] = {
    THRESHOLD_EARNING_GROUP: {
        "spendThreshold": SpendThresholdRule,
        "purchaseFrequency": PurchaseFrequencyRule,
        "periodSpend": PeriodSpendRule,
    },
    BEHAVIORAL_BONUSES_GROUP: {
        "frequencyBonus": FrequencyBonus,
        "thresholdBonus": SpendBonus,
        "firstPurchase": FirstPurchaseBonus,
    },
}

BIRTHDAY_FACTORIES: Dict[BirthdayRewardType, Callable[..., BaseModel]] = {
    BirthdayRewardType.MULTIPLIER: BirthdayMultiplierBonus,
    BirthdayRewardType.POINTS: BirthdayPointsBonus,
    BirthdayRewardType.VOUCHER: BirthdayVoucherBonus,
}

# Default value voucher amount restored when a voucher switches back from SKU
DEFAULT_VOUCHER_VALUE: float = 10


def new_sub_rule(group: str, name: str) -> BaseModel:
    """
    Create a sub-rule with its documented defaults.

    Raises:
        KeyError: If the group or sub-rule name is unknown.
    """
    if group == BEHAVIORAL_BONUSES_GROUP and name == BIRTHDAY:
        return new_birthday_bonus()
    return SUB_RULE_FACTORIES[group][name]()


def new_birthday_bonus(
    reward_type: BirthdayRewardType = BirthdayRewardType.MULTIPLIER,
    enabled: bool = False
) -> BaseModel:
    """Create a birthday bonus of the given variant with default values."""
    return BIRTHDAY_FACTORIES[BirthdayRewardType(reward_type)](enabled=enabled)


def default_earning_rules() -> EarningRules:
    """
    Freshly initialized earning rules: default base rate, no category
    multipliers, every sub-rule present and disabled.
    """
    return EarningRules(
        thresholdEarning=ThresholdEarning(**{
            name: factory()
            for name, factory in SUB_RULE_FACTORIES[THRESHOLD_EARNING_GROUP].items()
        }),
        behavioralBonuses=BehavioralBonuses(
            **{
                name: factory()
                for name, factory in SUB_RULE_FACTORIES[BEHAVIORAL_BONUSES_GROUP].items()
            },
            birthday=new_birthday_bonus(),
        ),
    )


# =============================================================================
# Merge Helpers
# =============================================================================


# Shape checks for raw request values, so bad input surfaces as ValidationError
PARTIAL_ADAPTER = TypeAdapter(Dict[str, Any])
REWARD_TYPE_ADAPTER = TypeAdapter(BirthdayRewardType)
VOUCHER_TYPE_ADAPTER = TypeAdapter(VoucherType)


def as_partial(value: Any) -> Dict[str, Any]:
    """
    Normalize a partial update to a plain dict.

    Models contribute only the fields that were explicitly set.

    Raises:
        pydantic.ValidationError: If the value is neither a mapping nor a model.
    """
    if value is None:
        return {}
    if isinstance(value, BaseModel):
        return value.model_dump(exclude_unset=True)
    return PARTIAL_ADAPTER.validate_python(value)


def _supplied(partial: Mapping[str, Any]) -> Dict[str, Any]:
    """Drop keys whose value is None (treated as 'not supplied')."""
    return {key: value for key, value in partial.items() if value is not None}


def _merge_sub_rule(group: str, name: str, current: Optional[BaseModel], partial: Any) -> Any:
    if name not in SUB_RULE_FACTORIES[group]:
        # Unknown sub-rule: hand it to model validation untouched so it is rejected
        return partial
    base = current if current is not None else new_sub_rule(group, name)
    merged = base.model_dump()
    merged.update(_supplied(as_partial(partial)))
    return merged


def _merge_birthday(current: Optional[BaseModel], partial: Any) -> Dict[str, Any]:
    changes = _supplied(as_partial(partial))
    if current is None:
        current = new_birthday_bonus()

    reward_type = REWARD_TYPE_ADAPTER.validate_python(changes.pop("rewardType", current.rewardType))
    if reward_type.value != current.rewardType:
        base = new_birthday_bonus(reward_type, enabled=current.enabled).model_dump()
        logger.debug(f"Birthday bonus switched from {current.rewardType} to {reward_type.value}")
    else:
        base = current.model_dump()

    if reward_type == BirthdayRewardType.VOUCHER and "voucherType" in changes:
        voucher_type = VOUCHER_TYPE_ADAPTER.validate_python(changes["voucherType"])
        if voucher_type != base["voucherType"]:
            if voucher_type == VoucherType.SKU:
                base["voucherValue"] = None
            else:
                base["voucherSku"] = None
                base["voucherValue"] = DEFAULT_VOUCHER_VALUE

    base.update(changes)
    return base


def _merge_group(group: str, current: BaseModel, partial: Any) -> Dict[str, Any]:
    merged = current.model_dump()
    for name, sub_partial in as_partial(partial).items():
        if sub_partial is None:
            continue
        existing = getattr(current, name, None)
        if group == BEHAVIORAL_BONUSES_GROUP and name == BIRTHDAY:
            merged[name] = _merge_birthday(existing, sub_partial)
        else:
            merged[name] = _merge_sub_rule(group, name, existing, sub_partial)
    return merged


# =============================================================================
# Update Operations
# =============================================================================


def update_earning_rules(rules: EarningRules, partial: Any) -> EarningRules:
    """
    Apply a partial update to earning rules.

    Args:
        rules: Current earning rules (left unchanged).
        partial: Mapping or model with any of baseRate, categoryMultipliers,
            thresholdEarning, behavioralBonuses.

    Returns:
        New EarningRules with the partial merged in.

    Raises:
        pydantic.ValidationError: Unknown fields, wrong types, or fields of a
            different birthday variant.
        InvalidRangeError: A numeric parameter is out of range.

    Example:
        >>> updated = update_earning_rules(rules, {
        ...     "behavioralBonuses": {"firstPurchase": {"points": 750}}
        ... })
        # birthday, frequencyBonus and thresholdBonus are untouched
    """
    changes = as_partial(partial)
    merged = rules.model_dump()

    for key, value in changes.items():
        if value is None:
            continue
        if key == "baseRate":
            merged[key] = {**rules.baseRate.model_dump(), **_supplied(as_partial(value))}
        elif key == "categoryMultipliers":
            merged[key] = PARTIAL_ADAPTER.validate_python(value)
        elif key == THRESHOLD_EARNING_GROUP:
            merged[key] = _merge_group(THRESHOLD_EARNING_GROUP, rules.thresholdEarning, value)
        elif key == BEHAVIORAL_BONUSES_GROUP:
            merged[key] = _merge_group(BEHAVIORAL_BONUSES_GROUP, rules.behavioralBonuses, value)
        else:
            merged[key] = value

    updated = EarningRules.model_validate(merged)
    for error in iter_range_errors(updated):
        logger.warning(f"Earning rule update refused: {error.message}")
        raise error
    return updated


def set_category_multiplier(rules: EarningRules, category: str, multiplier: float) -> EarningRules:
    """
    Add or replace one category multiplier.

    Raises:
        InvalidRangeError: If the category is blank or the multiplier negative.
    """
    category = category.strip()
    if not category:
        raise InvalidRangeError("categoryMultipliers", "Category name must not be blank", category)
    if multiplier < 0:
        raise InvalidRangeError(
            f"categoryMultipliers.{category}",
            f"Multiplier for '{category}' must not be negative",
            multiplier,
        )
    multipliers = dict(rules.categoryMultipliers)
    multipliers[category] = multiplier
    return rules.model_copy(update={"categoryMultipliers": multipliers})


def remove_category_multiplier(rules: EarningRules, category: str) -> EarningRules:
    """
    Remove one category multiplier.

    Raises:
        NotFoundError: If no multiplier exists for the category.
    """
    if category not in rules.categoryMultipliers:
        raise NotFoundError("Category multiplier", category)
    multipliers = {key: value for key, value in rules.categoryMultipliers.items() if key != category}
    return rules.model_copy(update={"categoryMultipliers": multipliers})


# =============================================================================
# Validation
# =============================================================================

# Numeric parameters that must not be negative, per sub-rule
NON_NEGATIVE_FIELDS: Dict[str, List[str]] = {
    "spendThreshold": ["spend", "reward"],
    "purchaseFrequency": ["purchases", "reward"],
    "periodSpend": ["spend", "reward"],
    "frequencyBonus": ["visits", "points"],
    "thresholdBonus": ["spend", "points"],
    "firstPurchase": ["points"],
    BIRTHDAY: ["multiplier", "points", "voucherValue"],
}


def _join(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


def iter_range_errors(rules: EarningRules, prefix: str = "") -> Iterator[InvalidRangeError]:
    """
    Yield an InvalidRangeError for every out-of-range numeric parameter.

    Checked regardless of ``enabled`` since disabled values are restored on
    re-enable.
    """
    base_rate = rules.baseRate
    if base_rate.unitsEarned < 0:
        yield InvalidRangeError(
            _join(prefix, "baseRate.unitsEarned"),
            "Base rate units earned must not be negative",
            base_rate.unitsEarned,
        )
    if base_rate.perSpend <= 0:
        yield InvalidRangeError(
            _join(prefix, "baseRate.perSpend"),
            "Base rate spend block must be greater than zero",
            base_rate.perSpend,
        )

    for category, multiplier in rules.categoryMultipliers.items():
        if multiplier < 0:
            yield InvalidRangeError(
                _join(prefix, f"categoryMultipliers.{category}"),
                f"Multiplier for '{category}' must not be negative",
                multiplier,
            )

    groups = (
        (THRESHOLD_EARNING_GROUP, rules.thresholdEarning),
        (BEHAVIORAL_BONUSES_GROUP, rules.behavioralBonuses),
    )
    for group_name, group in groups:
        for name, sub_rule in group:
            if sub_rule is None:
                continue
            for field in NON_NEGATIVE_FIELDS.get(name, []):
                value = getattr(sub_rule, field, None)
                if value is not None and value < 0:
                    yield InvalidRangeError(
                        _join(prefix, f"{group_name}.{name}.{field}"),
                        f"{name}.{field} must not be negative",
                        value,
                    )


def iter_completeness_errors(rules: EarningRules, prefix: str = "") -> Iterator[InvalidRangeError]:
    """
    Yield errors for enabled sub-rules that are not ready to be finalized.

    Only the SKU birthday voucher has a non-numeric parameter without a
    usable default.
    """
    birthday = rules.behavioralBonuses.birthday
    if (
        isinstance(birthday, BirthdayVoucherBonus)
        and birthday.enabled
        and birthday.voucherType == VoucherType.SKU
        and not (birthday.voucherSku or "").strip()
    ):
        yield InvalidRangeError(
            _join(prefix, "behavioralBonuses.birthday.voucherSku"),
            "A SKU is required for SKU birthday vouchers",
            birthday.voucherSku,
        )


def validate_earning_rules(rules: EarningRules, prefix: str = "") -> List[InvalidRangeError]:
    """
    Finalize-time validation of earning rules.

    Returns:
        All range and completeness errors; an empty list means valid.
    """
    errors = list(iter_range_errors(rules, prefix))
    errors.extend(iter_completeness_errors(rules, prefix))
    return errors
