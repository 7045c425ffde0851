"""
Value Program Service

Composition logic for the ValueProgram aggregate: value-type variants, the
tiering selector, tiers and their earning-rule overrides.

Rules:
- set_value_type() resets valueConfig to the default shape of the new
  variant. Fields of the previous variant are not carried over.
- set_use_tiers() only flips the selector. Neither the tier list nor the
  program-wide earning rules are touched, so toggling is lossless.
- Tiers are identified by id. sorted_tiers() orders them by threshold for
  display without changing the stored order.
- Updating or removing an unknown tier raises NotFoundError.

Every operation returns a new ValueProgram; the input is never modified.
"""

import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from pydantic import TypeAdapter

from loyalty_backend.core.config import get_settings
from loyalty_backend.core.errors import (
    DuplicateNameError,
    InvalidRangeError,
    LockedEntryError,
    NotFoundError,
)
from loyalty_backend.models.enums import EarningMode, HybridStrategy, TierColor, ValueType
from loyalty_backend.models.schemas import (
    HYBRID_STRATEGY_BLOCKS,
    CashbackValueConfig,
    ConversionConfig,
    CreditsValueConfig,
    DualEarningConfig,
    EarningRules,
    HybridValueConfig,
    PointsValueConfig,
    Tier,
    ValueProgram,
    VouchersValueConfig,
)
from loyalty_backend.services.earning_rules import (
    as_partial,
    default_earning_rules,
    update_earning_rules,
    validate_earning_rules,
)
from loyalty_backend.services.identifiers import TIER_PREFIX, new_id


logger = logging.getLogger(__name__)


# =============================================================================
# Variant Defaults
# =============================================================================

VALUE_CONFIG_FACTORIES: Dict[ValueType, Callable[[], Any]] = {
    ValueType.POINTS: PointsValueConfig,
    ValueType.CASHBACK: CashbackValueConfig,
    ValueType.CREDITS: CreditsValueConfig,
    ValueType.VOUCHERS: VouchersValueConfig,
    ValueType.HYBRID: lambda: HybridValueConfig(dualEarning=DualEarningConfig()),
}

HYBRID_BLOCK_FACTORIES: Dict[str, Callable[[], Any]] = {
    "dualEarning": DualEarningConfig,
    "conversion": ConversionConfig,
}

HYBRID_STRATEGY_ADAPTER = TypeAdapter(HybridStrategy)

# Earning-rule sections that apply to each value type
EARNING_MODES: Dict[ValueType, EarningMode] = {
    ValueType.POINTS: EarningMode.CONTINUOUS,
    ValueType.CASHBACK: EarningMode.CONTINUOUS,
    ValueType.CREDITS: EarningMode.THRESHOLD,
    ValueType.VOUCHERS: EarningMode.THRESHOLD,
    ValueType.HYBRID: EarningMode.HYBRID,
}


def default_value_config(value_type: ValueType) -> Any:
    """Return the default valueConfig variant for a value type."""
    return VALUE_CONFIG_FACTORIES[ValueType(value_type)]()


def default_value_program() -> ValueProgram:
    """Points program, program-wide earning rules, no tiers."""
    return ValueProgram(
        valueType=ValueType.POINTS,
        valueConfig=default_value_config(ValueType.POINTS),
        useTiers=False,
        tiers=[],
        programEarningRules=default_earning_rules(),
    )


def earning_mode(value_type: ValueType) -> EarningMode:
    """
    Which earning-rule sections apply to a value type.

    - continuous (points, cashback): baseRate, categoryMultipliers
    - threshold (credits, vouchers): thresholdEarning
    - hybrid: both
    Behavioral bonuses apply in every mode.
    """
    return EARNING_MODES[ValueType(value_type)]


# =============================================================================
# Value Type & Config
# =============================================================================


def set_value_type(program: ValueProgram, value_type: ValueType) -> ValueProgram:
    """
    Switch the program to another value type.

    The valueConfig is reset to the default shape of the new type. Selecting
    the current type again leaves the configuration unchanged.
    """
    value_type = ValueType(value_type)
    if value_type == program.valueType:
        return program

    logger.info(f"Value type switched from {program.valueType.value} to {value_type.value}")
    return program.model_copy(update={
        "valueType": value_type,
        "valueConfig": default_value_config(value_type),
    })


def _merge_hybrid(current: HybridValueConfig, changes: Dict[str, Any]) -> Dict[str, Any]:
    merged = current.model_dump()
    strategy = HYBRID_STRATEGY_ADAPTER.validate_python(changes.pop("hybridStrategy", current.hybridStrategy))
    merged["hybridStrategy"] = strategy
    required = HYBRID_STRATEGY_BLOCKS[strategy]

    for block, factory in HYBRID_BLOCK_FACTORIES.items():
        block_changes = changes.pop(block, None)
        if block in required:
            base = merged[block] if merged[block] is not None else factory().model_dump()
            if block_changes is not None:
                base = {**base, **as_partial(block_changes)}
            merged[block] = base
        elif block_changes is not None:
            # Left in place so validation reports the block as unused
            merged[block] = as_partial(block_changes)
        else:
            merged[block] = None

    merged.update(changes)
    return merged


def update_value_config(program: ValueProgram, partial: Any) -> ValueProgram:
    """
    Merge a partial update into the current valueConfig variant.

    Keys present in the partial are applied as given, including None for the
    nullable caps and balances. For hybrid programs, changing hybridStrategy
    creates any newly required block from defaults and drops the block the
    new strategy does not use.

    Raises:
        pydantic.ValidationError: Fields of another variant, or a valueType
            other than the program's.
        InvalidRangeError: A monetary or rate field is out of range.
    """
    current = program.valueConfig
    changes = as_partial(partial)
    if changes.get("valueType") in (current.valueType, program.valueType):
        changes.pop("valueType")

    if isinstance(current, HybridValueConfig):
        merged = _merge_hybrid(current, changes)
    else:
        merged = {**current.model_dump(), **changes}

    updated = type(current).model_validate(merged)
    for error in iter_value_config_errors(updated):
        logger.warning(f"Value config update refused: {error.message}")
        raise error
    return program.model_copy(update={"valueConfig": updated})


def _non_negative(field: str, value: Optional[float]) -> Iterator[InvalidRangeError]:
    if value is not None and value < 0:
        yield InvalidRangeError(f"valueConfig.{field}", f"{field} must not be negative", value)


def _positive(field: str, value: Optional[float]) -> Iterator[InvalidRangeError]:
    if value is not None and value <= 0:
        yield InvalidRangeError(f"valueConfig.{field}", f"{field} must be greater than zero", value)


def iter_value_config_errors(config: Any) -> Iterator[InvalidRangeError]:
    """Yield range errors for the monetary and rate fields of a valueConfig."""
    if isinstance(config, PointsValueConfig):
        yield from _positive("pointValue", config.pointValue)
        yield from _non_negative("minRedemption", config.minRedemption)
        yield from _non_negative("maxBalance", config.maxBalance)
    elif isinstance(config, CashbackValueConfig):
        if not 0 <= config.cashbackPercentage <= 100:
            yield InvalidRangeError(
                "valueConfig.cashbackPercentage",
                "cashbackPercentage must be between 0 and 100",
                config.cashbackPercentage,
            )
        yield from _non_negative("cashbackCap", config.cashbackCap)
    elif isinstance(config, CreditsValueConfig):
        yield from _non_negative("creditMinRedemption", config.creditMinRedemption)
        yield from _non_negative("creditMaxBalance", config.creditMaxBalance)
    elif isinstance(config, VouchersValueConfig):
        for index, denomination in enumerate(config.voucherDenominations):
            yield from _positive(f"voucherDenominations[{index}]", denomination)
    elif isinstance(config, HybridValueConfig):
        if config.dualEarning is not None:
            yield from _non_negative("dualEarning.primaryRate", config.dualEarning.primaryRate)
            yield from _non_negative("dualEarning.secondaryRate", config.dualEarning.secondaryRate)
        if config.conversion is not None:
            yield from _positive("conversion.fromAmount", config.conversion.fromAmount)
            yield from _positive("conversion.toAmount", config.conversion.toAmount)


# =============================================================================
# Tiering Mode & Program Earning Rules
# =============================================================================


def set_use_tiers(program: ValueProgram, use_tiers: bool) -> ValueProgram:
    """Flip the tiering selector. Tiers and program rules are retained."""
    if program.useTiers == use_tiers:
        return program
    logger.info(f"Tiering mode set to {'tiered' if use_tiers else 'program-wide'}")
    return program.model_copy(update={"useTiers": use_tiers})


def update_program_earning_rules(program: ValueProgram, partial: Any) -> ValueProgram:
    """Merge a partial update into the program-wide earning rules."""
    rules = update_earning_rules(program.programEarningRules, partial)
    return program.model_copy(update={"programEarningRules": rules})


def resolve_earning_rules(program: ValueProgram, tier_id: Optional[str] = None) -> EarningRules:
    """
    Return the authoritative earning rules.

    Program-wide rules when tiers are off; the given tier's rules otherwise.

    Raises:
        InvalidRangeError: If tiers are in use and no tier_id is given.
        NotFoundError: If tier_id is unknown.
    """
    if not program.useTiers:
        return program.programEarningRules
    if tier_id is None:
        raise InvalidRangeError("tier_id", "tier_id is required while tiers are in use", None)
    return get_tier(program, tier_id).earningRules


# =============================================================================
# Tiers
# =============================================================================


def _normalize_name(name: str) -> str:
    return name.strip().casefold()


def _check_unique_tier_name(program: ValueProgram, name: str, exclude_id: Optional[str] = None) -> None:
    if not get_settings().enforce_unique_tier_names:
        return
    wanted = _normalize_name(name)
    for tier in program.tiers:
        if tier.id != exclude_id and _normalize_name(tier.name) == wanted:
            raise DuplicateNameError("Tier", name)


def _check_threshold(threshold: float) -> None:
    if threshold < 0:
        raise InvalidRangeError("threshold", "Tier threshold must not be negative", threshold)


def get_tier(program: ValueProgram, tier_id: str) -> Tier:
    """
    Raises:
        NotFoundError: If no tier has this id.
    """
    for tier in program.tiers:
        if tier.id == tier_id:
            return tier
    raise NotFoundError("Tier", tier_id)


def sorted_tiers(program: ValueProgram) -> List[Tier]:
    """Tiers by ascending threshold; equal thresholds keep insertion order."""
    return sorted(program.tiers, key=lambda tier: tier.threshold)


def add_tier(
    program: ValueProgram,
    name: str,
    threshold: float,
    color: TierColor,
    benefits: Optional[List[str]] = None,
    description: str = "",
) -> Tuple[ValueProgram, Tier]:
    """
    Create a tier with default earning rules and append it.

    Returns:
        (updated program, new tier)

    Raises:
        InvalidRangeError: Negative threshold.
        DuplicateNameError: Name already used, when uniqueness is enforced.
    """
    _check_threshold(threshold)
    _check_unique_tier_name(program, name)

    tier = Tier(
        id=new_id(TIER_PREFIX),
        name=name,
        description=description,
        threshold=threshold,
        color=TierColor(color),
        benefits=list(benefits or []),
        earningRules=default_earning_rules(),
    )
    logger.info(f"Tier '{name}' added at threshold {threshold} ({tier.id})")
    return program.model_copy(update={"tiers": [*program.tiers, tier]}), tier


def update_tier(program: ValueProgram, tier_id: str, partial: Any) -> ValueProgram:
    """
    Merge a partial update into one tier.

    Top-level fields are replaced; an ``earningRules`` partial goes through
    update_earning_rules() so unrelated sub-rules are preserved.

    Raises:
        NotFoundError: Unknown tier id.
        LockedEntryError: Attempt to change the tier id.
        InvalidRangeError: Negative threshold or invalid earning rule values.
        DuplicateNameError: Renaming onto an existing name, when enforced.
    """
    tier = get_tier(program, tier_id)
    changes = as_partial(partial)

    new_id_value = changes.pop("id", tier_id)
    if new_id_value != tier_id:
        raise LockedEntryError("Tier", tier_id, "Tier id cannot be changed")

    merged = tier.model_dump()
    rules_partial = changes.pop("earningRules", None)
    if rules_partial is not None:
        merged["earningRules"] = update_earning_rules(tier.earningRules, rules_partial)
    merged.update(changes)

    updated = Tier.model_validate(merged)
    _check_threshold(updated.threshold)
    if updated.name != tier.name:
        _check_unique_tier_name(program, updated.name, exclude_id=tier_id)

    tiers = [updated if existing.id == tier_id else existing for existing in program.tiers]
    return program.model_copy(update={"tiers": tiers})


def remove_tier(program: ValueProgram, tier_id: str) -> ValueProgram:
    """
    Remove a tier permanently.

    Raises:
        NotFoundError: Unknown tier id.
    """
    get_tier(program, tier_id)
    logger.info(f"Tier {tier_id} removed")
    return program.model_copy(update={
        "tiers": [tier for tier in program.tiers if tier.id != tier_id],
    })


# =============================================================================
# Finalize-time Validation
# =============================================================================


def validate_program(program: ValueProgram) -> List[InvalidRangeError]:
    """
    Validate the authoritative parts of a program before it is finalized.

    Checks the value config, then either every tier (threshold and earning
    rules) or the program-wide earning rules, depending on useTiers.

    Returns:
        List of errors; empty when the program is valid.
    """
    errors = list(iter_value_config_errors(program.valueConfig))

    if program.useTiers:
        if not program.tiers:
            errors.append(InvalidRangeError(
                "tiers",
                "At least one tier is required while tiers are in use",
                0,
            ))
        for tier in program.tiers:
            if tier.threshold < 0:
                errors.append(InvalidRangeError(
                    f"tiers.{tier.id}.threshold",
                    "Tier threshold must not be negative",
                    tier.threshold,
                ))
            errors.extend(validate_earning_rules(tier.earningRules, prefix=f"tiers.{tier.id}.earningRules"))
    else:
        errors.extend(validate_earning_rules(program.programEarningRules, prefix="programEarningRules"))

    return errors
