"""
Value Program Test Module

Covers value-type variants, hybrid strategies, the tiering selector, tier
CRUD and finalize-time validation.
"""

import pytest
from pydantic import ValidationError

from loyalty_backend.core.errors import (
    DuplicateNameError,
    InvalidRangeError,
    LockedEntryError,
    NotFoundError,
)
from loyalty_backend.models.enums import EarningMode, HybridStrategy, TierColor, ValueType
from loyalty_backend.models.schemas import (
    CashbackValueConfig,
    HybridValueConfig,
    PointsValueConfig,
    ValueProgram,
)
from loyalty_backend.services.value_program import (
    add_tier,
    default_value_program,
    earning_mode,
    get_tier,
    remove_tier,
    resolve_earning_rules,
    set_use_tiers,
    set_value_type,
    sorted_tiers,
    update_program_earning_rules,
    update_tier,
    update_value_config,
    validate_program,
)


@pytest.fixture
def program() -> ValueProgram:
    return default_value_program()


@pytest.fixture
def tiered_program(program):
    """Program with Silver (500) and Bronze (0) tiers, in that insertion order."""
    program, _ = add_tier(program, 'Silver', 500, TierColor.SILVER)
    program, _ = add_tier(program, 'Bronze', 0, TierColor.BRONZE)
    return set_use_tiers(program, True)


class TestValueTypeVariants:

    def test_default_program_is_points(self, program):
        assert program.valueType == ValueType.POINTS
        assert isinstance(program.valueConfig, PointsValueConfig)
        assert program.valueConfig.pointValue == 0.01

    def test_switch_resets_config_to_new_variant(self, program):
        program = update_value_config(program, {'minRedemption': 250})
        switched = set_value_type(program, ValueType.CASHBACK)
        assert isinstance(switched.valueConfig, CashbackValueConfig)
        assert switched.valueConfig.cashbackPercentage == 1.0

    def test_hybrid_to_points_drops_hybrid_fields(self, program):
        """Nothing of the hybrid config survives a switch to points."""
        hybrid = set_value_type(program, ValueType.HYBRID)
        hybrid = update_value_config(hybrid, {'hybridStrategy': 'both'})
        points = set_value_type(hybrid, ValueType.POINTS)

        dumped = points.valueConfig.model_dump()
        assert 'hybridStrategy' not in dumped
        assert 'dualEarning' not in dumped
        assert 'conversion' not in dumped
        assert points.valueConfig == PointsValueConfig()

    def test_selecting_current_type_keeps_config(self, program):
        program = update_value_config(program, {'minRedemption': 250})
        assert set_value_type(program, ValueType.POINTS) is program

    def test_field_of_other_variant_rejected(self, program):
        with pytest.raises(ValidationError):
            update_value_config(program, {'cashbackPercentage': 5})

    def test_mismatched_variant_rejected_at_construction(self):
        with pytest.raises(ValidationError):
            ValueProgram(valueType=ValueType.CREDITS, valueConfig=PointsValueConfig())

    def test_nullable_cap_can_be_cleared(self, program):
        program = set_value_type(program, ValueType.CASHBACK)
        program = update_value_config(program, {'cashbackCap': 50})
        program = update_value_config(program, {'cashbackCap': None})
        assert program.valueConfig.cashbackCap is None

    def test_out_of_range_percentage(self, program):
        program = set_value_type(program, ValueType.CASHBACK)
        with pytest.raises(InvalidRangeError):
            update_value_config(program, {'cashbackPercentage': 150})

    @pytest.mark.parametrize('value_type, mode', [
        (ValueType.POINTS, EarningMode.CONTINUOUS),
        (ValueType.CASHBACK, EarningMode.CONTINUOUS),
        (ValueType.CREDITS, EarningMode.THRESHOLD),
        (ValueType.VOUCHERS, EarningMode.THRESHOLD),
        (ValueType.HYBRID, EarningMode.HYBRID),
    ])
    def test_earning_mode(self, value_type, mode):
        assert earning_mode(value_type) == mode


class TestHybridStrategies:

    @pytest.fixture
    def hybrid(self, program):
        return set_value_type(program, ValueType.HYBRID)

    def test_default_is_dual(self, hybrid):
        config = hybrid.valueConfig
        assert isinstance(config, HybridValueConfig)
        assert config.hybridStrategy == HybridStrategy.DUAL
        assert config.dualEarning is not None
        assert config.conversion is None

    def test_switch_to_conversion_swaps_blocks(self, hybrid):
        updated = update_value_config(hybrid, {'hybridStrategy': 'conversion'})
        assert updated.valueConfig.dualEarning is None
        assert updated.valueConfig.conversion.fromAmount == 100

    def test_both_keeps_existing_dual_values(self, hybrid):
        hybrid = update_value_config(hybrid, {'dualEarning': {'secondaryRate': 3}})
        updated = update_value_config(hybrid, {'hybridStrategy': 'both'})
        assert updated.valueConfig.dualEarning.secondaryRate == 3
        assert updated.valueConfig.conversion is not None

    def test_unused_block_rejected(self, hybrid):
        with pytest.raises(ValidationError):
            update_value_config(hybrid, {'conversion': {'fromAmount': 50}})

    def test_hybrid_cannot_reference_itself(self, hybrid):
        with pytest.raises(ValidationError):
            update_value_config(hybrid, {'dualEarning': {'primaryType': 'hybrid'}})

    @pytest.mark.parametrize('changes', [
        {'hybridStrategy': 'triple'},
        {'dualEarning': 3},
    ])
    def test_malformed_hybrid_changes(self, hybrid, changes):
        with pytest.raises(ValidationError):
            update_value_config(hybrid, changes)
        assert hybrid.valueConfig.hybridStrategy == HybridStrategy.DUAL


@pytest.mark.invariant
class TestTieringSelector:

    def test_toggle_is_reversible(self, program):
        """Tiers and program rules survive useTiers true -> false -> true."""
        program, _ = add_tier(program, 'Gold', 1000, TierColor.GOLD)
        program = update_program_earning_rules(program, {'baseRate': {'unitsEarned': 2}})

        flipped = set_use_tiers(set_use_tiers(program, True), False)
        assert flipped.tiers == program.tiers
        assert flipped.programEarningRules == program.programEarningRules

        back = set_use_tiers(flipped, True)
        assert back.tiers == program.tiers

    def test_resolve_program_rules_when_untiered(self, program):
        assert resolve_earning_rules(program) is program.programEarningRules

    def test_resolve_tier_rules_when_tiered(self, tiered_program):
        tier = tiered_program.tiers[0]
        assert resolve_earning_rules(tiered_program, tier.id) is tier.earningRules

    def test_resolve_requires_tier_id_when_tiered(self, tiered_program):
        with pytest.raises(InvalidRangeError) as exc_info:
            resolve_earning_rules(tiered_program)
        assert exc_info.value.field == 'tier_id'


class TestTiers:

    def test_add_tier_generates_id_and_default_rules(self, program):
        program, tier = add_tier(program, 'Gold', 1000, TierColor.GOLD, ['Free shipping'])
        assert tier.id.startswith('tier_')
        assert tier.benefits == ['Free shipping']
        assert tier.earningRules.behavioralBonuses.firstPurchase is not None
        assert program.tiers == [tier]

    def test_ids_are_unique(self, program):
        program, first = add_tier(program, 'A', 0, TierColor.BLUE)
        program, second = add_tier(program, 'B', 0, TierColor.GREEN)
        assert first.id != second.id

    def test_sorted_by_threshold_without_reordering_storage(self, tiered_program):
        assert [tier.name for tier in sorted_tiers(tiered_program)] == ['Bronze', 'Silver']
        assert [tier.name for tier in tiered_program.tiers] == ['Silver', 'Bronze']

    def test_negative_threshold_rejected(self, program):
        with pytest.raises(InvalidRangeError):
            add_tier(program, 'Negative', -1, TierColor.BRONZE)

    def test_duplicate_names_allowed_by_default(self, program):
        program, _ = add_tier(program, 'Gold', 100, TierColor.GOLD)
        program, _ = add_tier(program, 'Gold', 200, TierColor.GOLD)
        assert len(program.tiers) == 2

    def test_duplicate_names_rejected_when_enforced(self, program, enforce_unique_names):
        program, _ = add_tier(program, 'Gold', 100, TierColor.GOLD)
        with pytest.raises(DuplicateNameError):
            add_tier(program, ' gold ', 200, TierColor.GOLD)

    def test_update_tier_merges_earning_rules(self, tiered_program):
        tier_id = tiered_program.tiers[0].id
        updated = update_tier(tiered_program, tier_id, {
            'name': 'Silver Plus',
            'earningRules': {'behavioralBonuses': {'firstPurchase': {'enabled': True}}},
        })
        tier = get_tier(updated, tier_id)
        assert tier.name == 'Silver Plus'
        assert tier.threshold == 500
        assert tier.earningRules.behavioralBonuses.firstPurchase.enabled is True
        assert tier.earningRules.behavioralBonuses.firstPurchase.points == 500

    def test_tier_id_is_immutable(self, tiered_program):
        tier_id = tiered_program.tiers[0].id
        with pytest.raises(LockedEntryError):
            update_tier(tiered_program, tier_id, {'id': 'tier_other'})

    def test_unknown_tier_raises(self, tiered_program):
        with pytest.raises(NotFoundError):
            update_tier(tiered_program, 'tier_missing', {'name': 'X'})
        with pytest.raises(NotFoundError):
            remove_tier(tiered_program, 'tier_missing')

    def test_remove_tier(self, tiered_program):
        tier_id = tiered_program.tiers[0].id
        updated = remove_tier(tiered_program, tier_id)
        assert [tier.name for tier in updated.tiers] == ['Bronze']


class TestValidateProgram:

    def test_default_program_is_valid(self, program):
        assert validate_program(program) == []

    def test_tiered_program_needs_a_tier(self, program):
        errors = validate_program(set_use_tiers(program, True))
        assert [error.field for error in errors] == ['tiers']

    def test_only_authoritative_rules_are_checked(self, tiered_program):
        """An incomplete program-wide rule set does not block a tiered program."""
        program = update_program_earning_rules(tiered_program, {
            'behavioralBonuses': {'birthday': {'enabled': True, 'rewardType': 'voucher', 'voucherType': 'sku'}},
        })
        assert validate_program(program) == []
        assert len(validate_program(set_use_tiers(program, False))) == 1
