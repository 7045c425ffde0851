"""
Earning Rules Test Module

Covers update_earning_rules() merge semantics and validation:
- Sub-rules not named in a partial are never clobbered
- First-touch sub-rules are filled from their defaults
- Disabling keeps parameters (soft disable)
- Birthday bonus variant switching
- Range errors and atomicity
"""

import pytest
from pydantic import ValidationError

from loyalty_backend.core.errors import InvalidRangeError, NotFoundError
from loyalty_backend.models.enums import BirthdayRewardType, EarningPeriod, VoucherType
from loyalty_backend.models.schemas import (
    BirthdayPointsBonus,
    BirthdayVoucherBonus,
    EarningRules,
)
from loyalty_backend.services.earning_rules import (
    default_earning_rules,
    new_sub_rule,
    remove_category_multiplier,
    set_category_multiplier,
    update_earning_rules,
    validate_earning_rules,
)


class TestDefaults:

    def test_every_sub_rule_present_and_disabled(self, rules):
        for group in (rules.thresholdEarning, rules.behavioralBonuses):
            for name, sub_rule in group:
                assert sub_rule is not None, name
                assert sub_rule.enabled is False, name

    def test_documented_default_values(self, rules):
        assert rules.baseRate.unitsEarned == 1
        assert rules.baseRate.perSpend == 1
        assert rules.categoryMultipliers == {}
        assert rules.thresholdEarning.periodSpend.period == EarningPeriod.MONTHLY
        assert rules.behavioralBonuses.birthday.rewardType == 'multiplier'
        assert rules.behavioralBonuses.birthday.multiplier == 2

    def test_new_sub_rule_unknown_name(self):
        with pytest.raises(KeyError):
            new_sub_rule('thresholdEarning', 'lunarCycle')


@pytest.mark.invariant
class TestNonClobberingMerge:
    """Named sub-rules change; everything else is carried over untouched."""

    def test_first_purchase_update_leaves_siblings(self, rules):
        rules = update_earning_rules(rules, {
            'behavioralBonuses': {'frequencyBonus': {'enabled': True, 'visits': 4}},
        })
        updated = update_earning_rules(rules, {
            'behavioralBonuses': {'firstPurchase': {'enabled': True, 'points': 750}},
        })

        assert updated.behavioralBonuses.firstPurchase.points == 750
        assert updated.behavioralBonuses.firstPurchase.enabled is True
        assert updated.behavioralBonuses.frequencyBonus == rules.behavioralBonuses.frequencyBonus
        assert updated.behavioralBonuses.birthday == rules.behavioralBonuses.birthday
        assert updated.behavioralBonuses.thresholdBonus == rules.behavioralBonuses.thresholdBonus
        assert updated.thresholdEarning == rules.thresholdEarning
        assert updated.baseRate == rules.baseRate

    def test_field_level_merge_inside_sub_rule(self, rules):
        updated = update_earning_rules(rules, {'thresholdEarning': {'periodSpend': {'spend': 750}}})
        period_spend = updated.thresholdEarning.periodSpend
        assert period_spend.spend == 750
        assert period_spend.reward == 50
        assert period_spend.period == EarningPeriod.MONTHLY

    def test_base_rate_field_merge(self, rules):
        updated = update_earning_rules(rules, {'baseRate': {'unitsEarned': 5}})
        assert updated.baseRate.unitsEarned == 5
        assert updated.baseRate.perSpend == 1

    def test_category_multipliers_replace_map(self, rules):
        rules = set_category_multiplier(rules, 'Coffee', 2)
        updated = update_earning_rules(rules, {'categoryMultipliers': {'Bakery': 1.5}})
        assert updated.categoryMultipliers == {'Bakery': 1.5}

    def test_none_means_not_supplied(self, rules):
        updated = update_earning_rules(rules, {'baseRate': None, 'behavioralBonuses': {'birthday': None}})
        assert updated == rules

    def test_input_is_not_modified(self, rules):
        snapshot = rules.model_dump()
        update_earning_rules(rules, {'behavioralBonuses': {'firstPurchase': {'points': 900}}})
        assert rules.model_dump() == snapshot


class TestDefaultFilling:
    """Sub-rules that were never configured are created from their defaults."""

    def test_enabling_unconfigured_sub_rule_fills_defaults(self):
        rules = EarningRules()
        assert rules.thresholdEarning.spendThreshold is None

        updated = update_earning_rules(rules, {'thresholdEarning': {'spendThreshold': {'enabled': True}}})
        spend_threshold = updated.thresholdEarning.spendThreshold
        assert spend_threshold.enabled is True
        assert spend_threshold.spend == 100
        assert spend_threshold.reward == 10

    def test_unconfigured_birthday_starts_as_multiplier(self):
        updated = update_earning_rules(EarningRules(), {'behavioralBonuses': {'birthday': {'enabled': True}}})
        assert updated.behavioralBonuses.birthday.rewardType == 'multiplier'
        assert updated.behavioralBonuses.birthday.multiplier == 2


class TestSoftDisable:

    def test_disable_keeps_parameters(self, rules):
        rules = update_earning_rules(rules, {
            'behavioralBonuses': {'thresholdBonus': {'enabled': True, 'spend': 250, 'points': 300}},
        })
        disabled = update_earning_rules(rules, {'behavioralBonuses': {'thresholdBonus': {'enabled': False}}})
        assert disabled.behavioralBonuses.thresholdBonus.enabled is False
        assert disabled.behavioralBonuses.thresholdBonus.spend == 250

        restored = update_earning_rules(disabled, {'behavioralBonuses': {'thresholdBonus': {'enabled': True}}})
        assert restored.behavioralBonuses.thresholdBonus == rules.behavioralBonuses.thresholdBonus


class TestBirthdayVariants:

    def test_switch_to_points_rebuilds_and_keeps_enabled(self, rules):
        rules = update_earning_rules(rules, {'behavioralBonuses': {'birthday': {'enabled': True}}})
        updated = update_earning_rules(rules, {'behavioralBonuses': {'birthday': {'rewardType': 'points'}}})

        birthday = updated.behavioralBonuses.birthday
        assert isinstance(birthday, BirthdayPointsBonus)
        assert birthday.enabled is True
        assert birthday.points == 500

    def test_field_of_other_variant_rejected(self, rules):
        with pytest.raises(ValidationError):
            update_earning_rules(rules, {'behavioralBonuses': {'birthday': {'points': 100}}})

    def test_sku_voucher_clears_value(self, rules):
        updated = update_earning_rules(rules, {
            'behavioralBonuses': {
                'birthday': {'rewardType': 'voucher', 'voucherType': 'sku', 'voucherSku': 'CAKE-01'},
            },
        })
        birthday = updated.behavioralBonuses.birthday
        assert isinstance(birthday, BirthdayVoucherBonus)
        assert birthday.voucherType == VoucherType.SKU
        assert birthday.voucherSku == 'CAKE-01'
        assert birthday.voucherValue is None

    def test_back_to_value_voucher_restores_default_value(self, rules):
        rules = update_earning_rules(rules, {
            'behavioralBonuses': {'birthday': {'rewardType': BirthdayRewardType.VOUCHER, 'voucherType': 'sku'}},
        })
        updated = update_earning_rules(rules, {'behavioralBonuses': {'birthday': {'voucherType': 'value'}}})
        birthday = updated.behavioralBonuses.birthday
        assert birthday.voucherSku is None
        assert birthday.voucherValue == 10


class TestRanges:

    @pytest.mark.parametrize('partial, field', [
        ({'baseRate': {'unitsEarned': -1}}, 'baseRate.unitsEarned'),
        ({'baseRate': {'perSpend': 0}}, 'baseRate.perSpend'),
        ({'categoryMultipliers': {'Coffee': -2}}, 'categoryMultipliers.Coffee'),
        ({'behavioralBonuses': {'firstPurchase': {'points': -5}}}, 'behavioralBonuses.firstPurchase.points'),
        ({'thresholdEarning': {'spendThreshold': {'spend': -100}}}, 'thresholdEarning.spendThreshold.spend'),
    ])
    def test_negative_values_raise(self, rules, partial, field):
        with pytest.raises(InvalidRangeError) as exc_info:
            update_earning_rules(rules, partial)
        assert exc_info.value.field == field

    def test_failed_update_leaves_rules_untouched(self, rules):
        snapshot = rules.model_dump()
        with pytest.raises(InvalidRangeError):
            update_earning_rules(rules, {
                'baseRate': {'unitsEarned': 3},
                'behavioralBonuses': {'firstPurchase': {'points': -1}},
            })
        assert rules.model_dump() == snapshot

    def test_unknown_sub_rule_rejected(self, rules):
        with pytest.raises(ValidationError):
            update_earning_rules(rules, {'behavioralBonuses': {'anniversary': {'enabled': True}}})

    def test_unknown_top_level_key_rejected(self, rules):
        with pytest.raises(ValidationError):
            update_earning_rules(rules, {'tierRules': {}})


class TestMalformedPartials:
    """Wrongly shaped values are shape errors, never TypeError or ValueError."""

    @pytest.mark.parametrize('partial', [
        {'baseRate': 5},
        {'categoryMultipliers': 5},
        {'thresholdEarning': ['spendThreshold']},
        {'behavioralBonuses': {'firstPurchase': 'on'}},
        {'behavioralBonuses': {'birthday': {'rewardType': 'bogus'}}},
        {'behavioralBonuses': {'birthday': {'rewardType': 'voucher', 'voucherType': 'coupon'}}},
    ])
    def test_rejected_as_validation_error(self, rules, partial):
        with pytest.raises(ValidationError):
            update_earning_rules(rules, partial)

    def test_rules_untouched_after_rejection(self, rules):
        snapshot = rules.model_dump()
        with pytest.raises(ValidationError):
            update_earning_rules(rules, {'behavioralBonuses': {'birthday': {'rewardType': 'bogus'}}})
        assert rules.model_dump() == snapshot


class TestCategoryMultipliers:

    def test_set_and_remove(self, rules):
        rules = set_category_multiplier(rules, 'Coffee', 2)
        assert rules.categoryMultipliers == {'Coffee': 2}
        assert remove_category_multiplier(rules, 'Coffee').categoryMultipliers == {}

    def test_remove_unknown_raises(self, rules):
        with pytest.raises(NotFoundError):
            remove_category_multiplier(rules, 'Tea')

    def test_negative_multiplier_raises(self, rules):
        with pytest.raises(InvalidRangeError):
            set_category_multiplier(rules, 'Coffee', -1)


class TestValidateEarningRules:

    def test_defaults_are_valid(self, rules):
        assert validate_earning_rules(rules) == []

    def test_enabled_sku_voucher_needs_sku(self, rules):
        rules = update_earning_rules(rules, {
            'behavioralBonuses': {'birthday': {'enabled': True, 'rewardType': 'voucher', 'voucherType': 'sku'}},
        })
        errors = validate_earning_rules(rules, prefix='programEarningRules')
        assert [error.field for error in errors] == ['programEarningRules.behavioralBonuses.birthday.voucherSku']
