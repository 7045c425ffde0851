"""
Signal Template Builder Test Module

Covers the five-step editor:
- Linear navigation with no-op boundaries
- Draft seeding for new and edited templates
- save() as append (new) or replace-by-id (edit)
- cancel() leaves stored templates untouched
"""

import pytest

from loyalty_backend.core.errors import IncompleteTemplateError, InvalidRangeError, LockedEntryError
from loyalty_backend.models.enums import BuilderStep, SignalCondition, SignalMetric
from loyalty_backend.services.queues import add_signal, default_queues, find_queue
from loyalty_backend.services.signal_builder import SignalTemplateBuilder


@pytest.fixture
def queues():
    return default_queues()


@pytest.fixture
def builder():
    return SignalTemplateBuilder('customer_intelligence')


class TestNavigation:

    def test_starts_at_metric(self, builder):
        assert builder.step == BuilderStep.METRIC

    def test_back_at_first_step_is_noop(self, builder):
        assert builder.back() == BuilderStep.METRIC

    def test_next_at_last_step_is_noop(self, builder):
        for _ in range(4):
            builder.next()
        assert builder.step == BuilderStep.REVIEW
        assert builder.next() == BuilderStep.REVIEW

    def test_fixed_order(self, builder):
        visited = [builder.step] + [builder.next() for _ in range(4)]
        assert visited == [
            BuilderStep.METRIC,
            BuilderStep.OPERATOR,
            BuilderStep.CONDITIONS,
            BuilderStep.ACTIONS,
            BuilderStep.REVIEW,
        ]

    def test_review_reachable_while_incomplete(self, builder):
        """Navigation never validates the draft."""
        assert builder.go_to(BuilderStep.REVIEW) == BuilderStep.REVIEW
        assert builder.missing_fields() == ['name', 'actions']


class TestDraft:

    def test_new_draft_has_defaults_and_stable_id(self, builder):
        draft = builder.draft
        assert draft.id.startswith('signal_')
        assert draft.metric == SignalMetric.REVENUE
        assert draft.condition == SignalCondition.LESS_THAN
        assert draft.cooldownHours == 24

        builder.update({'name': 'Churn watch'})
        assert builder.draft.id == draft.id

    def test_id_cannot_change(self, builder):
        with pytest.raises(LockedEntryError):
            builder.update({'id': 'signal_other'})

    def test_toggle_action(self, builder):
        assert builder.toggle_action('Send email alert') == ['Send email alert']
        assert builder.toggle_action('Trigger automation') == ['Send email alert', 'Trigger automation']
        assert builder.toggle_action('Send email alert') == ['Trigger automation']

    def test_gated_input_kept_in_draft(self, builder):
        """Switching away from between and back does not lose thresholdMax."""
        builder.update({'condition': 'between', 'thresholdMax': 50})
        builder.update({'condition': 'less_than'})
        builder.update({'condition': 'between'})
        assert builder.draft.thresholdMax == 50

    def test_preview_does_not_close(self, builder):
        builder.update({'name': 'Churn watch', 'actions': ['Alert account manager']})
        assert builder.preview().name == 'Churn watch'
        assert builder.is_open


class TestSave:

    def test_save_new_appends(self, builder, queues):
        builder.update({'name': 'Churn watch', 'metric': 'churn_risk_percentage'})
        builder.toggle_action('Alert account manager')
        updated = builder.save(queues)

        signals = find_queue(updated, 'customer_intelligence').signals
        assert len(signals) == 1
        assert signals[0].id == builder.draft.id
        assert not builder.is_open

    def test_incomplete_draft_names_missing_fields(self, builder, queues):
        with pytest.raises(IncompleteTemplateError) as exc_info:
            builder.save(queues)
        assert exc_info.value.missing_fields == ['name', 'actions']
        assert builder.is_open

    def test_between_with_inverted_bounds(self, builder, queues):
        builder.update({
            'name': 'Basket band',
            'actions': ['Send email alert'],
            'condition': 'between',
            'threshold': 10,
            'thresholdMax': 5,
        })
        with pytest.raises(InvalidRangeError):
            builder.save(queues)
        assert builder.draft.threshold == 10

    def test_between_with_equal_bounds(self, builder, queues):
        builder.update({
            'name': 'Basket band',
            'actions': ['Send email alert'],
            'condition': 'between',
            'threshold': 10,
            'thresholdMax': 10,
        })
        with pytest.raises(InvalidRangeError):
            builder.save(queues)
        assert builder.is_open

        builder.update({'thresholdMax': 11})
        updated = builder.save(queues)
        assert find_queue(updated, 'customer_intelligence').signals[0].thresholdMax == 11

    def test_closed_builder_refuses_use(self, builder, queues):
        builder.cancel()
        with pytest.raises(RuntimeError):
            builder.next()
        with pytest.raises(RuntimeError):
            builder.save(queues)


class TestEdit:

    @pytest.fixture
    def stored(self, queues, signal_data):
        return add_signal(queues, 'customer_intelligence', signal_data)

    def test_edit_seeds_from_stored_template(self, stored, signal_data):
        builder = SignalTemplateBuilder.for_signal(stored, 'customer_intelligence', signal_data['id'])
        assert builder.is_editing
        assert builder.draft.id == signal_data['id']
        assert builder.draft.threshold == -10

    def test_edit_save_replaces_by_id(self, stored, signal_data):
        builder = SignalTemplateBuilder.for_signal(stored, 'customer_intelligence', signal_data['id'])
        builder.update({'threshold': -20})
        updated = builder.save(stored)

        signals = find_queue(updated, 'customer_intelligence').signals
        assert len(signals) == 1
        assert signals[0].threshold == -20

    @pytest.mark.invariant
    def test_edit_then_cancel_leaves_queue_identical(self, stored, signal_data):
        before = find_queue(stored, 'customer_intelligence').model_dump_json()

        builder = SignalTemplateBuilder.for_signal(stored, 'customer_intelligence', signal_data['id'])
        builder.update({'name': 'Renamed', 'priority': 'low'})
        builder.toggle_action('Trigger automation')
        builder.cancel()

        assert find_queue(stored, 'customer_intelligence').model_dump_json() == before
