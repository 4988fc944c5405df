"""Tests for leadops.scoring.reconcile — write-minimizing diff."""
import pytest

from leadops.scoring.reconcile import ReconciliationEngine
from leadops.scoring.scorer import zero_conversion_rates

RATES = {'service:Roofing': 0.6, 'zip:75001': 0.5}
EXPECTED_RATES = {'service': 0.6, 'ad_set_name': 0.0, 'ad_name': 0.0, 'lead_date': 0.0, 'zip': 0.5}
EXPECTED_SCORE = 43  # 0.6*30 + 0.5*50


@pytest.fixture
def engine():
    return ReconciliationEngine()


def test_unscored_lead_gets_an_op(engine, make_lead):
    lead = make_lead(service='Roofing', zip='75001')
    result = engine.reconcile([lead], RATES)
    assert result.changed_count == 1
    op = result.update_ops[0]
    assert op.lead_id == lead.id
    assert op.lead_score == EXPECTED_SCORE
    assert op.conversion_rates == EXPECTED_RATES


def test_op_sets_exactly_score_and_rates(engine, make_lead):
    op = engine.reconcile([make_lead(service='Roofing')], RATES).update_ops[0]
    assert set(op.set) == {'lead_score', 'conversion_rates'}


def test_unchanged_lead_gets_no_op(engine, make_lead):
    lead = make_lead(service='Roofing', zip='75001',
                     lead_score=EXPECTED_SCORE, conversion_rates=dict(EXPECTED_RATES))
    result = engine.reconcile([lead], RATES)
    assert result.update_ops == []
    assert result.changed_count == 0


def test_score_change_alone_triggers_op(engine, make_lead):
    lead = make_lead(service='Roofing', zip='75001',
                     lead_score=EXPECTED_SCORE - 1, conversion_rates=dict(EXPECTED_RATES))
    assert engine.reconcile([lead], RATES).changed_count == 1


def test_rates_change_alone_triggers_op(engine, make_lead):
    stale = dict(EXPECTED_RATES, lead_date=0.3)   # lead_date has no weight, score is the same
    lead = make_lead(service='Roofing', zip='75001', lead_score=EXPECTED_SCORE, conversion_rates=stale)
    result = engine.reconcile([lead], RATES)
    assert result.changed_count == 1
    assert result.update_ops[0].conversion_rates == EXPECTED_RATES


def test_int_and_float_zero_compare_equal(engine, make_lead):
    stored = {'service': 0, 'ad_set_name': 0, 'ad_name': 0, 'lead_date': 0, 'zip': 0}
    lead = make_lead(lead_score=0, conversion_rates=stored)
    assert engine.reconcile([lead], {}).changed_count == 0


def test_empty_stored_rates_vs_zero_snapshot_is_a_change(engine, make_lead):
    lead = make_lead(lead_score=0, conversion_rates={})
    result = engine.reconcile([lead], {})
    assert result.changed_count == 1
    assert result.update_ops[0].conversion_rates == zero_conversion_rates()


def test_changed_count_counts_only_changed(engine, make_lead):
    unchanged = [
        make_lead(service='Roofing', zip='75001', lead_score=EXPECTED_SCORE, conversion_rates=dict(EXPECTED_RATES))
        for _ in range(3)
    ]
    changed = [make_lead(service='Roofing', zip='75001') for _ in range(2)]
    result = engine.reconcile(unchanged + changed, RATES)
    assert result.changed_count == 2
    assert {op.lead_id for op in result.update_ops} == {lead.id for lead in changed}
