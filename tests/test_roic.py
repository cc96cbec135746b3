from __future__ import annotations

import math

import pytest

from fleet_quote.errors import RoicStateError, UnjustifiedAdjustmentError
from fleet_quote.pricing.roic import (
    MAX_ROIC,
    MIN_ROIC,
    Justification,
    RoicState,
    RoicStatus,
    accept,
    adjust,
    adjusted_total,
    annual_equivalent,
    monthly_equivalent,
    suggest,
    suggested_roic,
)
from fleet_quote.quote.models import QuoteCalculationResult

OK = Justification(reason="strategic account renewal", authorized_by="diretoria comercial")


def _suggested(total_cost: float, total_value: float) -> RoicState:
    result = QuoteCalculationResult(vehicle_results=(), total_cost=total_cost)
    return suggest(RoicState.unset(), result, [total_value])


def test_suggested_roic_is_clamped():
    assert suggested_roic(total_cost=3000, total_vehicle_value=100_000) == 3.0
    assert suggested_roic(total_cost=1000, total_vehicle_value=100_000) == MIN_ROIC
    assert suggested_roic(total_cost=10_000, total_vehicle_value=100_000) == MAX_ROIC
    assert abs(suggested_roic(total_cost=5500, total_vehicle_value=100_000) - 5.5) < 1e-12
    assert suggested_roic(total_cost=5000, total_vehicle_value=0) == MIN_ROIC


def test_adjusted_total():
    assert adjusted_total(roic=2.5, total_vehicle_value=100_000) == 2500.0


def test_annualization_round_trip():
    for monthly in (0.5, 2.5, 3.0, 4.75, 8.0):
        assert abs(monthly_equivalent(annual_equivalent(monthly)) - monthly) < 1e-6
    assert abs(annual_equivalent(1.0) - 12.682503013196977) < 1e-9


def test_suggest_from_calculation():
    state = _suggested(3000, 100_000)
    assert state.status is RoicStatus.SUGGESTED
    assert state.suggested_roic == 3.0
    assert state.adjusted_total == 3000.0
    assert state.is_final


def test_override_below_suggestion_needs_justification():
    state = adjust(_suggested(3000, 100_000), 2.5)
    assert state.status is RoicStatus.UNJUSTIFIED
    assert state.needs_justification
    assert not state.is_final
    assert state.adjusted_total == 2500.0
    with pytest.raises(UnjustifiedAdjustmentError):
        accept(state)

    justified = adjust(state, 2.5, OK)
    assert justified.status is RoicStatus.JUSTIFIED
    record = accept(justified)
    assert record.roic_percentage == 2.5
    assert record.adjusted_total == 2500.0
    assert record.justification == OK


@pytest.mark.parametrize(
    "justification",
    [
        Justification(reason="", authorized_by="someone"),
        Justification(reason="volume deal", authorized_by="   "),
    ],
)
def test_incomplete_justification_stays_unjustified(justification):
    state = adjust(_suggested(3000, 100_000), 2.0, justification)
    assert state.status is RoicStatus.UNJUSTIFIED
    with pytest.raises(UnjustifiedAdjustmentError):
        accept(state)


def test_boundary_at_suggested_roic():
    base = _suggested(5000, 100_000)
    assert base.suggested_roic == pytest.approx(5.0)

    at = adjust(base, base.suggested_roic)
    assert at.status is RoicStatus.JUSTIFIED
    assert at.justification is None

    below = adjust(base, base.suggested_roic - 1e-9)
    assert below.status is RoicStatus.UNJUSTIFIED


def test_raising_roic_clears_pending_requirement():
    base = _suggested(5000, 100_000)
    pending = adjust(base, 4.0, Justification(reason="price match", authorized_by=""))
    assert pending.status is RoicStatus.UNJUSTIFIED

    back_up = adjust(pending, 6.0)
    assert back_up.status is RoicStatus.JUSTIFIED
    assert back_up.justification is None
    assert accept(back_up).adjusted_total == 6000.0


def test_accepted_record_is_not_affected_by_later_changes():
    base = _suggested(5000, 100_000)
    record = accept(adjust(base, 4.0, OK))
    later = adjust(adjust(base, 4.0, OK), 7.0)
    assert later.justification is None
    assert record.roic_percentage == 4.0
    assert record.justification == OK
    with pytest.raises(AttributeError):
        record.roic_percentage = 7.0  # type: ignore[misc]


def test_override_above_max_is_capped():
    state = adjust(_suggested(5000, 100_000), 12.0)
    assert state.roic_percentage == MAX_ROIC


def test_invalid_transitions():
    with pytest.raises(RoicStateError):
        adjust(RoicState.unset(), 4.0)
    with pytest.raises(RoicStateError):
        accept(RoicState.unset())
    with pytest.raises(ValueError):
        adjust(_suggested(3000, 100_000), 0.0)


@pytest.mark.parametrize("roic", [math.nan, math.inf, -math.inf, 0.0, -1.0])
def test_non_finite_or_non_positive_override_is_rejected(roic):
    with pytest.raises(ValueError):
        adjust(_suggested(5000, 100_000), roic)


def test_annual_roic_of_state_and_record():
    state = adjust(_suggested(3000, 100_000), 2.5, OK)
    assert state.annual_roic == pytest.approx(annual_equivalent(2.5))
    assert accept(state).annual_roic == pytest.approx(annual_equivalent(2.5))


def test_suggest_drops_previous_override():
    overridden = adjust(_suggested(3000, 100_000), 2.5, OK)
    result = QuoteCalculationResult(vehicle_results=(), total_cost=4000)
    state = suggest(overridden, result, [100_000])
    assert state.status is RoicStatus.SUGGESTED
    assert state.roic_percentage == pytest.approx(4.0)
    assert state.justification is None
