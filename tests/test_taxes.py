from __future__ import annotations

from fleet_quote.costs.taxes import financial_cost, ipva, licensing, selic_for_term
from fleet_quote.rates.config import TaxIndices, VehicleGroupTable

GROUP = VehicleGroupTable(
    revision_interval_km=10_000,
    revision_cost=300.0,
    tire_interval_km=40_000,
    tire_cost=1200.0,
    ipva_rate=0.04,
    licensing_fee=150.0,
)


def test_selic_tiers():
    idx = TaxIndices()
    assert selic_for_term(24, idx) == 10.25
    assert selic_for_term(20, idx) == 11.75
    assert selic_for_term(18, idx) == 11.75
    assert selic_for_term(12, idx) == 12.75
    # no extrapolation below the shortest tier
    assert selic_for_term(6, idx) == 12.75


def test_financial_cost_uses_selic_plus_spread():
    c = financial_cost(vehicle_value=100_000, contract_months=24, indices=TaxIndices(), include=True)
    assert abs(c - 100_000 * (10.25 + 5.30) / 100 / 12) < 1e-9


def test_taxes_excluded_are_zero():
    assert financial_cost(vehicle_value=100_000, contract_months=24, indices=TaxIndices(), include=False) == 0.0
    assert ipva(vehicle_value=100_000, group=GROUP, include=False) == 0.0
    assert licensing(group=GROUP, include=False) == 0.0


def test_ipva_and_licensing_are_monthly():
    assert abs(ipva(vehicle_value=120_000, group=GROUP, include=True) - 400.0) < 1e-9
    assert abs(licensing(group=GROUP, include=True) - 12.5) < 1e-9


def test_value_proportional_taxes_zero_for_non_positive_value():
    assert ipva(vehicle_value=0.0, group=GROUP, include=True) == 0.0
    assert financial_cost(vehicle_value=-1.0, contract_months=12, indices=TaxIndices(), include=True) == 0.0
