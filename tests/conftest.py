from __future__ import annotations

import asyncio

import pytest

from fleet_quote.costs.surcharges import ProtectionCostResolver, ProtectionPlan
from fleet_quote.quote.aggregator import QuoteAggregator
from fleet_quote.rates.config import RateConfig
from fleet_quote.rates.provider import RateProvider


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingRateSource:
    def __init__(self, snapshot: RateConfig | None = None) -> None:
        self.snapshot = snapshot or RateConfig.defaults()
        self.fail = False
        self.calls = 0

    async def fetch(self) -> RateConfig:
        self.calls += 1
        await asyncio.sleep(0)
        if self.fail:
            raise RuntimeError("rate service unavailable")
        return self.snapshot


class FakePlanSource:
    """Plan source with call counting, failure injection and an optional gate."""

    def __init__(self, plans: dict[str, float] | None = None, gate: asyncio.Event | None = None) -> None:
        self.plans = dict(plans or {})
        self.failing: set[str] = set()
        self.gate = gate
        self.calls: list[str] = []

    async def fetch_plan(self, plan_id: str) -> ProtectionPlan | None:
        self.calls.append(plan_id)
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        if plan_id in self.failing:
            raise ConnectionError(f"plan service down for {plan_id}")
        if plan_id not in self.plans:
            return None
        return ProtectionPlan(id=plan_id, monthly_cost=self.plans[plan_id])


def make_aggregator(
    rate_source: CountingRateSource | None = None,
    plan_source: FakePlanSource | None = None,
    clock: FakeClock | None = None,
) -> QuoteAggregator:
    provider = RateProvider(rate_source or CountingRateSource(), clock=clock or FakeClock())
    return QuoteAggregator(provider, ProtectionCostResolver(plan_source or FakePlanSource({"P1": 89.9, "P2": 120.0})))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
