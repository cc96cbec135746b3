from __future__ import annotations

import asyncio
import json

from conftest import FakePlanSource
from fleet_quote.costs.surcharges import InMemoryPlanSource, ProtectionCostResolver, extra_km_rate
from fleet_quote.rates.config import RateConfig


def test_extra_km_rate():
    assert abs(extra_km_rate(vehicle_value=100_000, rates=RateConfig.defaults()) - 0.75) < 1e-12
    assert extra_km_rate(vehicle_value=0.0, rates=RateConfig.defaults()) == 0.0


def test_no_plan_costs_nothing_and_does_not_fetch():
    source = FakePlanSource({"P1": 89.9})
    resolver = ProtectionCostResolver(source)
    lookup = asyncio.run(resolver.resolve(None))
    assert lookup.monthly_cost == 0.0
    assert lookup.ok
    assert source.calls == []


def test_plan_cost_is_cached_for_the_session():
    source = FakePlanSource({"P1": 89.9})
    resolver = ProtectionCostResolver(source)
    assert resolver.peek("P1") is None

    first = asyncio.run(resolver.resolve("P1"))
    second = asyncio.run(resolver.resolve("P1"))
    assert first.monthly_cost == 89.9
    assert second is first
    assert source.calls == ["P1"]
    assert resolver.peek("P1") is first


def test_concurrent_lookups_share_one_fetch():
    source = FakePlanSource({"P1": 89.9})
    resolver = ProtectionCostResolver(source)

    async def run():
        return await asyncio.gather(*(resolver.resolve("P1") for _ in range(4)))

    lookups = asyncio.run(run())
    assert source.calls == ["P1"]
    assert {x.monthly_cost for x in lookups} == {89.9}


def test_failed_lookup_is_zero_with_error_and_retried():
    source = FakePlanSource({"P1": 89.9})
    source.failing.add("P1")
    resolver = ProtectionCostResolver(source)

    lookup = asyncio.run(resolver.resolve("P1"))
    assert lookup.monthly_cost == 0.0
    assert not lookup.ok
    assert resolver.peek("P1") is None

    source.failing.clear()
    assert asyncio.run(resolver.resolve("P1")).monthly_cost == 89.9
    assert source.calls == ["P1", "P1"]


def test_unknown_plan_is_reported():
    resolver = ProtectionCostResolver(FakePlanSource({}))
    lookup = asyncio.run(resolver.resolve("NOPE"))
    assert lookup.monthly_cost == 0.0
    assert "NOPE" in (lookup.error or "")


def test_in_memory_source_from_json(tmp_path):
    path = tmp_path / "plans.json"
    path.write_text(json.dumps([{"id": "basic", "monthly_cost": 45.5}]), encoding="utf-8")
    resolver = ProtectionCostResolver(InMemoryPlanSource.from_json_file(path))
    assert asyncio.run(resolver.resolve("basic")).monthly_cost == 45.5
