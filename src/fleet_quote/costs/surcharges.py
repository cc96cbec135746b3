from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping, Protocol

from fleet_quote.errors import ProtectionPlanNotFoundError
from fleet_quote.logging_config import get_logger
from fleet_quote.rates.config import RateConfig
from fleet_quote.singleflight import SingleFlight

logger = get_logger("costs.surcharges")


def extra_km_rate(*, vehicle_value: float, rates: RateConfig) -> float:
    """Price charged per kilometre driven beyond the contracted mileage."""
    if vehicle_value <= 0:
        return 0.0
    return float(vehicle_value * rates.extra_km_percentage)


@dataclass(frozen=True)
class ProtectionPlan:
    id: str
    monthly_cost: float


@dataclass(frozen=True)
class ProtectionLookup:
    plan_id: str | None
    monthly_cost: float
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


NO_PROTECTION = ProtectionLookup(plan_id=None, monthly_cost=0.0)


class ProtectionPlanSource(Protocol):
    async def fetch_plan(self, plan_id: str) -> ProtectionPlan | None: ...


class InMemoryPlanSource:
    def __init__(self, plans: Iterable[ProtectionPlan] = ()) -> None:
        self._plans = {p.id: p for p in plans}

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> InMemoryPlanSource:
        return cls(ProtectionPlan(id=str(r["id"]), monthly_cost=float(r["monthly_cost"])) for r in records)

    @classmethod
    def from_json_file(cls, path: str | Path) -> InMemoryPlanSource:
        records = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(records, list):
            raise ValueError(f"plans file {path} must hold a JSON list of {{id, monthly_cost}}")
        return cls.from_records(records)

    async def fetch_plan(self, plan_id: str) -> ProtectionPlan | None:
        return self._plans.get(plan_id)


class ProtectionCostResolver:
    """
    Monthly protection-plan cost, cached per plan for the whole session.

    Plans do not change while a quote is being negotiated, so successful
    lookups never expire. Failed lookups are reported as cost 0 with an
    error and are not cached, so the next call retries.
    """

    def __init__(self, source: ProtectionPlanSource) -> None:
        self._source = source
        self._cache: dict[str, ProtectionLookup] = {}
        self._flight = SingleFlight()

    def peek(self, plan_id: str | None) -> ProtectionLookup | None:
        if plan_id is None:
            return NO_PROTECTION
        return self._cache.get(plan_id)

    async def resolve(self, plan_id: str | None) -> ProtectionLookup:
        if plan_id is None:
            return NO_PROTECTION
        cached = self._cache.get(plan_id)
        if cached is not None:
            return cached
        return await self._flight.do(plan_id, lambda: self._fetch(plan_id))

    async def _fetch(self, plan_id: str) -> ProtectionLookup:
        try:
            plan = await self._source.fetch_plan(plan_id)
            if plan is None:
                raise ProtectionPlanNotFoundError(plan_id)
        except Exception as e:
            logger.warning("protection plan lookup failed", extra={"plan_id": plan_id, "error": str(e)})
            return ProtectionLookup(plan_id=plan_id, monthly_cost=0.0, error=str(e))

        lookup = ProtectionLookup(plan_id=plan_id, monthly_cost=float(plan.monthly_cost))
        self._cache[plan_id] = lookup
        return lookup
