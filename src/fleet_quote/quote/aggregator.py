from __future__ import annotations

import asyncio
from typing import Mapping

from fleet_quote.costs.surcharges import ProtectionCostResolver, ProtectionLookup
from fleet_quote.errors import ProvisionalResultError
from fleet_quote.logging_config import get_logger
from fleet_quote.quote.models import InsufficientData, Quote, QuoteCalculationResult
from fleet_quote.quote.vehicle import vehicle_breakdown
from fleet_quote.rates.config import RateConfig
from fleet_quote.rates.provider import RateProvider

logger = get_logger("quote.aggregator")

CalculationOutcome = QuoteCalculationResult | InsufficientData


def _check_inputs(quote: Quote) -> InsufficientData | None:
    if quote.client is None:
        return InsufficientData("no client selected")
    if not quote.vehicles:
        return InsufficientData("no vehicles in quote")
    return None


def _plan_ids(quote: Quote) -> list[str]:
    ids: list[str] = []
    for item in quote.vehicles:
        pid = quote.effective_params(item).protection_plan_id
        if pid is not None and pid not in ids:
            ids.append(pid)
    return ids


def _assemble(
    quote: Quote,
    rates: RateConfig,
    protections: Mapping[str | None, ProtectionLookup],
    *,
    provisional: bool,
) -> QuoteCalculationResult:
    # Shared by both paths; they differ only in how `rates` and
    # `protections` were obtained.
    results = []
    errors: list[str] = []
    for item in quote.vehicles:
        params = quote.effective_params(item)
        protection = protections[params.protection_plan_id]
        if protection.error is not None and protection.error not in errors:
            errors.append(protection.error)
        results.append(vehicle_breakdown(item.vehicle, params, rates, protection, quote.segment))

    total = 0.0
    for r in results:
        total += r.total_cost
    return QuoteCalculationResult(
        vehicle_results=tuple(results),
        total_cost=float(total),
        provisional=provisional,
        protection_errors=tuple(errors),
    )


class QuoteAggregator:
    """
    Sums per-vehicle breakdowns into a quote total.

    ``calculate`` is the authoritative path: it refreshes rates and resolves
    every protection plan. ``calculate_cached`` is the synchronous fast path:
    it reads only caches and marks its result provisional when anything was
    missing. Both run the same arithmetic, so with warm caches they agree
    exactly.
    """

    def __init__(self, rate_provider: RateProvider, protection_resolver: ProtectionCostResolver) -> None:
        self.rate_provider = rate_provider
        self.protection_resolver = protection_resolver

    async def calculate(self, quote: Quote) -> CalculationOutcome:
        missing = _check_inputs(quote)
        if missing is not None:
            return missing

        rates = await self.rate_provider.get_snapshot()
        plan_ids = _plan_ids(quote)
        lookups = await asyncio.gather(*(self.protection_resolver.resolve(pid) for pid in plan_ids))
        protections: dict[str | None, ProtectionLookup] = dict(zip(plan_ids, lookups))
        protections[None] = await self.protection_resolver.resolve(None)

        result = _assemble(quote, rates, protections, provisional=False)
        logger.info(
            "quote calculated",
            extra={"vehicles": len(result.vehicle_results), "total_cost": result.total_cost, "path": "authoritative"},
        )
        return result

    def calculate_cached(self, quote: Quote) -> CalculationOutcome:
        missing = _check_inputs(quote)
        if missing is not None:
            return missing

        rates, fresh = self.rate_provider.cached_snapshot()
        provisional = not fresh
        protections: dict[str | None, ProtectionLookup] = {}
        for pid in [None, *_plan_ids(quote)]:
            lookup = self.protection_resolver.peek(pid)
            if lookup is None:
                provisional = True
                lookup = ProtectionLookup(plan_id=pid, monthly_cost=0.0)
            protections[pid] = lookup

        result = _assemble(quote, rates, protections, provisional=provisional)
        logger.debug(
            "quote estimated",
            extra={"total_cost": result.total_cost, "provisional": provisional, "path": "cached"},
        )
        return result


def require_final(outcome: CalculationOutcome) -> QuoteCalculationResult:
    """
    Gate for persistence: only a complete, non-provisional result passes.

    An authoritative result whose protection lookups failed is rejected too,
    since its protection cost was priced as 0.
    """
    if isinstance(outcome, InsufficientData):
        raise ProvisionalResultError(f"cannot finalize quote: {outcome.reason}")
    if outcome.provisional:
        raise ProvisionalResultError("provisional result; re-run the authoritative calculation first")
    if outcome.protection_errors:
        raise ProvisionalResultError(
            "protection cost unresolved; retry the calculation: " + "; ".join(outcome.protection_errors)
        )
    return outcome


class QuoteSession:
    """
    Single-writer recalculation state for one quote being edited.

    When a recalculation is requested while an earlier one is still
    resolving, the earlier result is discarded on arrival (last write wins).
    An estimate of the quote already being recalculated does not supersede
    that recalculation.
    """

    def __init__(self, aggregator: QuoteAggregator) -> None:
        self._aggregator = aggregator
        self._generation = 0
        self._latest: Quote | None = None
        self.result: CalculationOutcome | None = None

    def _start(self, quote: Quote) -> int:
        self._generation += 1
        self._latest = quote
        return self._generation

    def estimate(self, quote: Quote) -> CalculationOutcome:
        if quote != self._latest:
            self._start(quote)
        self.result = self._aggregator.calculate_cached(quote)
        return self.result

    async def recalculate(self, quote: Quote) -> CalculationOutcome | None:
        generation = self._start(quote)
        outcome = await self._aggregator.calculate(quote)
        if generation != self._generation:
            logger.info("discarding superseded recalculation", extra={"generation": generation})
            return None
        self.result = outcome
        return outcome

    async def finalize(self, quote: Quote) -> QuoteCalculationResult:
        generation = self._start(quote)
        outcome = await self._aggregator.calculate(quote)
        if generation != self._generation:
            logger.info("discarding superseded finalization", extra={"generation": generation})
            raise ProvisionalResultError("superseded by a newer recalculation")
        self.result = outcome
        return require_final(outcome)
