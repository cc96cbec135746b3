from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
from dataclasses import asdict
from typing import Any

import pandas as pd

from fleet_quote.costs.surcharges import InMemoryPlanSource, ProtectionCostResolver
from fleet_quote.errors import FleetQuoteError
from fleet_quote.logging_config import configure_logging
from fleet_quote.pricing.roic import Justification, RoicState, accept, adjust, suggest
from fleet_quote.pricing.roic_analytics import roic_report
from fleet_quote.quote.aggregator import QuoteAggregator
from fleet_quote.quote.frames import breakdowns_frame, fleet_from_frame
from fleet_quote.quote.models import Client, InsufficientData, Quote, QuoteCalculationResult, Segment, VehicleQuoteParams
from fleet_quote.rates.provider import JsonFileRateSource, RateProvider, StaticRateSource


def _mkdirp(path: str) -> None:
    d = os.path.dirname(path)
    if d:
        os.makedirs(d, exist_ok=True)


def _state_dict(state: RoicState) -> dict[str, Any]:
    d = asdict(state)
    d["status"] = state.status.value
    d["annual_roic"] = state.annual_roic
    return d


def _global_params(args: argparse.Namespace) -> VehicleQuoteParams:
    try:
        return VehicleQuoteParams(
            contract_months=args.contract_months,
            monthly_km=args.monthly_km,
            operation_severity=args.operation_severity,
            has_tracking=args.tracking,
            protection_plan_id=args.protection_plan_id,
            include_ipva=args.include_ipva,
            include_licensing=args.include_licensing,
            include_taxes=args.include_taxes,
        )
    except ValueError as e:
        raise SystemExit(str(e)) from e


def _build_aggregator(args: argparse.Namespace) -> QuoteAggregator:
    source = JsonFileRateSource(args.rates_json) if args.rates_json else StaticRateSource()
    provider = RateProvider(source, ttl_seconds=args.rate_ttl_seconds)
    plans = InMemoryPlanSource.from_json_file(args.plans_json) if args.plans_json else InMemoryPlanSource()
    return QuoteAggregator(provider, ProtectionCostResolver(plans))


def cmd_quote(args: argparse.Namespace) -> int:
    df = pd.read_csv(args.fleet_csv)
    global_params = _global_params(args)
    try:
        vehicles = fleet_from_frame(df, global_params)
    except ValueError as e:
        raise SystemExit(f"--fleet-csv: {e}") from e

    client = Client(id=args.client_id, name=args.client_name or args.client_id) if args.client_id else None
    quote = Quote(
        client=client,
        vehicles=vehicles,
        global_params=global_params,
        use_global_params=args.use_global_params,
        segment=Segment(args.segment),
    )
    aggregator = _build_aggregator(args)
    outcome = asyncio.run(aggregator.calculate(quote))
    if isinstance(outcome, InsufficientData):
        print(json.dumps({"insufficient_data": outcome.reason}, indent=2, sort_keys=True))
        return 1

    result: QuoteCalculationResult = outcome
    state = suggest(RoicState.unset(), result, (item.vehicle.value for item in quote.vehicles))

    out: dict[str, Any] = {
        "client": asdict(client) if client else None,
        "segment": quote.segment.value,
        "num_vehicles": len(result.vehicle_results),
        "total_cost": result.total_cost,
        "provisional": result.provisional,
        "protection_errors": list(result.protection_errors),
        "total_vehicle_value": quote.total_vehicle_value,
        "roic": _state_dict(state),
    }
    if args.out_csv:
        _mkdirp(args.out_csv)
        breakdowns_frame(result).to_csv(args.out_csv, index=False)
        out["out_csv"] = args.out_csv
    else:
        out["vehicle_results"] = [asdict(r) for r in result.vehicle_results]
    print(json.dumps(out, indent=2, sort_keys=True))
    return 0


def cmd_roic(args: argparse.Namespace) -> int:
    result = QuoteCalculationResult(vehicle_results=(), total_cost=args.total_cost)
    state = suggest(RoicState.unset(), result, [args.total_vehicle_value])
    if args.roic is not None:
        justification = None
        if args.reason is not None or args.authorized_by is not None:
            justification = Justification(reason=args.reason or "", authorized_by=args.authorized_by or "")
        try:
            state = adjust(state, args.roic, justification)
        except ValueError as e:
            raise SystemExit(f"--roic: {e}") from e

    out: dict[str, Any] = {"state": _state_dict(state)}
    try:
        record = accept(state)
    except FleetQuoteError as e:
        out["error"] = {"code": e.code, "message": e.message}
        print(json.dumps(out, indent=2, sort_keys=True))
        return 2
    out["accepted"] = asdict(record)
    out["accepted"]["annual_roic"] = record.annual_roic
    print(json.dumps(out, indent=2, sort_keys=True))
    return 0


def cmd_roic_report(args: argparse.Namespace) -> int:
    df = pd.read_csv(args.csv)
    try:
        summary, buckets = roic_report(df)
    except ValueError as e:
        raise SystemExit(f"--csv: {e}") from e
    out = {
        "summary": asdict(summary),
        "distribution": [asdict(b) for b in buckets],
    }
    print(json.dumps(out, indent=2, sort_keys=True))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="fleet-quote")
    p.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = p.add_subparsers(dest="cmd", required=True)

    q = sub.add_parser("quote", help="Price a fleet from a CSV of vehicles (id, value, group).")
    q.add_argument("--fleet-csv", required=True)
    q.add_argument("--client-id", default=None)
    q.add_argument("--client-name", default=None)
    q.add_argument("--segment", default=Segment.GTF.value, choices=[s.value for s in Segment])
    q.add_argument("--contract-months", type=int, default=24)
    q.add_argument("--monthly-km", type=int, default=3000)
    q.add_argument("--operation-severity", type=int, default=3)
    q.add_argument("--tracking", action="store_true", default=False)
    q.add_argument("--protection-plan-id", default=None)
    q.add_argument("--include-ipva", action="store_true", default=False)
    q.add_argument("--include-licensing", action="store_true", default=False)
    q.add_argument("--include-taxes", action="store_true", default=False)
    q.add_argument(
        "--use-global-params",
        action="store_true",
        default=False,
        help="Ignore per-vehicle param columns in the CSV.",
    )
    q.add_argument("--rates-json", default=None, help="Rate record; defaults are used when omitted.")
    q.add_argument("--plans-json", default=None, help="JSON list of {id, monthly_cost} protection plans.")
    q.add_argument("--rate-ttl-seconds", type=float, default=300.0)
    q.add_argument("--out-csv", default=None, help="Write per-vehicle breakdowns here instead of stdout.")
    q.set_defaults(func=cmd_quote)

    r = sub.add_parser("roic", help="Suggest a ROIC for a quote and validate an override.")
    r.add_argument("--total-cost", type=float, required=True, help="Monthly fleet cost.")
    r.add_argument("--total-vehicle-value", type=float, required=True)
    r.add_argument("--roic", type=float, default=None, help="Monthly ROIC override, in percent.")
    r.add_argument("--reason", default=None)
    r.add_argument("--authorized-by", default=None)
    r.set_defaults(func=cmd_roic)

    rr = sub.add_parser("roic-report", help="ROIC distribution of past quotes (monthly_value, vehicle_value).")
    rr.add_argument("--csv", required=True)
    rr.set_defaults(func=cmd_roic_report)

    return p


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    configure_logging(level=getattr(logging, args.log_level))
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
