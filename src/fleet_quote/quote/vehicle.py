from __future__ import annotations

from fleet_quote.costs.depreciation import clamp_severity, depreciation, is_valid_severity
from fleet_quote.costs.maintenance import maintenance, tracking
from fleet_quote.costs.surcharges import ProtectionLookup, extra_km_rate
from fleet_quote.costs.taxes import financial_cost, ipva, licensing
from fleet_quote.logging_config import get_logger
from fleet_quote.quote.models import Segment, Vehicle, VehicleCostBreakdown, VehicleQuoteParams
from fleet_quote.rates.config import RateConfig

logger = get_logger("quote.vehicle")


def effective_severity(params: VehicleQuoteParams, segment: Segment) -> int:
    if segment is Segment.ASSINATURA:
        return 1
    if not is_valid_severity(params.operation_severity):
        logger.warning(
            "operation severity out of range; using default",
            extra={"severity": params.operation_severity, "clamped_to": clamp_severity(params.operation_severity)},
        )
    return clamp_severity(params.operation_severity)


def cost_per_km(total_cost: float, contract_months: int, monthly_km: float) -> float:
    # Monthly cost over the whole contract's mileage.
    denom = contract_months * monthly_km
    if denom == 0:
        return 0.0
    return float(total_cost / denom)


def vehicle_breakdown(
    vehicle: Vehicle,
    params: VehicleQuoteParams,
    rates: RateConfig,
    protection: ProtectionLookup,
    segment: Segment = Segment.GTF,
) -> VehicleCostBreakdown:
    """Monthly cost breakdown for one vehicle. Pure; no I/O."""
    group = rates.group_table(vehicle.group_code)
    value = vehicle.value
    months = params.contract_months
    km = params.monthly_km

    depreciation_cost = depreciation(
        vehicle_value=value,
        contract_months=months,
        monthly_km=km,
        severity=effective_severity(params, segment),
        rates=rates,
    )
    maintenance_cost = maintenance(group=group, contract_months=months, monthly_km=km)
    tracking_cost = tracking(has_tracking=params.has_tracking, rates=rates)
    protection_cost = float(protection.monthly_cost)
    ipva_cost = ipva(vehicle_value=value, group=group, include=params.include_ipva)
    licensing_cost = licensing(group=group, include=params.include_licensing)
    tax_cost = financial_cost(
        vehicle_value=value,
        contract_months=months,
        indices=rates.tax_indices,
        include=params.include_taxes,
    )

    total = (
        depreciation_cost
        + maintenance_cost
        + tracking_cost
        + protection_cost
        + ipva_cost
        + licensing_cost
        + tax_cost
    )

    logger.debug(
        "vehicle cost computed",
        extra={
            "vehicle_id": vehicle.id,
            "depreciation": depreciation_cost,
            "maintenance": maintenance_cost,
            "tracking": tracking_cost,
            "protection": protection_cost,
            "ipva": ipva_cost,
            "licensing": licensing_cost,
            "tax": tax_cost,
            "total": total,
        },
    )

    return VehicleCostBreakdown(
        vehicle_id=vehicle.id,
        depreciation_cost=depreciation_cost,
        maintenance_cost=maintenance_cost,
        tracking_cost=tracking_cost,
        protection_cost=protection_cost,
        ipva_cost=ipva_cost,
        licensing_cost=licensing_cost,
        tax_cost=tax_cost,
        total_cost=float(total),
        cost_per_km=cost_per_km(total, months, km),
        extra_km_rate=extra_km_rate(vehicle_value=value, rates=rates),
        contract_months=months,
        monthly_km=km,
        protection_plan_id=params.protection_plan_id,
        protection_error=protection.error,
    )
