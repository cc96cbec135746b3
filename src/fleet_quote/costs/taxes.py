from __future__ import annotations

from fleet_quote.rates.config import TaxIndices, VehicleGroupTable


def ipva(*, vehicle_value: float, group: VehicleGroupTable, include: bool) -> float:
    # Annual ownership tax spread over 12 months.
    if not include or vehicle_value <= 0:
        return 0.0
    return float(vehicle_value * group.ipva_rate / 12.0)


def licensing(*, group: VehicleGroupTable, include: bool) -> float:
    if not include:
        return 0.0
    return float(group.licensing_fee / 12.0)


def selic_for_term(contract_months: int, indices: TaxIndices) -> float:
    """SELIC tier for a contract length. Terms under 12 months use the 12-month tier."""
    if contract_months >= 24:
        return indices.selic_24
    if contract_months >= 18:
        return indices.selic_18
    return indices.selic_12


def financial_cost(
    *,
    vehicle_value: float,
    contract_months: int,
    indices: TaxIndices,
    include: bool,
) -> float:
    """Monthly cost of the capital tied up in the vehicle at SELIC + spread."""
    if not include or vehicle_value <= 0:
        return 0.0
    annual_rate = selic_for_term(contract_months, indices) + indices.spread
    return float(vehicle_value * annual_rate / 100.0 / 12.0)
