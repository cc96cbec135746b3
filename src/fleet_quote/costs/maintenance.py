from __future__ import annotations

import math

from fleet_quote.rates.config import RateConfig, VehicleGroupTable


def service_counts(*, group: VehicleGroupTable, contract_months: int, monthly_km: float) -> tuple[int, int]:
    """(revisions, tire_changes) over the whole contract; at least one revision."""
    total_km = monthly_km * contract_months
    revisions = max(1, math.ceil(total_km / group.revision_interval_km))
    tire_changes = max(0, math.ceil(total_km / group.tire_interval_km))
    return revisions, tire_changes


def maintenance(*, group: VehicleGroupTable, contract_months: int, monthly_km: float) -> float:
    """Revision and tire cost over the contract, spread evenly per month."""
    if contract_months <= 0:
        raise ValueError("contract_months must be > 0")
    revisions, tire_changes = service_counts(group=group, contract_months=contract_months, monthly_km=monthly_km)
    total = group.revision_cost * revisions + group.tire_cost * tire_changes
    return float(total / contract_months)


def tracking(*, has_tracking: bool, rates: RateConfig) -> float:
    # Reported on its own line, never inside maintenance.
    return float(rates.tracking_fee) if has_tracking else 0.0
