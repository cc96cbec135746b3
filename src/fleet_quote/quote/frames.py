from __future__ import annotations

from dataclasses import asdict, replace
from typing import Any

import pandas as pd

from fleet_quote.quote.models import QuoteCalculationResult, QuoteVehicle, Vehicle, VehicleQuoteParams

REQUIRED_COLUMNS = ("id", "value", "group")

_INT_PARAMS = ("contract_months", "monthly_km", "operation_severity")
_BOOL_PARAMS = ("has_tracking", "include_ipva", "include_licensing", "include_taxes")

_TRUE = {"1", "true", "yes", "y", "t", "sim"}
_FALSE = {"0", "false", "no", "n", "f", "nao", "não"}


def _as_bool(v: Any, col: str) -> bool:
    if isinstance(v, (bool, int, float)):
        return bool(v)
    s = str(v).strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    raise ValueError(f"column '{col}' has a non-boolean value: {v!r}")


def _row_overrides(row: pd.Series) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for col in _INT_PARAMS:
        if col in row.index and pd.notna(row[col]):
            out[col] = int(row[col])
    for col in _BOOL_PARAMS:
        if col in row.index and pd.notna(row[col]):
            out[col] = _as_bool(row[col], col)
    if "protection_plan_id" in row.index and pd.notna(row["protection_plan_id"]):
        out["protection_plan_id"] = str(row["protection_plan_id"])
    return out


def fleet_from_frame(df: pd.DataFrame, global_params: VehicleQuoteParams) -> tuple[QuoteVehicle, ...]:
    """
    Build quote vehicles from a fleet table.

    Required columns: id, value, group. Any param column (contract_months,
    monthly_km, ...) that is filled for a row becomes that vehicle's own
    override, starting from the global params.
    """
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"fleet table is missing columns: {missing}")

    items = []
    for _, row in df.iterrows():
        vehicle = Vehicle(
            id=str(row["id"]),
            value=float(row["value"]) if pd.notna(row["value"]) else 0.0,
            group_code=str(row["group"]),
            description=str(row["description"]) if "description" in row.index and pd.notna(row["description"]) else None,
        )
        overrides = _row_overrides(row)
        params = replace(global_params, **overrides) if overrides else None
        items.append(QuoteVehicle(vehicle=vehicle, params=params))
    return tuple(items)


def breakdowns_frame(result: QuoteCalculationResult) -> pd.DataFrame:
    return pd.DataFrame([asdict(r) for r in result.vehicle_results])
