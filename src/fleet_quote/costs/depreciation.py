from __future__ import annotations

from fleet_quote.errors import InvalidSeverityError
from fleet_quote.rates.config import RateConfig

MIN_SEVERITY = 1
MAX_SEVERITY = 6
DEFAULT_SEVERITY = 3


def is_valid_severity(severity: object) -> bool:
    return isinstance(severity, int) and not isinstance(severity, bool) and MIN_SEVERITY <= severity <= MAX_SEVERITY


def clamp_severity(severity: object) -> int:
    """Caller-side guard: anything outside 1..6 becomes the middle level 3."""
    if is_valid_severity(severity):
        return severity  # type: ignore[return-value]
    return DEFAULT_SEVERITY


def depreciation(
    *,
    vehicle_value: float,
    contract_months: int,
    monthly_km: float,
    severity: int,
    rates: RateConfig,
) -> float:
    """
    Monthly depreciation of one vehicle.

    rate     = base * (25 - contract_months) / 12
    mileage  = 1 + ((monthly_km - 1000) / 5000) * mileage_multiplier
    severity = 1 + (severity - 1) * severity_multiplier

    Shorter contracts depreciate faster per month. Severity is not coerced
    here; callers clamp it with ``clamp_severity`` first.
    """
    if not is_valid_severity(severity):
        raise InvalidSeverityError(severity)
    if vehicle_value <= 0:
        return 0.0

    rate = rates.base_depreciation * (25 - contract_months) / 12.0
    mileage_mult = 1.0 + ((monthly_km - 1000.0) / 5000.0) * rates.mileage_multiplier
    severity_mult = 1.0 + (severity - 1) * rates.severity_multiplier
    return float(vehicle_value * rate * mileage_mult * severity_mult)
