"""Typed exceptions for the quoting engine.

Every error carries a machine-readable ``code``. Errors that describe bad
caller input also subclass ``ValueError`` so plain ``except ValueError``
handlers keep working.
"""

from __future__ import annotations


class FleetQuoteError(Exception):
    code: str = "FLEET_QUOTE_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRateConfigError(FleetQuoteError, ValueError):
    code = "INVALID_RATE_CONFIG"

    def __init__(self, field: str, value: object) -> None:
        super().__init__(f"rate config field {field!r} must be >= 0 (got {value!r})")
        self.field = field
        self.value = value


class InvalidQuoteParamsError(FleetQuoteError, ValueError):
    code = "INVALID_QUOTE_PARAMS"

    def __init__(self, field: str, value: object, expected: str) -> None:
        super().__init__(f"{field} must be {expected} (got {value!r})")
        self.field = field
        self.value = value


class InvalidSeverityError(FleetQuoteError, ValueError):
    code = "INVALID_SEVERITY"

    def __init__(self, severity: object) -> None:
        super().__init__(f"operation severity must be in 1..6 (got {severity!r})")
        self.severity = severity


class RateSourceError(FleetQuoteError):
    code = "RATE_SOURCE_ERROR"


class ProtectionPlanNotFoundError(FleetQuoteError):
    code = "PROTECTION_PLAN_NOT_FOUND"

    def __init__(self, plan_id: str) -> None:
        super().__init__(f"protection plan {plan_id!r} not found")
        self.plan_id = plan_id


class ProvisionalResultError(FleetQuoteError):
    code = "PROVISIONAL_RESULT"


class RoicStateError(FleetQuoteError):
    code = "ROIC_STATE_ERROR"


class UnjustifiedAdjustmentError(RoicStateError):
    code = "UNJUSTIFIED_ADJUSTMENT"

    def __init__(self, roic: float, suggested: float) -> None:
        super().__init__(
            f"ROIC {roic:.4f}% is below the suggested {suggested:.4f}% "
            "and needs a reason and an authorizer"
        )
        self.roic = roic
        self.suggested = suggested
