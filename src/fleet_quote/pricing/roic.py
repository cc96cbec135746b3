from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable

from fleet_quote.errors import RoicStateError, UnjustifiedAdjustmentError
from fleet_quote.logging_config import get_logger
from fleet_quote.quote.models import QuoteCalculationResult

logger = get_logger("pricing.roic")

# Monthly ROIC, in percent of total vehicle value.
MIN_ROIC = 3.0
MAX_ROIC = 8.0


def suggested_roic(*, total_cost: float, total_vehicle_value: float) -> float:
    if total_vehicle_value <= 0:
        return MIN_ROIC
    roic = total_cost / total_vehicle_value * 100.0
    return float(min(MAX_ROIC, max(MIN_ROIC, roic)))


def adjusted_total(*, roic: float, total_vehicle_value: float) -> float:
    """Monthly price of the whole fleet at a given monthly ROIC."""
    return float(total_vehicle_value * roic / 100.0)


def annual_equivalent(monthly_roic: float) -> float:
    return float(((1.0 + monthly_roic / 100.0) ** 12 - 1.0) * 100.0)


def monthly_equivalent(annual_roic: float) -> float:
    return float(((1.0 + annual_roic / 100.0) ** (1.0 / 12.0) - 1.0) * 100.0)


@dataclass(frozen=True)
class Justification:
    reason: str
    authorized_by: str

    @property
    def is_complete(self) -> bool:
        return bool(self.reason.strip()) and bool(self.authorized_by.strip())


class RoicStatus(str, Enum):
    UNSET = "unset"
    SUGGESTED = "suggested"
    JUSTIFIED = "justified"
    UNJUSTIFIED = "unjustified"


@dataclass(frozen=True)
class RoicState:
    status: RoicStatus
    suggested_roic: float = MIN_ROIC
    roic_percentage: float = MIN_ROIC
    adjusted_total: float = 0.0
    total_vehicle_value: float = 0.0
    justification: Justification | None = None

    @classmethod
    def unset(cls) -> RoicState:
        return cls(status=RoicStatus.UNSET)

    @property
    def needs_justification(self) -> bool:
        return self.status is not RoicStatus.UNSET and self.roic_percentage < self.suggested_roic

    @property
    def is_final(self) -> bool:
        """Whether the price may be saved as the quote's final price."""
        return self.status in (RoicStatus.SUGGESTED, RoicStatus.JUSTIFIED)

    @property
    def annual_roic(self) -> float:
        return annual_equivalent(self.roic_percentage)


@dataclass(frozen=True)
class ROICAdjustment:
    """Accepted price override. An audit record; never modified once issued."""

    roic_percentage: float
    adjusted_total: float
    suggested_roic: float
    total_vehicle_value: float
    justification: Justification | None = None

    @property
    def annual_roic(self) -> float:
        return annual_equivalent(self.roic_percentage)


def suggest(
    state: RoicState,
    result: QuoteCalculationResult,
    vehicle_values: Iterable[float],
) -> RoicState:
    """
    (Re)start negotiation from a fresh calculation.

    Any previous override is dropped: a new cost basis gives a new floor.
    """
    if state.status in (RoicStatus.JUSTIFIED, RoicStatus.UNJUSTIFIED):
        logger.info(
            "ROIC override dropped for new suggestion",
            extra={"roic": state.roic_percentage, "suggested_roic": state.suggested_roic},
        )
    total_value = float(sum(vehicle_values))
    roic = suggested_roic(total_cost=result.total_cost, total_vehicle_value=total_value)
    return RoicState(
        status=RoicStatus.SUGGESTED,
        suggested_roic=roic,
        roic_percentage=roic,
        adjusted_total=adjusted_total(roic=roic, total_vehicle_value=total_value),
        total_vehicle_value=total_value,
    )


def adjust(state: RoicState, roic: float, justification: Justification | None = None) -> RoicState:
    """
    Apply a negotiator's ROIC override.

    Going below the suggested ROIC needs a complete justification; without
    one the state is UNJUSTIFIED and ``accept`` refuses it. At or above the
    suggestion the override is accepted as is and any pending justification
    is dropped.
    """
    if state.status is RoicStatus.UNSET:
        raise RoicStateError("no suggested ROIC yet; call suggest() first")
    if not math.isfinite(roic) or roic <= 0:
        raise ValueError(f"roic must be a finite number > 0, got {roic!r}")
    roic = float(min(MAX_ROIC, roic))

    base = replace(
        state,
        roic_percentage=roic,
        adjusted_total=adjusted_total(roic=roic, total_vehicle_value=state.total_vehicle_value),
    )
    if roic >= state.suggested_roic:
        return replace(base, status=RoicStatus.JUSTIFIED, justification=None)

    if justification is not None and justification.is_complete:
        return replace(base, status=RoicStatus.JUSTIFIED, justification=justification)
    return replace(base, status=RoicStatus.UNJUSTIFIED, justification=justification)


def accept(state: RoicState) -> ROICAdjustment:
    if state.status is RoicStatus.UNSET:
        raise RoicStateError("nothing to accept; ROIC is unset")
    if state.status is RoicStatus.UNJUSTIFIED:
        raise UnjustifiedAdjustmentError(state.roic_percentage, state.suggested_roic)

    record = ROICAdjustment(
        roic_percentage=state.roic_percentage,
        adjusted_total=state.adjusted_total,
        suggested_roic=state.suggested_roic,
        total_vehicle_value=state.total_vehicle_value,
        justification=state.justification,
    )
    if record.justification is not None:
        logger.info(
            "ROIC override below suggestion accepted",
            extra={
                "roic": record.roic_percentage,
                "suggested_roic": record.suggested_roic,
                "reason": record.justification.reason,
                "authorized_by": record.justification.authorized_by,
            },
        )
    return record
