from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from fleet_quote.errors import InvalidQuoteParamsError

MIN_CONTRACT_MONTHS = 6
MAX_CONTRACT_MONTHS = 24


class Segment(str, Enum):
    GTF = "GTF"
    ASSINATURA = "Assinatura"  # subscription; severity pinned to 1


@dataclass(frozen=True)
class VehicleQuoteParams:
    contract_months: int = 24
    monthly_km: int = 3000
    operation_severity: int = 3
    has_tracking: bool = False
    protection_plan_id: str | None = None
    include_ipva: bool = False
    include_licensing: bool = False
    include_taxes: bool = False

    def __post_init__(self) -> None:
        if not (MIN_CONTRACT_MONTHS <= self.contract_months <= MAX_CONTRACT_MONTHS):
            raise InvalidQuoteParamsError(
                "contract_months", self.contract_months, f"in {MIN_CONTRACT_MONTHS}..{MAX_CONTRACT_MONTHS}"
            )
        if self.monthly_km <= 0:
            raise InvalidQuoteParamsError("monthly_km", self.monthly_km, "> 0")


@dataclass(frozen=True)
class Vehicle:
    id: str
    value: float
    group_code: str
    description: str | None = None


@dataclass(frozen=True)
class QuoteVehicle:
    vehicle: Vehicle
    params: VehicleQuoteParams | None = None  # per-vehicle override


@dataclass(frozen=True)
class Client:
    id: str
    name: str


@dataclass(frozen=True)
class Quote:
    client: Client | None
    vehicles: tuple[QuoteVehicle, ...]
    global_params: VehicleQuoteParams = field(default_factory=VehicleQuoteParams)
    use_global_params: bool = False
    segment: Segment = Segment.GTF

    def effective_params(self, item: QuoteVehicle) -> VehicleQuoteParams:
        if self.use_global_params or item.params is None:
            return self.global_params
        return item.params

    @property
    def total_vehicle_value(self) -> float:
        return float(sum(item.vehicle.value for item in self.vehicles))


@dataclass(frozen=True)
class VehicleCostBreakdown:
    vehicle_id: str
    depreciation_cost: float
    maintenance_cost: float
    tracking_cost: float
    protection_cost: float
    ipva_cost: float
    licensing_cost: float
    tax_cost: float
    total_cost: float
    cost_per_km: float
    extra_km_rate: float
    contract_months: int
    monthly_km: int
    protection_plan_id: str | None = None
    protection_error: str | None = None


@dataclass(frozen=True)
class QuoteCalculationResult:
    vehicle_results: tuple[VehicleCostBreakdown, ...]
    total_cost: float
    # True when built from the cache-only path with something missing;
    # such a result must be re-resolved before it is persisted.
    provisional: bool = False
    protection_errors: tuple[str, ...] = ()

    @property
    def is_final(self) -> bool:
        return not self.provisional


@dataclass(frozen=True)
class InsufficientData:
    reason: str
