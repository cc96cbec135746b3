from __future__ import annotations

from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Any, Mapping

from fleet_quote.errors import InvalidRateConfigError

FALLBACK_GROUP = "A"


def _check_non_negative(obj: object) -> None:
    for f in fields(obj):  # type: ignore[arg-type]
        val = getattr(obj, f.name)
        if isinstance(val, (int, float)) and not isinstance(val, bool) and val < 0:
            raise InvalidRateConfigError(f.name, val)


@dataclass(frozen=True)
class VehicleGroupTable:
    revision_interval_km: float
    revision_cost: float
    tire_interval_km: float
    tire_cost: float
    ipva_rate: float = 0.04  # fraction of vehicle value per year
    licensing_fee: float = 150.0  # per year

    def __post_init__(self) -> None:
        _check_non_negative(self)
        if self.revision_interval_km <= 0:
            raise InvalidRateConfigError("revision_interval_km", self.revision_interval_km)
        if self.tire_interval_km <= 0:
            raise InvalidRateConfigError("tire_interval_km", self.tire_interval_km)

    @classmethod
    def from_mapping(cls, d: Mapping[str, Any], *, fallback: VehicleGroupTable | None = None) -> VehicleGroupTable:
        fb = fallback or _DEFAULT_GROUPS[FALLBACK_GROUP]
        return cls(
            revision_interval_km=float(d.get("revision_km", fb.revision_interval_km)),
            revision_cost=float(d.get("revision_cost", fb.revision_cost)),
            tire_interval_km=float(d.get("tire_km", fb.tire_interval_km)),
            tire_cost=float(d.get("tire_cost", fb.tire_cost)),
            ipva_rate=float(d.get("ipva_rate", fb.ipva_rate)),
            licensing_fee=float(d.get("licensing_fee", fb.licensing_fee)),
        )


@dataclass(frozen=True)
class TaxIndices:
    # All values are annual percentages (e.g. 12.75 for 12.75%).
    ipca: float = 3.50
    igpm: float = 3.40
    spread: float = 5.30
    selic_12: float = 12.75
    selic_18: float = 11.75
    selic_24: float = 10.25

    def __post_init__(self) -> None:
        _check_non_negative(self)

    @classmethod
    def from_mapping(cls, d: Mapping[str, Any]) -> TaxIndices:
        dflt = cls()
        return cls(
            ipca=float(d.get("ipca", dflt.ipca)),
            igpm=float(d.get("igpm", dflt.igpm)),
            spread=float(d.get("spread", dflt.spread)),
            selic_12=float(d.get("selic12", dflt.selic_12)),
            selic_18=float(d.get("selic18", dflt.selic_18)),
            selic_24=float(d.get("selic24", dflt.selic_24)),
        )


_DEFAULT_GROUPS: dict[str, VehicleGroupTable] = {
    "A": VehicleGroupTable(revision_interval_km=10_000, revision_cost=300.0, tire_interval_km=40_000, tire_cost=1200.0),
    "B": VehicleGroupTable(revision_interval_km=10_000, revision_cost=350.0, tire_interval_km=40_000, tire_cost=1400.0),
    "C": VehicleGroupTable(revision_interval_km=10_000, revision_cost=400.0, tire_interval_km=40_000, tire_cost=1600.0),
}


@dataclass(frozen=True)
class RateConfig:
    """
    Immutable snapshot of every constant the calculators read.

    A refresh builds a new snapshot; an existing one is never mutated.
    """

    base_depreciation: float = 0.015
    mileage_multiplier: float = 0.05
    severity_multiplier: float = 0.10
    tracking_fee: float = 50.0
    extra_km_percentage: float = 0.0000075
    vehicle_groups: Mapping[str, VehicleGroupTable] = field(default_factory=lambda: dict(_DEFAULT_GROUPS))
    tax_indices: TaxIndices = field(default_factory=TaxIndices)

    def __post_init__(self) -> None:
        _check_non_negative(self)
        object.__setattr__(self, "vehicle_groups", MappingProxyType(dict(self.vehicle_groups)))

    @classmethod
    def defaults(cls) -> RateConfig:
        return cls()

    @classmethod
    def from_mapping(cls, d: Mapping[str, Any]) -> RateConfig:
        """
        Build a snapshot from an external record:

            {"params": {"base", "mileage_multiplier", "severity_multiplier",
                        "tracking_fee", "extra_km_percentage"},
             "vehicle_groups": {code: {"revision_km", "revision_cost", "tire_km",
                                       "tire_cost", "ipva_rate", "licensing_fee"}},
             "tax_indices": {"ipca", "igpm", "spread", "selic12", "selic18", "selic24"}}

        Missing keys take their default value.
        """
        dflt = cls.defaults()
        params = d.get("params") or {}
        groups_in = d.get("vehicle_groups") or {}
        groups = dict(dflt.vehicle_groups)
        for code, g in groups_in.items():
            groups[str(code)] = VehicleGroupTable.from_mapping(g, fallback=groups.get(str(code)))
        return cls(
            base_depreciation=float(params.get("base", dflt.base_depreciation)),
            mileage_multiplier=float(params.get("mileage_multiplier", dflt.mileage_multiplier)),
            severity_multiplier=float(params.get("severity_multiplier", dflt.severity_multiplier)),
            tracking_fee=float(params.get("tracking_fee", dflt.tracking_fee)),
            extra_km_percentage=float(params.get("extra_km_percentage", dflt.extra_km_percentage)),
            vehicle_groups=groups,
            tax_indices=TaxIndices.from_mapping(d.get("tax_indices") or {}),
        )

    def group_table(self, code: str) -> VehicleGroupTable:
        """Table for a vehicle group; unknown codes use group A."""
        table = self.vehicle_groups.get(code)
        if table is None:
            table = self.vehicle_groups.get(FALLBACK_GROUP, _DEFAULT_GROUPS[FALLBACK_GROUP])
        return table
