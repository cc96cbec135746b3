from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd

# (label, lower bound inclusive, upper bound exclusive), in monthly ROIC %.
ROIC_BUCKETS: tuple[tuple[str, float, float], ...] = (
    ("0-1%", 0.0, 1.0),
    ("1-2%", 1.0, 2.0),
    ("2-3%", 2.0, 3.0),
    ("3-5%", 3.0, 5.0),
    ("5-10%", 5.0, 10.0),
    ("10%+", 10.0, float("inf")),
)


@dataclass(frozen=True)
class RoicBucket:
    label: str
    count: int
    percentage: float


@dataclass(frozen=True)
class RoicSummary:
    count: int
    average: float
    median: float
    highest: float
    lowest: float


def quote_roic(monthly_value: np.ndarray | Sequence[float], vehicle_value: np.ndarray | Sequence[float]) -> np.ndarray:
    """Per-quote monthly ROIC; 0 where the vehicle value is not positive."""
    mv = np.asarray(monthly_value, dtype=float)
    vv = np.asarray(vehicle_value, dtype=float)
    out = np.zeros_like(mv)
    mask = vv > 0
    out[mask] = mv[mask] / vv[mask] * 100.0
    return out


def roic_distribution(roics: np.ndarray | Sequence[float]) -> list[RoicBucket]:
    """
    Count quotes per ROIC range. Empty ranges are left out; negative ROICs
    fall in no range but still count towards the percentage base.
    """
    r = np.asarray(roics, dtype=float)
    n = int(r.size)
    out = []
    for label, lo, hi in ROIC_BUCKETS:
        count = int(np.count_nonzero((r >= lo) & (r < hi)))
        if count == 0:
            continue
        out.append(RoicBucket(label=label, count=count, percentage=(count / n) * 100.0))
    return out


def summarize_roic(roics: np.ndarray | Sequence[float]) -> RoicSummary:
    r = np.asarray(roics, dtype=float)
    if r.size == 0:
        return RoicSummary(count=0, average=0.0, median=0.0, highest=0.0, lowest=0.0)
    return RoicSummary(
        count=int(r.size),
        average=float(np.mean(r)),
        median=float(np.median(r)),
        highest=float(np.max(r)),
        lowest=float(np.min(r)),
    )


def roic_report(df: pd.DataFrame) -> tuple[RoicSummary, list[RoicBucket]]:
    """Summary and distribution for a frame of past quotes (monthly_value, vehicle_value)."""
    for col in ("monthly_value", "vehicle_value"):
        if col not in df.columns:
            raise ValueError(f"column '{col}' not found in dataframe columns")
    roics = quote_roic(df["monthly_value"].fillna(0.0).to_numpy(), df["vehicle_value"].fillna(0.0).to_numpy())
    return summarize_roic(roics), roic_distribution(roics)
