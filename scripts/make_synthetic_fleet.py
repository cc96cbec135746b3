from __future__ import annotations

import argparse
import os

import numpy as np
import pandas as pd


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--out", required=True)
    ap.add_argument("--rows", type=int, default=20)
    ap.add_argument("--seed", type=int, default=0)
    ap.add_argument(
        "--override-frac",
        type=float,
        default=0.25,
        help="Share of vehicles that get their own contract params.",
    )
    args = ap.parse_args()

    rng = np.random.default_rng(args.seed)

    models = ["Onix", "HB20", "Strada", "Toro", "Hilux", "Master", "Daily"]
    model = rng.choice(models, size=args.rows)

    # Group follows vehicle class: compacts A, pickups B, vans/trucks C.
    group = np.select(
        [np.isin(model, ["Onix", "HB20"]), np.isin(model, ["Strada", "Toro", "Hilux"])],
        ["A", "B"],
        default="C",
    )
    base_price = np.select(
        [model == "Onix", model == "HB20", model == "Strada", model == "Toro", model == "Hilux", model == "Master"],
        [85_000, 82_000, 105_000, 150_000, 260_000, 230_000],
        default=280_000,
    ).astype(float)
    value = (base_price * rng.normal(1.0, 0.05, size=args.rows)).clip(20_000, None).round(2)

    override = rng.random(args.rows) < args.override_frac
    contract_months = np.where(override, rng.choice([12, 18, 24], size=args.rows), np.nan)
    monthly_km = np.where(override, rng.choice([1500, 2500, 3000, 5000], size=args.rows), np.nan)
    severity = np.where(override, rng.integers(1, 7, size=args.rows), np.nan)

    df = pd.DataFrame(
        {
            "id": [f"V{i:04d}" for i in range(args.rows)],
            "description": model,
            "value": value,
            "group": group,
            "contract_months": pd.array(contract_months, dtype="Int64"),
            "monthly_km": pd.array(monthly_km, dtype="Int64"),
            "operation_severity": pd.array(severity, dtype="Int64"),
        }
    )

    os.makedirs(os.path.dirname(args.out) or ".", exist_ok=True)
    df.to_csv(args.out, index=False)
    print(f"wrote {args.out} rows={len(df)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
