from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from fleet_quote.pricing.roic_analytics import quote_roic, roic_distribution, roic_report, summarize_roic


def test_quote_roic_guards_zero_value():
    r = quote_roic([3000.0, 500.0], [100_000.0, 0.0])
    assert np.allclose(r, [3.0, 0.0])


def test_distribution_drops_empty_buckets():
    buckets = roic_distribution([0.5, 1.5, 3.0, 4.0, 12.0])
    assert [(b.label, b.count) for b in buckets] == [("0-1%", 1), ("1-2%", 1), ("3-5%", 2), ("10%+", 1)]
    assert abs(sum(b.percentage for b in buckets) - 100.0) < 1e-9


def test_summary():
    s = summarize_roic([2.0, 3.0, 7.0])
    assert s.count == 3
    assert abs(s.average - 4.0) < 1e-12
    assert s.median == 3.0
    assert s.highest == 7.0
    assert s.lowest == 2.0
    assert summarize_roic([]).count == 0


def test_report_from_frame():
    df = pd.DataFrame({"monthly_value": [3000.0, 4500.0, None], "vehicle_value": [100_000.0, 100_000.0, 50_000.0]})
    summary, buckets = roic_report(df)
    assert summary.count == 3
    assert summary.highest == 4.5
    assert [b.label for b in buckets] == ["0-1%", "3-5%"]


def test_report_requires_columns():
    with pytest.raises(ValueError):
        roic_report(pd.DataFrame({"monthly_value": [1.0]}))
