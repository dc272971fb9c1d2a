import pandas as pd
import pytest

from pipelines.backbone import build_backbone
from pipelines.model import MonthKey


def test_default_window_has_161_months():
    backbone = build_backbone()

    assert len(backbone) == 161
    assert backbone["date"].iloc[0] == pd.Timestamp("2010-01-01")
    assert backbone["date"].iloc[-1] == pd.Timestamp("2023-05-01")


def test_backbone_is_contiguous_and_unique():
    backbone = build_backbone()

    assert backbone["date"].is_monotonic_increasing
    assert not backbone.duplicated(subset=["year", "month"]).any()
    steps = backbone["date"].dt.to_period("M").astype("int64").diff().dropna()
    assert (steps == 1).all()


def test_backbone_carries_month_key():
    backbone = build_backbone(MonthKey(year=2019, month=11), MonthKey(year=2020, month=2))

    assert backbone[["year", "month"]].values.tolist() == [[2019, 11], [2019, 12], [2020, 1], [2020, 2]]
    assert backbone["month"].dtype == "int64"


def test_single_month_window():
    key = MonthKey(year=2016, month=7)

    assert len(build_backbone(key, key)) == 1


def test_reversed_window_fails():
    with pytest.raises(ValueError):
        build_backbone(MonthKey(year=2020, month=1), MonthKey(year=2019, month=12))
