"""Canonical month sequence that every join is driven from."""

from __future__ import annotations

import pandas as pd

from pipelines.keys import with_month_key
from pipelines.model import MonthKey

DEFAULT_WINDOW_START = MonthKey(year=2010, month=1)
DEFAULT_WINDOW_END = MonthKey(year=2023, month=5)


def build_backbone(
    start: MonthKey = DEFAULT_WINDOW_START,
    end: MonthKey = DEFAULT_WINDOW_END,
) -> pd.DataFrame:
    """One ``(date, year, month)`` row per month from ``start`` to ``end`` inclusive."""

    if end < start:
        raise ValueError(f"Backbone end {end} precedes start {start}.")

    dates = pd.date_range(
        start=pd.Timestamp(start.first_day),
        end=pd.Timestamp(end.first_day),
        freq="MS",
    )
    return with_month_key(pd.DataFrame({"date": dates}), "date")


__all__ = ["build_backbone", "DEFAULT_WINDOW_START", "DEFAULT_WINDOW_END"]
