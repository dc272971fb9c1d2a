"""Bureau of Labor Statistics CPI reader.

BLS exports one row per year with one column per calendar month (plus
half-year averages, which are ignored). SeriesReport downloads carry a banner
of series metadata above the ``Year`` header row.
"""

from __future__ import annotations

import pandas as pd

from pipelines.common import (
    TabularSource,
    coerce_numeric,
    describe_source,
    load_frame,
    require_columns,
)
from pipelines.keys import MONTH_LABEL_PATTERN, month_from_label, normalize_month_key, unpivot

CPI_YEAR_COLUMN = "Year"


def read_cpi(source: TabularSource) -> pd.DataFrame:
    """Return one ``(year, month, cpi)`` row per reported month."""

    name = describe_source(source, "cpi")
    raw = load_frame(source, name="cpi", header_marker=CPI_YEAR_COLUMN)
    require_columns(raw, [CPI_YEAR_COLUMN], source=name)

    long = unpivot(
        raw,
        id_columns=[CPI_YEAR_COLUMN],
        value_pattern=MONTH_LABEL_PATTERN,
        key_name="month",
        value_name="cpi",
        key_parser=month_from_label,
        source=name,
    )
    long = long.rename(columns={CPI_YEAR_COLUMN: "year"})
    long["cpi"] = coerce_numeric(long["cpi"], source=name, field="cpi")
    # The current year has blank trailing months.
    long = long.dropna(subset=["cpi"])

    long = normalize_month_key(long, source=name, labels={"year": CPI_YEAR_COLUMN})
    return long[["year", "month", "cpi"]].reset_index(drop=True)


__all__ = ["read_cpi", "CPI_YEAR_COLUMN"]
