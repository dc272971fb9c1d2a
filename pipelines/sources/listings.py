"""Realtor.com national active listing count reader (FRED ``ACTLISCOUUS``)."""

from __future__ import annotations

import pandas as pd

from pipelines.common import (
    TabularSource,
    coerce_numeric,
    describe_source,
    load_frame,
    parse_dates,
    require_columns,
)
from pipelines.errors import ParseError
from pipelines.keys import with_month_key

LISTINGS_DATE_COLUMN = "observation_date"
LISTINGS_VALUE_COLUMN = "ACTLISCOUUS"
LISTINGS_DATE_FORMAT = "%Y-%m-%d"


def read_active_listings(source: TabularSource) -> pd.DataFrame:
    """Return one ``(year, month, active_listings)`` row per month."""

    name = describe_source(source, "listings")
    raw = load_frame(source, name="listings")
    require_columns(raw, [LISTINGS_DATE_COLUMN, LISTINGS_VALUE_COLUMN], source=name)

    counts = coerce_numeric(raw[LISTINGS_VALUE_COLUMN], source=name, field=LISTINGS_VALUE_COLUMN)
    fractional = counts.notna() & (counts % 1 != 0)
    if fractional.any():
        raise ParseError(
            f"Non-integer listing count {counts[fractional].iloc[0]!r}",
            source=name,
            field=LISTINGS_VALUE_COLUMN,
        )

    frame = pd.DataFrame(
        {
            "date": parse_dates(
                raw[LISTINGS_DATE_COLUMN],
                LISTINGS_DATE_FORMAT,
                source=name,
                field=LISTINGS_DATE_COLUMN,
            ),
            "active_listings": counts.astype("Int64"),
        }
    )
    frame = with_month_key(frame, "date").sort_values("date", kind="stable")
    return frame[["year", "month", "active_listings"]].reset_index(drop=True)


__all__ = ["read_active_listings", "LISTINGS_DATE_FORMAT"]
