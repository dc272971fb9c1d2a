"""Freddie Mac 30-year fixed mortgage rate reader (FRED ``MORTGAGE30US``)."""

from __future__ import annotations

import logging

import pandas as pd

from pipelines.common import (
    TabularSource,
    coerce_numeric,
    describe_source,
    load_frame,
    parse_dates,
    require_columns,
)
from pipelines.keys import MONTH_KEY, with_month_key

MORTGAGE_DATE_COLUMN = "DATE"
MORTGAGE_VALUE_COLUMN = "MORTGAGE30US"
MORTGAGE_DATE_FORMAT = "%m/%d/%y"

logger = logging.getLogger(__name__)


def read_mortgage_rates(
    source: TabularSource,
    *,
    date_format: str = MORTGAGE_DATE_FORMAT,
) -> pd.DataFrame:
    """Return one ``(year, month, mortgage_rate)`` row per month.

    The survey is weekly. The chronologically first reading of each month is
    the month's value; later readings in the same month are dropped.
    """

    name = describe_source(source, "mortgage")
    raw = load_frame(source, name="mortgage")
    require_columns(raw, [MORTGAGE_DATE_COLUMN, MORTGAGE_VALUE_COLUMN], source=name)

    frame = pd.DataFrame(
        {
            "date": parse_dates(
                raw[MORTGAGE_DATE_COLUMN], date_format, source=name, field=MORTGAGE_DATE_COLUMN
            ),
            "mortgage_rate": coerce_numeric(
                raw[MORTGAGE_VALUE_COLUMN], source=name, field=MORTGAGE_VALUE_COLUMN
            ),
        }
    )
    frame = with_month_key(frame, "date").sort_values("date", kind="stable")

    monthly = frame.drop_duplicates(subset=list(MONTH_KEY), keep="first")
    dropped = len(frame) - len(monthly)
    if dropped:
        logger.debug("Dropped %s intra-month mortgage readings from %s.", dropped, name)

    return monthly[["year", "month", "mortgage_rate"]].reset_index(drop=True)


__all__ = ["read_mortgage_rates", "MORTGAGE_DATE_FORMAT"]
