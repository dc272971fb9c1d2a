"""Zillow Home Value Index (ZHVI) county reader."""

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
from pipelines.keys import floor_to_month, normalize_county_key, unpivot, with_month_key

HOME_VALUE_ID_COLUMNS: tuple[str, ...] = (
    "State",
    "RegionName",
    "StateCodeFIPS",
    "MunicipalCodeFIPS",
)
SNAPSHOT_PATTERN = r"^(\d{4}-\d{2}-\d{2})$"
SNAPSHOT_FORMAT = "%Y-%m-%d"

logger = logging.getLogger(__name__)


def read_home_values(source: TabularSource) -> pd.DataFrame:
    """Return one ``(state_code, county_code, date, year, month, home_value_index)`` row per snapshot.

    Snapshots are month-end dates; each is floored to the first of its month so
    that it lines up with the monthly backbone.
    """

    name = describe_source(source, "home_value")
    raw = load_frame(source, name="home_value")
    require_columns(raw, HOME_VALUE_ID_COLUMNS, source=name)

    long = unpivot(
        raw,
        id_columns=list(HOME_VALUE_ID_COLUMNS),
        value_pattern=SNAPSHOT_PATTERN,
        key_name="snapshot",
        value_name="home_value_index",
        source=name,
    )
    snapshots = parse_dates(long["snapshot"], SNAPSHOT_FORMAT, source=name, field="snapshot")

    frame = pd.DataFrame(
        {
            "state_code": long["StateCodeFIPS"],
            "county_code": long["MunicipalCodeFIPS"],
            "date": floor_to_month(snapshots),
            "home_value_index": coerce_numeric(
                long["home_value_index"], source=name, field="home_value_index"
            ),
        }
    )
    frame = normalize_county_key(
        frame,
        source=name,
        labels={"state_code": "StateCodeFIPS", "county_code": "MunicipalCodeFIPS"},
    )
    frame = with_month_key(frame, "date")
    logger.debug("Reshaped %s counties into %s home value rows.", len(raw), len(frame))
    return frame[
        ["state_code", "county_code", "date", "year", "month", "home_value_index"]
    ].reset_index(drop=True)


__all__ = ["read_home_values", "HOME_VALUE_ID_COLUMNS", "SNAPSHOT_PATTERN"]
