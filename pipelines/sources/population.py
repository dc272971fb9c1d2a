"""Census county population estimates reader.

The Census Bureau publishes county estimates in vintage extracts
(``co-est2019-alldata.csv``, ``co-est2022-alldata.csv``) that each carry one
``POPESTIMATEYYYY`` column per year. Two vintages are merged into one wide
table, then unpivoted into one row per county per year.
"""

from __future__ import annotations

import logging
import re
from typing import Sequence

import pandas as pd

from pipelines.common import (
    TabularSource,
    coerce_numeric,
    describe_source,
    load_frame,
    require_columns,
)
from pipelines.errors import SchemaError
from pipelines.keys import normalize_county_key, unpivot

POPULATION_ENCODING = "latin-1"
POPULATION_IDENTITY_COLUMNS: tuple[str, ...] = ("STATE", "COUNTY", "STNAME", "CTYNAME")
POPULATION_VALUE_PATTERN = r"^POPESTIMATE(\d{4})$"

_IDENTITY_RENAMES = {
    "STATE": "state_code",
    "COUNTY": "county_code",
    "STNAME": "state_name",
    "CTYNAME": "county_name",
}

logger = logging.getLogger(__name__)


def _estimate_columns(frame: pd.DataFrame) -> list[str]:
    pattern = re.compile(POPULATION_VALUE_PATTERN)
    return [column for column in frame.columns if pattern.match(str(column))]


def estimate_years(frame: pd.DataFrame) -> list[int]:
    """Years with a ``POPESTIMATEYYYY`` column, ascending."""

    pattern = re.compile(POPULATION_VALUE_PATTERN)
    return sorted(int(pattern.match(column).group(1)) for column in _estimate_columns(frame))


def merge_prefer_second(
    first: pd.DataFrame,
    second: pd.DataFrame,
    *,
    on: Sequence[str],
    value_columns: Sequence[str] | None = None,
) -> pd.DataFrame:
    """Inner-join two wide extracts on ``on``, resolving shared columns in favour of ``second``.

    A value column present in both frames takes the second frame's value, except
    where that value is null, in which case the first frame's value is kept.
    Columns outside ``on`` that are not listed in ``value_columns`` are taken
    from ``first``. Row order follows ``first``.
    """

    on = list(on)
    first_values = [c for c in first.columns if c not in on]
    second_values = [c for c in second.columns if c not in on]
    if value_columns is not None:
        allowed = set(value_columns)
        second_values = [c for c in second_values if c in allowed]

    left = first[on + first_values].reset_index(drop=True)
    right = second[on + second_values].reset_index(drop=True)
    right = right.rename(columns={c: f"{c}__second" for c in second_values})

    merged = left.merge(right, on=on, how="inner", sort=False)

    for column in second_values:
        incoming = merged.pop(f"{column}__second")
        if column in merged.columns:
            merged[column] = incoming.where(incoming.notna(), merged[column])
        else:
            merged[column] = incoming
    return merged


def _load_extract(source: TabularSource, label: str) -> tuple[pd.DataFrame, str]:
    name = describe_source(source, label)
    frame = load_frame(source, name=label, encoding=POPULATION_ENCODING)
    require_columns(frame, POPULATION_IDENTITY_COLUMNS, source=name)
    estimates = _estimate_columns(frame)
    if not estimates:
        raise SchemaError(
            "No POPESTIMATEYYYY columns found",
            source=name,
            field="POPESTIMATE",
        )
    for column in estimates:
        frame[column] = coerce_numeric(frame[column], source=name, field=column)
    return frame[list(POPULATION_IDENTITY_COLUMNS) + estimates], name


def read_population_estimates(first: TabularSource, second: TabularSource) -> pd.DataFrame:
    """Merge two vintage extracts into one wide county table.

    Returns ``state_code, county_code, state_name, county_name`` followed by the
    ``POPESTIMATEYYYY`` columns in ascending year order. Only counties present
    in both extracts survive.
    """

    first_frame, first_name = _load_extract(first, "population_first")
    second_frame, second_name = _load_extract(second, "population_second")

    overlap = sorted(set(_estimate_columns(first_frame)) & set(_estimate_columns(second_frame)))
    if overlap:
        logger.info(
            "Population extracts overlap on %s; %s takes precedence.",
            ", ".join(overlap),
            second_name,
        )

    merged = merge_prefer_second(
        first_frame,
        second_frame,
        on=POPULATION_IDENTITY_COLUMNS,
    )
    dropped = len(first_frame) - len(merged)
    if dropped > 0:
        logger.info("%s counties in %s have no match in %s.", dropped, first_name, second_name)

    merged = merged.rename(columns=_IDENTITY_RENAMES)
    merged = normalize_county_key(
        merged,
        source=f"{first_name}+{second_name}",
        labels={"state_code": "STATE", "county_code": "COUNTY"},
    )
    estimates = sorted(_estimate_columns(merged))
    return merged[list(_IDENTITY_RENAMES.values()) + estimates]


def population_by_year(wide: pd.DataFrame) -> pd.DataFrame:
    """Unpivot the merged extract into ``(state_code, county_code, year, population)`` rows."""

    long = unpivot(
        wide,
        id_columns=["state_code", "county_code"],
        value_pattern=POPULATION_VALUE_PATTERN,
        key_name="year",
        value_name="population",
        key_parser=int,
        source="population",
    )
    long["year"] = long["year"].astype("int64")
    long = long.dropna(subset=["population"])
    long["population"] = long["population"].astype("int64")
    return long[["state_code", "county_code", "year", "population"]].reset_index(drop=True)


__all__ = [
    "read_population_estimates",
    "population_by_year",
    "merge_prefer_second",
    "estimate_years",
    "POPULATION_VALUE_PATTERN",
]
