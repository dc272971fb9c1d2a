"""Join-key normalization shared by every reader and the reconciler.

All sources are joined on the same physical representation: ``year`` and
``month`` as ``int64`` columns where ``month`` is the 1-based ordinal, plus
``state_code``/``county_code`` as ``int64`` for county-scoped facts. Calendar
labels (``"Jan"``, ``"February"``) and snapshot dates are converted into that
representation here and nowhere else.
"""

from __future__ import annotations

import re
from typing import Callable, Hashable, Mapping, Sequence

import pandas as pd

from pipelines.errors import ParseError, SchemaError

MONTH_KEY: tuple[str, str] = ("year", "month")
COUNTY_KEY: tuple[str, str] = ("state_code", "county_code")

MONTH_LABELS: tuple[str, ...] = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)

_LABEL_TO_ORDINAL = {label.lower(): index for index, label in enumerate(MONTH_LABELS, start=1)}

# Matches "Jan", "jan", "January", "Sept" etc. Anchored so "HALF1" never matches.
MONTH_LABEL_PATTERN = r"(?i)^(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*$"


def month_from_label(label: str) -> int:
    """Map a calendar month label to its ordinal (``"Mar"`` -> 3)."""

    key = str(label).strip().lower()[:3]
    try:
        return _LABEL_TO_ORDINAL[key]
    except KeyError:
        raise SchemaError(f"Unrecognized month label {label!r}", field=str(label)) from None


def floor_to_month(dates: pd.Series) -> pd.Series:
    return pd.to_datetime(dates).dt.to_period("M").dt.to_timestamp()


def with_month_key(frame: pd.DataFrame, date_column: str = "date") -> pd.DataFrame:
    """Return a copy of ``frame`` with canonical ``year``/``month`` columns."""

    result = frame.copy()
    dates = pd.to_datetime(result[date_column])
    result["year"] = dates.dt.year.astype("int64")
    result["month"] = dates.dt.month.astype("int64")
    return result


def _integer_key(series: pd.Series, *, source: str, field: str) -> pd.Series:
    try:
        numeric = pd.to_numeric(series, errors="raise")
    except (ValueError, TypeError) as exc:
        raise ParseError(f"Malformed key value ({exc})", source=source, field=field) from exc

    if numeric.isna().any():
        raise ParseError("Missing key value", source=source, field=field)
    fractional = numeric % 1 != 0
    if fractional.any():
        raise ParseError(
            f"Non-integer key value {numeric[fractional].iloc[0]!r}", source=source, field=field
        )
    return numeric.astype("int64")


def normalize_month_key(
    frame: pd.DataFrame,
    *,
    source: str,
    labels: Mapping[str, str] | None = None,
) -> pd.DataFrame:
    """Coerce existing ``year``/``month`` columns to the canonical dtype.

    ``labels`` maps a key column to the raw field name reported in errors.
    """

    labels = labels or {}
    result = frame.copy()
    for column in MONTH_KEY:
        if column not in result.columns:
            raise SchemaError("Missing month key column", source=source, field=column)
        result[column] = _integer_key(
            result[column], source=source, field=labels.get(column, column)
        )

    out_of_range = ~result["month"].between(1, 12)
    if out_of_range.any():
        raise SchemaError(
            f"Month ordinal {int(result.loc[out_of_range, 'month'].iloc[0])} outside 1..12",
            source=source,
            field="month",
        )
    return result


def normalize_county_key(
    frame: pd.DataFrame,
    *,
    source: str,
    labels: Mapping[str, str] | None = None,
) -> pd.DataFrame:
    labels = labels or {}
    result = frame.copy()
    for column in COUNTY_KEY:
        if column not in result.columns:
            raise SchemaError("Missing county key column", source=source, field=column)
        result[column] = _integer_key(
            result[column], source=source, field=labels.get(column, column)
        )
    return result


def unpivot(
    frame: pd.DataFrame,
    *,
    id_columns: Sequence[str],
    value_pattern: str,
    key_name: str,
    value_name: str,
    key_parser: Callable[[str], Hashable] | None = None,
    source: str | None = None,
) -> pd.DataFrame:
    """Reshape wide value columns into ``(id_columns..., key_name, value_name)`` rows.

    Value columns are the columns whose name matches ``value_pattern``; when the
    pattern has a capture group, the first group becomes the key, otherwise the
    whole column name does. ``key_parser`` converts that raw key (e.g. a month
    label into its ordinal). Columns matching neither the ids nor the pattern
    are dropped. Rows come out grouped by input row, in input column order.
    """

    missing = [column for column in id_columns if column not in frame.columns]
    if missing:
        raise SchemaError("Missing id column for reshape", source=source, field=missing[0])

    regex = re.compile(value_pattern)
    value_columns: dict[str, str] = {}
    for column in frame.columns:
        if column in id_columns:
            continue
        match = regex.search(str(column))
        if not match:
            continue
        value_columns[column] = match.group(1) if match.groups() else match.group(0)

    if not value_columns:
        raise SchemaError(
            f"No value columns match pattern {value_pattern!r}",
            source=source,
            field=value_name,
        )

    long = frame.melt(
        id_vars=list(id_columns),
        value_vars=list(value_columns),
        var_name=key_name,
        value_name=value_name,
        ignore_index=False,
    )
    # melt stacks column blocks; restore row-major order so each id's keys are contiguous.
    long["_row"] = long.index
    long["_col"] = long[key_name].map({column: i for i, column in enumerate(value_columns)})
    long = long.sort_values(["_row", "_col"], kind="stable").drop(columns=["_row", "_col"])

    raw_keys = long[key_name].map(value_columns)
    long[key_name] = raw_keys.map(key_parser) if key_parser else raw_keys
    return long.reset_index(drop=True)


__all__ = [
    "MONTH_KEY",
    "COUNTY_KEY",
    "MONTH_LABELS",
    "MONTH_LABEL_PATTERN",
    "month_from_label",
    "floor_to_month",
    "with_month_key",
    "normalize_month_key",
    "normalize_county_key",
    "unpivot",
]
