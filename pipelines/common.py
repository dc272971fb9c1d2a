"""Shared utilities for loading raw tabular inputs and normalizing their fields."""

from __future__ import annotations

import csv
import logging
import os
from pathlib import Path
from typing import Any, Iterable

import numpy as np
import pandas as pd

from pipelines.errors import ParseError, SchemaError

TabularSource = str | os.PathLike[str] | pd.DataFrame

_EXCEL_SUFFIXES = {".xlsx", ".xls"}
_SENTINEL_VALUES = {".", "NA", "N/A", "", "null", "-"}

logger = logging.getLogger(__name__)


def describe_source(source: TabularSource, default: str) -> str:
    """Return the label used for ``source`` in log lines and error messages."""

    if isinstance(source, pd.DataFrame):
        return default
    return str(source)


def _find_csv_header_row(path: Path, marker: str, *, encoding: str | None) -> int | None:
    """Index of the first line whose leading cell is ``marker``, or ``None``."""

    with path.open(newline="", encoding=encoding) as handle:
        for index, row in enumerate(csv.reader(handle)):
            if row and row[0].strip() == marker:
                return index
    return None


def _promote_header(sheet: pd.DataFrame, marker: str) -> pd.DataFrame:
    """Use the first row whose leading cell is ``marker`` as the header."""

    leading = sheet.iloc[:, 0].astype("string").str.strip()
    hits = sheet.index[(leading == marker).fillna(False)]
    if not len(hits):
        return sheet.iloc[1:].set_axis(list(sheet.iloc[0]), axis=1).reset_index(drop=True)
    row = sheet.index.get_loc(hits[0])
    body = sheet.iloc[row + 1 :].reset_index(drop=True)
    return body.set_axis(list(sheet.iloc[row]), axis=1)


def load_frame(
    source: TabularSource,
    *,
    name: str,
    encoding: str | None = None,
    header_marker: str | None = None,
    **read_kwargs: Any,
) -> pd.DataFrame:
    """Load a raw input into a fresh DataFrame.

    ``source`` may be a CSV or Excel path, or an already materialized DataFrame
    (copied so that callers never see their input mutated). Excel files are
    read from their first sheet. When ``header_marker`` is given, banner rows
    above the first row whose leading cell equals it are skipped, as in BLS
    SeriesReport downloads.
    """

    if isinstance(source, pd.DataFrame):
        return source.copy()

    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(f"{name} input not found: {path}")

    if path.suffix.lower() in _EXCEL_SUFFIXES:
        frame = pd.read_excel(path, header=None if header_marker else 0, **read_kwargs)
        if header_marker:
            frame = _promote_header(frame, header_marker)
    else:
        if header_marker is not None and "skiprows" not in read_kwargs:
            header_row = _find_csv_header_row(path, header_marker, encoding=encoding)
            if header_row:
                logger.debug("Skipping %s banner rows in %s.", header_row, path)
                read_kwargs["skiprows"] = header_row
        frame = pd.read_csv(path, encoding=encoding, **read_kwargs)
    logger.debug("Loaded %s rows from %s (%s).", len(frame), path, name)
    return frame


def require_columns(frame: pd.DataFrame, columns: Iterable[str], *, source: str) -> None:
    missing = [column for column in columns if column not in frame.columns]
    if missing:
        raise SchemaError(
            f"Missing expected column(s) {', '.join(missing)}",
            source=source,
            field=missing[0],
        )


def _is_sentinel(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() in _SENTINEL_VALUES
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def coerce_numeric(series: pd.Series, *, source: str, field: str) -> pd.Series:
    """Convert ``series`` to floats, mapping missing-value sentinels to NaN.

    Anything that is neither numeric nor a recognised sentinel raises
    ``ParseError``; infinities are treated as missing.
    """

    sentinel_mask = series.map(_is_sentinel).astype(bool)
    candidates = series.where(~sentinel_mask)
    if candidates.dtype == object:
        candidates = candidates.map(lambda v: v.strip() if isinstance(v, str) else v)
    numeric = pd.to_numeric(candidates, errors="coerce")

    bad = numeric.isna() & ~sentinel_mask
    if bad.any():
        offending = series[bad].iloc[0]
        raise ParseError(f"Malformed numeric value {offending!r}", source=source, field=field)

    return numeric.astype(float).replace([np.inf, -np.inf], np.nan)


def parse_dates(series: pd.Series, fmt: str, *, source: str, field: str) -> pd.Series:
    """Parse ``series`` with an exact ``strptime`` format or raise ``ParseError``."""

    as_text = series.astype("string").str.strip()
    parsed = pd.to_datetime(as_text, format=fmt, errors="coerce")
    bad = parsed.isna()
    if bad.any():
        offending = series[bad].iloc[0]
        raise ParseError(
            f"Malformed date {offending!r} (expected format {fmt})",
            source=source,
            field=field,
        )
    return parsed


__all__ = [
    "TabularSource",
    "describe_source",
    "load_frame",
    "require_columns",
    "coerce_numeric",
    "parse_dates",
]
