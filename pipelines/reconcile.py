"""Reconciliation of the normalized sources onto the county/month panel."""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from typing import Iterable, Sequence

import pandas as pd

from pipelines.counties import counties_frame
from pipelines.errors import IncompleteRowError, JoinIntegrityWarning, SchemaError
from pipelines.keys import COUNTY_KEY, MONTH_KEY
from pipelines.model import OUTPUT_COLUMNS, TRACKED_FIELDS, CountyRecord, MonthKey, ReconciledRow

DEFAULT_MIN_NON_NULL_RATE = 0.5

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceFacts:
    """The five normalized source families, as returned by the readers."""

    mortgage: pd.DataFrame
    cpi: pd.DataFrame
    listings: pd.DataFrame
    population: pd.DataFrame
    home_value: pd.DataFrame


@dataclass(frozen=True)
class ReconciledPanel:
    """Result of a reconciliation run.

    ``complete`` is the modeling table. ``incomplete`` holds the in-window rows
    that failed the completeness policy, with a ``missing_fields`` column naming
    the null fields. ``joined`` is every in-window row before partitioning.
    """

    complete: pd.DataFrame
    incomplete: pd.DataFrame
    joined: pd.DataFrame
    cutoff: MonthKey | None
    non_null_rates: dict[str, float] = field(default_factory=dict)

    def records(self) -> list[ReconciledRow]:
        return [ReconciledRow(**row) for row in self.complete.to_dict("records")]


def _attach(
    base: pd.DataFrame,
    facts: pd.DataFrame,
    *,
    on: Sequence[str],
    columns: Sequence[str],
    name: str,
) -> pd.DataFrame:
    on = list(on)
    missing = [column for column in [*on, *columns] if column not in facts.columns]
    if missing:
        raise SchemaError("Source is missing a join column", source=name, field=missing[0])

    selected = facts[on + list(columns)]
    duplicated = selected.duplicated(subset=on)
    if duplicated.any():
        raise SchemaError(
            f"{int(duplicated.sum())} duplicate rows for join key",
            source=name,
            field=",".join(on),
        )
    return base.merge(selected, on=on, how="left", sort=False)


def _listings_start(joined: pd.DataFrame) -> MonthKey | None:
    listed = joined.loc[joined["active_listings"].notna(), "date"]
    if listed.empty:
        return None
    first = listed.min()
    return MonthKey(year=first.year, month=first.month)


def check_join_integrity(
    rows: pd.DataFrame,
    *,
    fields: Iterable[str] = TRACKED_FIELDS,
    min_non_null_rate: float = DEFAULT_MIN_NON_NULL_RATE,
) -> dict[str, float]:
    """Return each field's non-null rate, warning on any rate below the minimum.

    A source whose join keys were normalized differently from the backbone's
    attaches nothing, which shows up here as a rate at or near zero.
    """

    if rows.empty:
        logger.warning("No reconciled rows to check join integrity on.")
        return {}

    rates: dict[str, float] = {}
    for name in fields:
        rate = float(rows[name].notna().mean())
        rates[name] = rate
        if rate < min_non_null_rate:
            message = (
                f"Only {rate:.1%} of reconciled rows have {name}; "
                f"expected at least {min_non_null_rate:.0%}. Check its join keys."
            )
            logger.warning(message)
            warnings.warn(message, JoinIntegrityWarning, stacklevel=2)
    return rates


def partition_complete_rows(
    rows: pd.DataFrame,
    fields: Sequence[str] = TRACKED_FIELDS,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Split ``rows`` into those with every ``field`` present and the rest.

    Rows with a null are not imputed. They go to the second frame, which gains a
    ``missing_fields`` column (comma-separated field names).
    """

    nulls = rows[list(fields)].isna()
    is_complete = ~nulls.any(axis=1)

    complete = rows[is_complete].copy()
    incomplete = rows[~is_complete].copy()
    incomplete["missing_fields"] = [
        ",".join(name for name, is_null in zip(fields, flags) if is_null)
        for flags in nulls[~is_complete].itertuples(index=False)
    ]
    return complete.reset_index(drop=True), incomplete.reset_index(drop=True)


def reconcile(
    backbone: pd.DataFrame,
    counties: Sequence[CountyRecord],
    facts: SourceFacts,
    *,
    cutoff: MonthKey | None = None,
    min_non_null_rate: float = DEFAULT_MIN_NON_NULL_RATE,
    strict: bool = False,
) -> ReconciledPanel:
    """Build the county/month panel from the backbone, the counties and the sources.

    Every county gets a row for every backbone month; national facts join on
    ``(year, month)``, population on ``(county, year)`` and home values on
    ``(county, year, month)``. Rows before ``cutoff`` (by default the first month
    with listing data) are dropped, then the rest are partitioned by
    completeness. Output is ordered by ``id`` then ``date``.
    """

    base = counties_frame(counties).merge(backbone[["date", *MONTH_KEY]], how="cross")

    joined = _attach(base, facts.mortgage, on=MONTH_KEY, columns=["mortgage_rate"], name="mortgage")
    joined = _attach(joined, facts.cpi, on=MONTH_KEY, columns=["cpi"], name="cpi")
    joined = _attach(
        joined, facts.listings, on=MONTH_KEY, columns=["active_listings"], name="listings"
    )
    joined = _attach(
        joined,
        facts.population,
        on=[*COUNTY_KEY, "year"],
        columns=["population"],
        name="population",
    )
    joined = _attach(
        joined,
        facts.home_value,
        on=[*COUNTY_KEY, *MONTH_KEY],
        columns=["home_value_index"],
        name="home_value",
    )
    joined = joined.sort_values(["id", "date"], kind="stable")[list(OUTPUT_COLUMNS)]

    effective_cutoff = cutoff or _listings_start(joined)
    if effective_cutoff is None:
        logger.warning("No active listing data in the window; validity cutoff not applied.")
    else:
        joined = joined[joined["date"] >= pd.Timestamp(effective_cutoff.first_day)]
        logger.info("Validity cutoff %s leaves %s rows.", effective_cutoff, len(joined))
    joined = joined.reset_index(drop=True)

    rates = check_join_integrity(joined, min_non_null_rate=min_non_null_rate)

    complete, incomplete = partition_complete_rows(joined)
    complete = complete.astype({"active_listings": "int64", "population": "int64"})

    if strict and not incomplete.empty:
        missing = {name: int(joined[name].isna().sum()) for name in TRACKED_FIELDS}
        raise IncompleteRowError(
            f"{len(incomplete)} reconciled rows are incomplete",
            missing={name: count for name, count in missing.items() if count},
        )

    return ReconciledPanel(
        complete=complete,
        incomplete=incomplete,
        joined=joined,
        cutoff=effective_cutoff,
        non_null_rates=rates,
    )


__all__ = [
    "SourceFacts",
    "ReconciledPanel",
    "reconcile",
    "check_join_integrity",
    "partition_complete_rows",
    "DEFAULT_MIN_NON_NULL_RATE",
]
