"""Selection of the large counties that make up the panel."""

from __future__ import annotations

import logging
from typing import Iterable

import pandas as pd

from pipelines.errors import SchemaError
from pipelines.model import CountyRecord
from pipelines.sources.population import estimate_years

DEFAULT_POPULATION_THRESHOLD = 2_000_000

COUNTY_COLUMNS: tuple[str, ...] = ("id", "state_code", "county_code", "state_name", "county_name")

logger = logging.getLogger(__name__)


def select_counties(
    population: pd.DataFrame,
    *,
    threshold: int = DEFAULT_POPULATION_THRESHOLD,
) -> list[CountyRecord]:
    """Counties whose latest-year estimate is strictly above ``threshold``.

    ``population`` is the merged wide table from ``read_population_estimates``.
    Rows with ``county_code == 0`` are state totals and never selected. Ids are
    the 1-based rank after a stable sort on ``state_code``, so counties within a
    state keep their input order.
    """

    years = estimate_years(population)
    if not years:
        raise SchemaError("No POPESTIMATEYYYY columns to rank counties by", field="POPESTIMATE")
    latest = f"POPESTIMATE{years[-1]}"

    eligible = population[(population["county_code"] != 0) & (population[latest] > threshold)]
    ordered = eligible.sort_values("state_code", kind="stable")

    records = [
        CountyRecord(
            id=rank,
            state_code=int(row.state_code),
            county_code=int(row.county_code),
            state_name=str(row.state_name),
            county_name=str(row.county_name),
        )
        for rank, row in enumerate(ordered.itertuples(index=False), start=1)
    ]
    logger.info(
        "Selected %s counties with %s population above %s.",
        len(records),
        years[-1],
        f"{threshold:,}",
    )
    return records


def counties_frame(records: Iterable[CountyRecord]) -> pd.DataFrame:
    rows = [record.model_dump() for record in records]
    frame = pd.DataFrame(rows, columns=list(COUNTY_COLUMNS))
    for column in ("id", "state_code", "county_code"):
        frame[column] = frame[column].astype("int64")
    return frame


__all__ = ["select_counties", "counties_frame", "DEFAULT_POPULATION_THRESHOLD"]
