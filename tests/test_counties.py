import pandas as pd
import pytest

from pipelines.counties import counties_frame, select_counties
from pipelines.errors import SchemaError
from pipelines.sources.population import read_population_estimates


def _wide(rows):
    return pd.DataFrame(
        rows,
        columns=["state_code", "county_code", "state_name", "county_name", "POPESTIMATE2021", "POPESTIMATE2022"],
    )


def test_select_counties_applies_threshold_and_excludes_state_rows(population_first, population_second):
    wide = read_population_estimates(population_first, population_second)

    counties = select_counties(wide)

    assert [(c.id, c.state_code, c.county_code) for c in counties] == [(1, 4, 13), (2, 6, 37)]
    assert counties[0].county_name == "Maricopa County"


def test_select_counties_uses_latest_year():
    wide = _wide(
        [
            # Above the threshold earlier, below it in the latest year.
            (53, 33, "Washington", "King County", 2_100_000, 1_999_999),
            (17, 31, "Illinois", "Cook County", 1_900_000, 2_000_001),
        ]
    )

    counties = select_counties(wide)

    assert [c.county_name for c in counties] == ["Cook County"]


def test_select_counties_threshold_is_strict():
    wide = _wide([(6, 37, "California", "Los Angeles County", 2_000_000, 2_000_000)])

    assert select_counties(wide) == []


def test_county_code_zero_is_never_selected():
    wide = _wide(
        [
            (6, 0, "California", "California", 39_000_000, 39_000_000),
            (11, 0, "District of Columbia", "District of Columbia", 10, 10),
        ]
    )

    assert select_counties(wide, threshold=0) == []


def test_ids_follow_state_code_with_stable_ties():
    wide = _wide(
        [
            (48, 201, "Texas", "Harris County", 4_700_000, 4_780_000),
            (6, 73, "California", "San Diego County", 3_300_000, 3_280_000),
            (48, 113, "Texas", "Dallas County", 2_600_000, 2_600_000),
            (6, 37, "California", "Los Angeles County", 9_800_000, 9_720_000),
        ]
    )

    first = select_counties(wide)
    second = select_counties(wide)

    assert [(c.id, c.county_name) for c in first] == [
        (1, "San Diego County"),
        (2, "Los Angeles County"),
        (3, "Harris County"),
        (4, "Dallas County"),
    ]
    assert first == second


def test_select_counties_requires_estimates():
    with pytest.raises(SchemaError):
        select_counties(pd.DataFrame({"state_code": [6], "county_code": [37]}))


def test_counties_frame_columns(population_first, population_second):
    counties = select_counties(read_population_estimates(population_first, population_second))

    frame = counties_frame(counties)

    assert list(frame.columns) == ["id", "state_code", "county_code", "state_name", "county_name"]
    assert frame["id"].tolist() == [1, 2]
    assert frame["state_code"].dtype == "int64"
