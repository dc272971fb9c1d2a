import pandas as pd
import pytest

from pipelines.errors import SchemaError
from pipelines.keys import (
    MONTH_LABEL_PATTERN,
    floor_to_month,
    month_from_label,
    normalize_month_key,
    unpivot,
    with_month_key,
)
from pipelines.sources.cpi import read_cpi
from pipelines.sources.home_value import read_home_values
from pipelines.sources.listings import read_active_listings
from pipelines.sources.mortgage import read_mortgage_rates


@pytest.mark.parametrize(
    ("label", "expected"),
    [("Jan", 1), ("feb", 2), ("September", 9), ("Sept", 9), (" Dec ", 12)],
)
def test_month_from_label(label, expected):
    assert month_from_label(label) == expected


def test_month_from_label_rejects_unknown():
    with pytest.raises(SchemaError):
        month_from_label("HALF1")


def test_floor_to_month_handles_mid_month_dates():
    dates = pd.Series(pd.to_datetime(["2020-03-31", "2020-03-15", "2021-12-01"]))

    floored = floor_to_month(dates)

    assert list(floored) == [
        pd.Timestamp("2020-03-01"),
        pd.Timestamp("2020-03-01"),
        pd.Timestamp("2021-12-01"),
    ]


def test_with_month_key_uses_int64_ordinals():
    frame = pd.DataFrame({"date": pd.to_datetime(["2019-11-20", "2020-02-01"])})

    keyed = with_month_key(frame, "date")

    assert keyed["year"].dtype == "int64"
    assert keyed["month"].dtype == "int64"
    assert keyed["month"].tolist() == [11, 2]
    assert "year" not in frame.columns


def test_normalize_month_key_rejects_out_of_range_month():
    frame = pd.DataFrame({"year": [2020], "month": [13]})

    with pytest.raises(SchemaError) as excinfo:
        normalize_month_key(frame, source="synthetic")

    assert excinfo.value.field == "month"


def test_unpivot_is_row_major_and_pure():
    wide = pd.DataFrame({"Year": [2020, 2021], "Jan": [1.0, 3.0], "Feb": [2.0, 4.0], "HALF1": [9, 9]})
    snapshot = wide.copy()

    long = unpivot(
        wide,
        id_columns=["Year"],
        value_pattern=MONTH_LABEL_PATTERN,
        key_name="month",
        value_name="value",
        key_parser=month_from_label,
    )

    assert long.to_dict("records") == [
        {"Year": 2020, "month": 1, "value": 1.0},
        {"Year": 2020, "month": 2, "value": 2.0},
        {"Year": 2021, "month": 1, "value": 3.0},
        {"Year": 2021, "month": 2, "value": 4.0},
    ]
    pd.testing.assert_frame_equal(wide, snapshot)


def test_unpivot_without_value_columns_fails():
    wide = pd.DataFrame({"Year": [2020], "HALF1": [1.0]})

    with pytest.raises(SchemaError) as excinfo:
        unpivot(
            wide,
            id_columns=["Year"],
            value_pattern=MONTH_LABEL_PATTERN,
            key_name="month",
            value_name="cpi",
            source="cpi.csv",
        )

    assert excinfo.value.source == "cpi.csv"


def test_unpivot_requires_id_columns():
    with pytest.raises(SchemaError):
        unpivot(
            pd.DataFrame({"Jan": [1.0]}),
            id_columns=["Year"],
            value_pattern=MONTH_LABEL_PATTERN,
            key_name="month",
            value_name="cpi",
        )


def test_month_keys_match_across_every_reader(mortgage_raw, cpi_raw, listings_raw, home_values_raw):
    keys = [
        read_mortgage_rates(mortgage_raw)[["year", "month"]],
        read_cpi(cpi_raw)[["year", "month"]],
        read_active_listings(listings_raw)[["year", "month"]],
        read_home_values(home_values_raw)[["year", "month"]].drop_duplicates(),
    ]

    reference = keys[2]
    for other in keys:
        assert list(other.dtypes) == list(reference.dtypes)
        matched = reference.merge(other, on=["year", "month"], how="inner")
        assert len(matched) == len(reference)
