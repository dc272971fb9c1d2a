import pandas as pd
import pytest

from pipelines.model import MonthKey

MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

WINDOW_START = MonthKey(year=2016, month=1)
WINDOW_END = MonthKey(year=2017, month=12)


def _window_months():
    return pd.date_range("2016-01-01", "2017-12-01", freq="MS")


def make_mortgage_raw():
    rows = []
    for index, month in enumerate(_window_months()):
        first = month + pd.Timedelta(days=index % 5)
        later = month + pd.Timedelta(days=14)
        # Later reading listed first to prove ordering is by date, not file position.
        rows.append({"DATE": later.strftime("%m/%d/%y"), "MORTGAGE30US": 9.99})
        rows.append({"DATE": first.strftime("%m/%d/%y"), "MORTGAGE30US": round(3.5 + index * 0.05, 2)})
    return pd.DataFrame(rows)


def make_cpi_raw():
    rows = []
    for year, base in ((2016, 236.0), (2017, 242.0)):
        row = {"Year": year}
        for offset, label in enumerate(MONTHS):
            row[label] = base + offset * 0.25
        row["HALF1"] = base
        row["HALF2"] = base + 2
        rows.append(row)
    return pd.DataFrame(rows)


def make_listings_raw():
    dates = pd.date_range("2016-07-01", "2017-12-01", freq="MS")
    return pd.DataFrame(
        {
            "observation_date": dates.strftime("%Y-%m-%d"),
            "ACTLISCOUUS": [1_200_000 - i * 1000 for i in range(len(dates))],
        }
    )


def make_population_first():
    return pd.DataFrame(
        {
            "STATE": [6, 6, 4, 6, 53],
            "COUNTY": [0, 37, 13, 1, 33],
            "STNAME": ["California", "California", "Arizona", "California", "Washington"],
            "CTYNAME": [
                "California",
                "Los Angeles County",
                "Maricopa County",
                "Alameda County",
                "King County",
            ],
            "POPESTIMATE2016": [39_000_000, 10_100_000, 4_200_000, 1_600_000, 2_100_000],
            "POPESTIMATE2017": [39_300_000, 10_150_000, 4_300_000, 1_620_000, 2_150_000],
        }
    )


def make_population_second():
    return pd.DataFrame(
        {
            "STATE": [6, 6, 4, 6, 53],
            "COUNTY": [0, 37, 13, 1, 33],
            "STNAME": ["California", "California", "Arizona", "California", "Washington"],
            "CTYNAME": [
                "California",
                "Los Angeles County",
                "Maricopa County",
                "Alameda County",
                "King County",
            ],
            # 2017 is reported by both extracts; these values must win.
            "POPESTIMATE2017": [39_400_000, 10_160_000, 4_310_000, 1_630_000, 1_990_000],
            "POPESTIMATE2018": [39_500_000, 10_170_000, 4_400_000, 1_650_000, 1_995_000],
        }
    )


def make_home_values_raw():
    snapshots = pd.date_range("2016-01-31", "2017-12-31", freq="ME").strftime("%Y-%m-%d")
    counties = [
        ("CA", "Los Angeles County", 6, 37, 550_000.0),
        ("AZ", "Maricopa County", 4, 13, 230_000.0),
        ("WA", "King County", 53, 33, 480_000.0),
    ]
    rows = []
    for rank, (state, name, state_fips, county_fips, base) in enumerate(counties):
        row = {
            "RegionID": 3100 + rank,
            "SizeRank": rank,
            "RegionName": name,
            "State": state,
            "StateCodeFIPS": state_fips,
            "MunicipalCodeFIPS": county_fips,
        }
        for offset, snapshot in enumerate(snapshots):
            row[snapshot] = base + offset * 1000.0
        rows.append(row)
    frame = pd.DataFrame(rows)
    # Los Angeles has no December 2017 snapshot.
    frame.loc[0, snapshots[-1]] = None
    return frame


@pytest.fixture()
def mortgage_raw():
    return make_mortgage_raw()


@pytest.fixture()
def cpi_raw():
    return make_cpi_raw()


@pytest.fixture()
def listings_raw():
    return make_listings_raw()


@pytest.fixture()
def population_first():
    return make_population_first()


@pytest.fixture()
def population_second():
    return make_population_second()


@pytest.fixture()
def home_values_raw():
    return make_home_values_raw()


@pytest.fixture()
def raw_data_dir(tmp_path):
    """The synthetic inputs written to disk under their default file names."""

    make_mortgage_raw().to_csv(tmp_path / "MORTGAGE30US.csv", index=False)
    make_cpi_raw().to_csv(tmp_path / "cpi.csv", index=False)
    make_listings_raw().to_csv(tmp_path / "ACTLISCOUUS.csv", index=False)
    make_population_first().to_csv(
        tmp_path / "co-est2019-alldata.csv", index=False, encoding="latin-1"
    )
    make_population_second().to_csv(
        tmp_path / "co-est2022-alldata.csv", index=False, encoding="latin-1"
    )
    make_home_values_raw().to_csv(tmp_path / "County_zhvi.csv", index=False)
    return tmp_path
