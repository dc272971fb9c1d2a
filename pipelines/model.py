"""Canonical data model for the reconciled county/month housing panel."""

from __future__ import annotations

import datetime as dt
import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

_MONTH_KEY_RE = re.compile(r"^\s*(\d{4})-(\d{1,2})\s*$")


class MonthKey(BaseModel):
    """A (year, month) pair used as the join key across every dataset."""

    model_config = ConfigDict(frozen=True)

    year: int = Field(..., description="Calendar year.")
    month: int = Field(..., ge=1, le=12, description="Month ordinal, 1-12.")

    @classmethod
    def parse(cls, raw: str) -> "MonthKey":
        """Parse ``YYYY-MM`` (e.g. ``"2016-07"``)."""

        match = _MONTH_KEY_RE.match(raw or "")
        if not match:
            raise ValueError(f"Month must use the format 'YYYY-MM' (got {raw!r}).")
        return cls(year=int(match.group(1)), month=int(match.group(2)))

    @property
    def first_day(self) -> dt.date:
        return dt.date(self.year, self.month, 1)

    def __lt__(self, other: "MonthKey") -> bool:
        return (self.year, self.month) < (other.year, other.month)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


class CountyKey(BaseModel):
    """Identifies a county uniquely within a state (FIPS codes)."""

    model_config = ConfigDict(frozen=True)

    state_code: int = Field(..., ge=0, description="State FIPS code.")
    county_code: int = Field(..., ge=0, description="County FIPS code within the state.")


class CountyRecord(BaseModel):
    """A county selected into the analysis; ``id`` is its rank by state code."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: int = Field(..., ge=1, description="1-based rank by ascending state code.")
    state_code: int = Field(..., ge=0)
    county_code: int = Field(..., gt=0, description="Never 0; 0 marks state aggregates.")
    state_name: str
    county_name: str

    @property
    def key(self) -> CountyKey:
        return CountyKey(state_code=self.state_code, county_code=self.county_code)


class ReconciledRow(BaseModel):
    """One county/month observation handed to the modeling routines."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: int
    state_code: int
    county_code: int
    state_name: str
    county_name: str
    date: dt.date
    year: int
    month: int = Field(..., ge=1, le=12)
    mortgage_rate: Optional[float] = Field(default=None, description="30-year fixed rate, %.")
    cpi: Optional[float] = Field(default=None, description="Consumer price index level.")
    active_listings: Optional[int] = Field(default=None, description="National active listings.")
    population: Optional[int] = Field(default=None, description="County population estimate.")
    home_value_index: Optional[float] = Field(default=None, description="Home value index.")

    @field_validator("date", mode="before")
    @classmethod
    def coerce_timestamp(cls, value):
        # pandas hands back Timestamps; keep only the calendar date.
        if hasattr(value, "date") and callable(value.date):
            return value.date()
        return value

    @property
    def month_key(self) -> MonthKey:
        return MonthKey(year=self.year, month=self.month)


OUTPUT_COLUMNS: tuple[str, ...] = tuple(ReconciledRow.model_fields)

TRACKED_FIELDS: tuple[str, ...] = (
    "mortgage_rate",
    "cpi",
    "active_listings",
    "population",
    "home_value_index",
)


__all__ = [
    "MonthKey",
    "CountyKey",
    "CountyRecord",
    "ReconciledRow",
    "OUTPUT_COLUMNS",
    "TRACKED_FIELDS",
]
