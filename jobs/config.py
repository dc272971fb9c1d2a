"""Static configuration for the panel build: input files, window and thresholds."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Callable

from pipelines.backbone import DEFAULT_WINDOW_END, DEFAULT_WINDOW_START
from pipelines.counties import DEFAULT_POPULATION_THRESHOLD
from pipelines.model import MonthKey
from pipelines.reconcile import DEFAULT_MIN_NON_NULL_RATE

DATA_DIR_ENV = "HOUSING_DATA_DIR"
DEFAULT_DATA_DIR = Path("data/raw")


@dataclass(frozen=True)
class PipelineConfig:
    """Everything a panel build needs to locate its inputs and shape its output."""

    data_dir: Path = DEFAULT_DATA_DIR
    mortgage_file: str = "MORTGAGE30US.csv"
    cpi_file: str = "cpi.csv"
    listings_file: str = "ACTLISCOUUS.csv"
    population_first_file: str = "co-est2019-alldata.csv"
    population_second_file: str = "co-est2022-alldata.csv"
    home_value_file: str = "County_zhvi.csv"
    window_start: MonthKey = DEFAULT_WINDOW_START
    window_end: MonthKey = DEFAULT_WINDOW_END
    validity_cutoff: MonthKey | None = None
    population_threshold: int = DEFAULT_POPULATION_THRESHOLD
    min_non_null_rate: float = DEFAULT_MIN_NON_NULL_RATE

    def path(self, file_name: str) -> Path:
        candidate = Path(file_name)
        if candidate.is_absolute():
            return candidate
        return Path(self.data_dir) / candidate

    def with_data_dir(self, data_dir: str | os.PathLike[str]) -> "PipelineConfig":
        return replace(self, data_dir=Path(data_dir))

    def describe(self) -> list[str]:
        lines = []
        for item in fields(self):
            value = getattr(self, item.name)
            if item.name.endswith("_file"):
                value = self.path(value)
            lines.append(f"{item.name}={value if value is not None else '(derived)'}")
        return lines


# Environment variable -> (config field, parser)
_ENV_FIELDS: dict[str, tuple[str, Callable[[str], object]]] = {
    "MORTGAGE_FILE": ("mortgage_file", str),
    "CPI_FILE": ("cpi_file", str),
    "LISTINGS_FILE": ("listings_file", str),
    "POPULATION_FILE_FIRST": ("population_first_file", str),
    "POPULATION_FILE_SECOND": ("population_second_file", str),
    "HOME_VALUE_FILE": ("home_value_file", str),
    "WINDOW_START": ("window_start", MonthKey.parse),
    "WINDOW_END": ("window_end", MonthKey.parse),
    "VALIDITY_CUTOFF": ("validity_cutoff", MonthKey.parse),
    "POPULATION_THRESHOLD": ("population_threshold", int),
    "MIN_NON_NULL_RATE": ("min_non_null_rate", float),
}


def load_config(data_dir: str | os.PathLike[str] | None = None) -> PipelineConfig:
    """Build a ``PipelineConfig`` from defaults overridden by environment variables."""

    overrides: dict[str, object] = {}
    for env_var, (name, parser) in _ENV_FIELDS.items():
        raw = os.getenv(env_var)
        if raw is None or not raw.strip():
            continue
        try:
            overrides[name] = parser(raw.strip())
        except ValueError as exc:
            raise ValueError(f"Invalid value for {env_var}: {raw!r} ({exc})") from exc

    resolved_dir = data_dir or os.getenv(DATA_DIR_ENV)
    if resolved_dir:
        overrides["data_dir"] = Path(resolved_dir)

    return PipelineConfig(**overrides)


__all__ = ["PipelineConfig", "load_config", "DATA_DIR_ENV", "DEFAULT_DATA_DIR"]
