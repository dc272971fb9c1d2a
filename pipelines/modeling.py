"""Models fitted on the complete reconciled panel.

Three model families explain ``home_value_index`` from the other tracked
fields: a pooled linear regression, a random forest per county and an ARIMA
per county with the same fields as exogenous regressors. Hyperparameters are
fixed. Each model is scored on the last ``holdout_months`` of data.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import Any, Callable

import numpy as np
import pandas as pd
from sklearn.ensemble import RandomForestRegressor
from sklearn.linear_model import LinearRegression
from sklearn.metrics import mean_squared_error, r2_score
from statsmodels.tools.sm_exceptions import ConvergenceWarning
from statsmodels.tsa.statespace.sarimax import SARIMAX

FEATURE_COLUMNS: tuple[str, ...] = ("mortgage_rate", "cpi", "active_listings", "population")
TARGET_COLUMN = "home_value_index"
DEFAULT_HOLDOUT_MONTHS = 12
MIN_TRAINING_MONTHS = 24

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelFit:
    """A fitted model and its holdout scores."""

    name: str
    model: Any
    rmse: float
    r2: float
    county_id: int | None = None


def _split_by_date(frame: pd.DataFrame, holdout_months: int) -> tuple[pd.DataFrame, pd.DataFrame]:
    dates = np.sort(frame["date"].unique())
    if len(dates) <= holdout_months:
        raise ValueError(
            f"Need more than {holdout_months} months to hold out; got {len(dates)}."
        )
    boundary = dates[-holdout_months]
    return frame[frame["date"] < boundary], frame[frame["date"] >= boundary]


def _score(actual, predicted) -> tuple[float, float]:
    rmse = float(np.sqrt(mean_squared_error(actual, predicted)))
    r2 = float(r2_score(actual, predicted)) if len(actual) > 1 else float("nan")
    return rmse, r2


def fit_linear_regression(
    complete: pd.DataFrame,
    *,
    holdout_months: int = DEFAULT_HOLDOUT_MONTHS,
) -> ModelFit:
    """Pooled ordinary least squares across all counties."""

    train, test = _split_by_date(complete, holdout_months)
    features = list(FEATURE_COLUMNS)
    model = LinearRegression().fit(train[features], train[TARGET_COLUMN])
    rmse, r2 = _score(test[TARGET_COLUMN], model.predict(test[features]))
    logger.info("Linear regression holdout RMSE=%.2f R2=%.3f.", rmse, r2)
    return ModelFit(name="linear_regression", model=model, rmse=rmse, r2=r2)


def _random_forest(county: pd.DataFrame, holdout_months: int, random_state: int) -> ModelFit:
    train, test = _split_by_date(county, holdout_months)
    features = list(FEATURE_COLUMNS)
    model = RandomForestRegressor(n_estimators=200, random_state=random_state)
    model.fit(train[features], train[TARGET_COLUMN])
    rmse, r2 = _score(test[TARGET_COLUMN], model.predict(test[features]))
    return ModelFit(name="random_forest", model=model, rmse=rmse, r2=r2)


def _arima(county: pd.DataFrame, holdout_months: int, order: tuple[int, int, int]) -> ModelFit:
    train, test = _split_by_date(county, holdout_months)
    features = list(FEATURE_COLUMNS)

    model = SARIMAX(
        train[TARGET_COLUMN].to_numpy(dtype=float),
        exog=train[features].to_numpy(dtype=float),
        order=order,
    )
    with warnings.catch_warnings():
        # Short monthly series routinely trip the optimizer's convergence check.
        warnings.simplefilter("ignore", ConvergenceWarning)
        result = model.fit(disp=False)
    forecast = result.forecast(steps=len(test), exog=test[features].to_numpy(dtype=float))
    rmse, r2 = _score(test[TARGET_COLUMN].to_numpy(dtype=float), np.asarray(forecast))
    return ModelFit(name="arima", model=result, rmse=rmse, r2=r2)


def fit_per_county(
    complete: pd.DataFrame,
    fitter: Callable[[pd.DataFrame], ModelFit],
    *,
    min_months: int = MIN_TRAINING_MONTHS,
) -> dict[int, ModelFit]:
    """Apply ``fitter`` to each county's rows independently, keyed by county id."""

    fits: dict[int, ModelFit] = {}
    for county_id, county in complete.groupby("id", sort=True):
        county = county.sort_values("date").reset_index(drop=True)
        if len(county) < min_months:
            logger.info(
                "Skipping county %s: %s complete months (< %s).", county_id, len(county), min_months
            )
            continue
        fit = fitter(county)
        fits[int(county_id)] = ModelFit(
            name=fit.name, model=fit.model, rmse=fit.rmse, r2=fit.r2, county_id=int(county_id)
        )
    return fits


def fit_random_forest_by_county(
    complete: pd.DataFrame,
    *,
    holdout_months: int = DEFAULT_HOLDOUT_MONTHS,
    random_state: int = 0,
) -> dict[int, ModelFit]:
    return fit_per_county(
        complete, lambda county: _random_forest(county, holdout_months, random_state)
    )


def fit_arima_by_county(
    complete: pd.DataFrame,
    *,
    order: tuple[int, int, int] = (1, 1, 1),
    holdout_months: int = DEFAULT_HOLDOUT_MONTHS,
) -> dict[int, ModelFit]:
    return fit_per_county(complete, lambda county: _arima(county, holdout_months, order))


__all__ = [
    "ModelFit",
    "FEATURE_COLUMNS",
    "TARGET_COLUMN",
    "fit_linear_regression",
    "fit_random_forest_by_county",
    "fit_arima_by_county",
    "fit_per_county",
]
