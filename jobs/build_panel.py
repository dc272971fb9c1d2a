"""End-to-end job that reads every source and reconciles the county/month panel."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

from jobs.config import PipelineConfig, load_config
from pipelines.backbone import build_backbone
from pipelines.counties import select_counties
from pipelines.errors import IncompleteRowError, PipelineError
from pipelines.model import CountyRecord
from pipelines.modeling import (
    DEFAULT_HOLDOUT_MONTHS,
    fit_arima_by_county,
    fit_linear_regression,
    fit_random_forest_by_county,
)
from pipelines.reconcile import ReconciledPanel, SourceFacts, reconcile
from pipelines.sources.cpi import read_cpi
from pipelines.sources.home_value import read_home_values
from pipelines.sources.listings import read_active_listings
from pipelines.sources.mortgage import read_mortgage_rates
from pipelines.sources.population import population_by_year, read_population_estimates

load_dotenv()

logger = logging.getLogger(__name__)


def read_sources(config: PipelineConfig) -> tuple[SourceFacts, list[CountyRecord]]:
    """Read all five inputs; returns the source facts and the selected counties."""

    population_wide = read_population_estimates(
        config.path(config.population_first_file),
        config.path(config.population_second_file),
    )
    counties = select_counties(population_wide, threshold=config.population_threshold)

    facts = SourceFacts(
        mortgage=read_mortgage_rates(config.path(config.mortgage_file)),
        cpi=read_cpi(config.path(config.cpi_file)),
        listings=read_active_listings(config.path(config.listings_file)),
        population=population_by_year(population_wide),
        home_value=read_home_values(config.path(config.home_value_file)),
    )
    return facts, counties


def build_panel(config: PipelineConfig | None = None, *, strict: bool = False) -> ReconciledPanel:
    """Run the full pipeline and return the reconciled panel."""

    config = config or load_config()
    facts, counties = read_sources(config)
    backbone = build_backbone(config.window_start, config.window_end)
    logger.info(
        "Reconciling %s counties over %s months (%s to %s).",
        len(counties),
        len(backbone),
        config.window_start,
        config.window_end,
    )
    return reconcile(
        backbone,
        counties,
        facts,
        cutoff=config.validity_cutoff,
        min_non_null_rate=config.min_non_null_rate,
        strict=strict,
    )


def fit_models(panel: ReconciledPanel) -> None:
    complete = panel.complete
    months = complete["date"].nunique()
    if months <= DEFAULT_HOLDOUT_MONTHS:
        logger.warning(
            "Only %s complete months (holdout is %s); skipping the pooled regression.",
            months,
            DEFAULT_HOLDOUT_MONTHS,
        )
    else:
        fit_linear_regression(complete)
    for label, fits in (
        ("Random forest", fit_random_forest_by_county(complete)),
        ("ARIMA", fit_arima_by_county(complete)),
    ):
        for county_id, fit in fits.items():
            logger.info(
                "%s county %s holdout RMSE=%.2f R2=%.3f.", label, county_id, fit.rmse, fit.r2
            )


def main(
    config: PipelineConfig | None = None,
    *,
    strict: bool = False,
    with_models: bool = False,
) -> int:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    try:
        panel = build_panel(config, strict=strict)
    except IncompleteRowError as exc:
        logger.error("Panel build failed: %s (missing counts: %s).", exc, exc.missing)
        return 1
    except PipelineError as exc:
        logger.error("Panel build failed reading %s field %s: %s", exc.source, exc.field, exc)
        return 1
    except FileNotFoundError as exc:
        logger.error("Panel build failed: %s", exc)
        return 1

    logger.info(
        "Panel build finished (complete rows=%s, incomplete rows=%s, cutoff=%s).",
        len(panel.complete),
        len(panel.incomplete),
        panel.cutoff or "(none)",
    )
    if with_models:
        if panel.complete.empty:
            logger.warning("No complete rows; skipping model fitting.")
        else:
            fit_models(panel)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
