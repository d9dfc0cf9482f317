"""
forecast.py
-----------
Short-horizon MRR forecast from a single ordinary-least-squares line.

The trailing six months of MRR are indexed x = 0..n-1 and fitted with
``y = slope·x + intercept``; the next three months are projected at
x = n, n+1, n+2.  Projections are floored at zero and carry fixed ±20 %
bands.  No randomness is involved, so identical input gives identical
output.
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np
import pandas as pd
from sklearn.linear_model import LinearRegression

import config
from cohorts import month_key
from errors import InsufficientDataError
from records import ForecastPoint, MonthlyCohort, round_money

logger = logging.getLogger(__name__)


def trailing_mrr(
    trend:         Sequence[MonthlyCohort],
    history_start: pd.Period | None,
    window:        int = config.FORECAST_WINDOW,
) -> list[float]:
    """
    MRR values the regression is fitted on.

    Months before the ledger's first settled transaction carry no data and
    are left out, so a young ledger yields fewer than ``window`` points.
    """
    if history_start is None:
        return []
    tail = list(trend)[-window:]
    return [c.mrr for c in tail if pd.Period(c.month, freq="M") >= history_start]


def fit_trend(values: Sequence[float]) -> tuple[float, float]:
    """
    Least-squares slope and intercept over x = 0..n-1.

    Raises
    ------
    InsufficientDataError
        Fewer than two points.
    """
    y = np.asarray(values, dtype=float)
    if len(y) < config.MIN_FORECAST_POINTS:
        raise InsufficientDataError(
            f"Need at least {config.MIN_FORECAST_POINTS} months of MRR to fit a trend, got {len(y)}"
        )
    x = np.arange(len(y), dtype=float).reshape(-1, 1)
    model = LinearRegression().fit(x, y)
    return float(model.coef_[0]), float(model.intercept_)


def forecast_mrr(
    values:     Sequence[float],
    last_month: pd.Period,
    horizon:    int = config.FORECAST_HORIZON,
) -> list[ForecastPoint]:
    """
    Project ``horizon`` months after *last_month*.

    Parameters
    ----------
    values : Sequence[float]
        Trailing MRR, oldest first (see ``trailing_mrr``).
    last_month : pd.Period
        Month of the final value; the first projection is the month after.
    horizon : int
        Number of months to project (default 3).

    Returns
    -------
    list[ForecastPoint]

    Raises
    ------
    InsufficientDataError
        Fewer than two points in *values*.
    """
    slope, intercept = fit_trend(values)
    n = len(values)

    points = []
    for step in range(horizon):
        x = n + step
        projected = max(0.0, round_money(slope * x + intercept))
        points.append(ForecastPoint(
            month=month_key(last_month + step + 1),
            projected=projected,
            optimistic=round_money(projected * config.OPTIMISTIC_FACTOR),
            conservative=round_money(projected * config.CONSERVATIVE_FACTOR),
        ))

    logger.info("Forecast fitted on %d month(s): slope %.2f, intercept %.2f", n, slope, intercept)
    return points
