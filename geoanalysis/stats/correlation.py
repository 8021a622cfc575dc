# -*- coding: utf-8 -*-
"""Bivariate correlation between two profile series."""

import math

import numpy as np

from ..core.errors import InvalidInputError

RELATIVE_TOLERANCE = 1e-12


def _series_values(series, name):
    values = series.values if hasattr(series, "points") else series
    try:
        data = np.asarray(values, dtype=float).ravel()
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"{name} must hold numeric values") from e

    if not np.all(np.isfinite(data)):
        raise InvalidInputError(f"{name} must hold finite values")
    return data


def correlate(series_x, series_y):
    """Compute the Pearson correlation and least-squares trendline of two series.

    Values are paired by position (sample index along the profile), not by distance.

    Parameters:
    -----------
    series_x : ProfileSeries or array-like of float
        Independent variable
    series_y : ProfileSeries or array-like of float
        Dependent variable, same length as ``series_x``

    Returns:
    --------
    result : dict
        ``coefficient`` (Pearson r, 0 when either series has zero variance), ``slope`` and ``intercept`` of the
        ordinary least squares line y = slope * x + intercept, ``r_squared``, ``scatter_points`` as (x, y) pairs
        and ``count``
    """
    x = _series_values(series_x, "series_x")
    y = _series_values(series_y, "series_y")

    if len(x) != len(y):
        raise InvalidInputError(f"Series lengths differ: {len(x)} != {len(y)}")
    if len(x) == 0:
        raise InvalidInputError("Cannot correlate empty series")

    n = len(x)
    sum_x = float(x.sum())
    sum_y = float(y.sum())
    sum_xy = float((x * y).sum())
    sum_x2 = float((x * x).sum())
    sum_y2 = float((y * y).sum())

    spread_x = n * sum_x2 - sum_x * sum_x
    spread_y = n * sum_y2 - sum_y * sum_y
    covariance = n * sum_xy - sum_x * sum_y

    # spreads within rounding noise of zero count as zero variance
    varies_x = spread_x > RELATIVE_TOLERANCE * n * sum_x2
    varies_y = spread_y > RELATIVE_TOLERANCE * n * sum_y2

    denominator = math.sqrt(spread_x * spread_y) if varies_x and varies_y else 0.0
    coefficient = covariance / denominator if denominator != 0 else 0.0

    # constant x: no trend can be fitted, the line degenerates to the mean of y
    slope = covariance / spread_x if varies_x else 0.0
    intercept = (sum_y - slope * sum_x) / n

    return {
        "coefficient": coefficient,
        "slope": slope,
        "intercept": intercept,
        "r_squared": coefficient * coefficient,
        "scatter_points": list(zip(x.tolist(), y.tolist(), strict=True)),
        "count": n,
    }
