# -*- coding: utf-8 -*-
"""Classification of numeric samples into contiguous classes.

The main entry point is jenks_breaks, the Fisher-Jenks natural breaks optimisation: it partitions a sample into k
classes so that the sum of within-class variances is minimal. It runs in O(n^2 * k), which is fine for attribute
columns and elevation profiles of a few hundred values.
quantile_breaks and class_breaks produce class upper bounds, the form used for graduated symbology.
"""

import numpy as np

from .errors import InsufficientDataError, InvalidInputError

NATURAL_BREAKS = "natural-breaks"
QUANTILES = "quantiles"
CLASSIFICATION_METHODS = (NATURAL_BREAKS, QUANTILES)


def _as_sample(values):
    try:
        data = np.asarray(values, dtype=float).ravel()
    except (TypeError, ValueError) as e:
        raise InvalidInputError("Classification values must be numeric") from e

    if not np.all(np.isfinite(data)):
        raise InvalidInputError("Classification values must be finite")
    return data


def _as_class_count(class_count):
    if isinstance(class_count, bool) or not isinstance(class_count, (int, np.integer)):
        raise InvalidInputError(f"Class count must be an integer, got {class_count!r}")
    if class_count < 1:
        raise InvalidInputError(f"Class count must be at least 1, got {class_count}")
    return int(class_count)


def jenks_breaks(values, class_count):
    """Compute Jenks natural breaks.

    Parameters:
    -----------
    values : array-like of float
        Sample to classify, in any order
    class_count : int
        Number of classes

    Returns:
    --------
    breaks : list of float
        ``class_count - 1`` break values, ascending. Each break is the largest value of a class, so class ``i`` holds the
        values ``breaks[i - 1] < v <= breaks[i]``.
    """
    data = _as_sample(values)
    k = _as_class_count(class_count)
    n = len(data)

    if k > n:
        raise InsufficientDataError(f"Cannot split {n} values into {k} classes")
    if k == 1:
        return []

    data = sorted(data.tolist())

    # lower_class_limits[l][j]: 1-based index where the last of j classes starts for the first l values
    # variance_combinations[l][j]: minimal total within-class variance for that split
    lower_class_limits = [[0] * (k + 1) for _ in range(n + 1)]
    variance_combinations = [[0.0] * (k + 1) for _ in range(n + 1)]

    for j in range(1, k + 1):
        lower_class_limits[1][j] = 1
        variance_combinations[1][j] = 0.0
        for l in range(2, n + 1):
            variance_combinations[l][j] = float("inf")

    for l in range(2, n + 1):
        total = 0.0
        sum_squares = 0.0
        count = 0
        variance = 0.0

        for m in range(1, l + 1):
            lower_index = l - m + 1
            value = data[lower_index - 1]

            count += 1
            total += value
            sum_squares += value * value
            variance = sum_squares - (total * total) / count

            previous = lower_index - 1
            if previous != 0:
                for j in range(2, k + 1):
                    candidate = variance + variance_combinations[previous][j - 1]
                    if variance_combinations[l][j] >= candidate:
                        lower_class_limits[l][j] = lower_index
                        variance_combinations[l][j] = candidate

        lower_class_limits[l][1] = 1
        variance_combinations[l][1] = variance

    breaks = []
    upper = n
    for j in range(k, 1, -1):
        split = lower_class_limits[upper][j]
        breaks.append(data[split - 2])
        upper = split - 1

    return breaks[::-1]


def quantile_breaks(values, class_count):
    """Compute class upper bounds at evenly spaced ranks of the sorted sample.

    Every bound is an actual sample value: the value at rank ``i * step`` for ``i = 1 .. class_count - 1``, with
    ``step = max(1, n // class_count)``, followed by the sample maximum. Repeated bounds collapse into one, so fewer
    than ``class_count`` bounds come back when the sample has many ties.
    """
    data = np.sort(_as_sample(values))
    k = _as_class_count(class_count)

    if k > len(data):
        raise InsufficientDataError(f"Cannot split {len(data)} values into {k} classes")

    step = max(1, len(data) // k)
    picks = [data[min(i * step, len(data) - 1)] for i in range(1, k)] + [data[-1]]
    return [float(v) for v in np.unique(picks)]


def class_breaks(values, class_count, method=NATURAL_BREAKS):
    """Compute class upper bounds with the given method.

    Parameters:
    -----------
    values : array-like of float
        Sample to classify
    class_count : int
        Number of classes
    method : str
        "natural-breaks" or "quantiles"

    Returns:
    --------
    bounds : list of float
        Upper bound of each class, ascending. Natural breaks give ``class_count`` values, quantiles at most that.
    """
    if method == NATURAL_BREAKS:
        data = _as_sample(values)
        return jenks_breaks(data, class_count) + [float(data.max())]
    if method == QUANTILES:
        return quantile_breaks(values, class_count)

    raise InvalidInputError(f"Unknown classification method '{method}', expected one of {', '.join(CLASSIFICATION_METHODS)}")
