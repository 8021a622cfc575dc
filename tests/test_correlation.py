# -*- coding: utf-8 -*-
"""Tests for profile correlation."""

import math

import pandas as pd
import pytest

from geoanalysis import InvalidInputError, ProfileSeries, correlate, series_statistics


def _series(values, dataset_id="dem"):
    points = pd.DataFrame({"distance": range(len(values)), "value": values})
    return ProfileSeries(dataset_id, points, series_statistics(values))


def test_pearson_and_trendline():
    result = correlate([1, 2, 3, 4, 5], [2, 4, 5, 4, 5])

    assert result["coefficient"] == pytest.approx(0.774597, abs=1e-6)
    assert result["slope"] == pytest.approx(0.6)
    assert result["intercept"] == pytest.approx(2.2)
    assert result["r_squared"] == pytest.approx(0.6)
    assert result["count"] == 5
    assert result["scatter_points"][0] == (1.0, 2.0)


def test_accepts_profile_series():
    result = correlate(_series([1.0, 2.0, 3.0]), _series([30.0, 20.0, 10.0], "slope"))

    assert result["coefficient"] == pytest.approx(-1.0)
    assert result["slope"] == pytest.approx(-10.0)
    assert result["intercept"] == pytest.approx(40.0)


def test_coefficient_is_bounded():
    result = correlate([0.1, 0.5, 0.9, 3.3, 7.2, 7.3], [1.0, 0.2, 4.4, 2.5, 8.0, 9.1])

    assert -1.0 <= result["coefficient"] <= 1.0


def test_perfect_fit():
    result = correlate([0, 1, 2, 3], [1, 3, 5, 7])

    assert result["coefficient"] == pytest.approx(1.0)
    assert result["slope"] == pytest.approx(2.0)
    assert result["intercept"] == pytest.approx(1.0)


def test_constant_series_has_no_correlation():
    result = correlate([5, 5, 5, 5], [1, 2, 3, 4])

    assert result["coefficient"] == 0
    assert result["slope"] == 0
    assert result["intercept"] == pytest.approx(2.5)
    assert not math.isnan(result["r_squared"])


def test_constant_dependent_series():
    result = correlate([1, 2, 3, 4], [7.1, 7.1, 7.1, 7.1])

    assert result["coefficient"] == 0
    assert result["slope"] == pytest.approx(0.0, abs=1e-12)
    assert result["intercept"] == pytest.approx(7.1)


def test_single_pair():
    result = correlate([3.0], [4.0])

    assert result["coefficient"] == 0
    assert result["intercept"] == pytest.approx(4.0)


def test_length_mismatch():
    with pytest.raises(InvalidInputError):
        correlate([1, 2, 3], [1, 2])


def test_empty_series():
    with pytest.raises(InvalidInputError):
        correlate([], [])


@pytest.mark.parametrize("values", [[1, math.nan, 3], [1, math.inf, 3], ["a", "b", "c"]])
def test_non_finite_values(values):
    with pytest.raises(InvalidInputError):
        correlate(values, [1, 2, 3])
