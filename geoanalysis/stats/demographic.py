# -*- coding: utf-8 -*-
"""Geometric (compound) population growth projection from three census counts."""

from ..core.errors import InvalidInputError
from ..core.geometry import require_number

CENSUS_YEARS = (2001, 2010, 2022)


def project_population(p1, p2, p3, target_year, census_years=CENSUS_YEARS):
    """Project a population to a target year assuming compound annual growth.

    The annual growth rate of each inter-census period is ``(p_next / p_prev) ** (1 / years) - 1``; the two rates
    are averaged and applied to the last count.

    Parameters:
    -----------
    p1, p2, p3 : float
        Population counts at the three census years, oldest first
    target_year : float
        Year to project to. Years before the last census extrapolate backwards.
    census_years : tuple of 3 int
        Years of the three counts, strictly increasing

    Returns:
    --------
    projection : dict
        ``projected_population``, ``average_annual_rate`` and the per-period ``period_rates``
    """
    counts = [require_number(value, name) for value, name in ((p1, "p1"), (p2, "p2"), (p3, "p3"))]
    target = require_number(target_year, "target_year")

    years = [require_number(year, "census year") for year in census_years]
    if len(years) != 3:
        raise InvalidInputError(f"Expected 3 census years, got {len(years)}")
    if not years[0] < years[1] < years[2]:
        raise InvalidInputError(f"Census years must be strictly increasing, got {tuple(census_years)}")

    period_rates = []
    for (start, end), (start_year, end_year) in zip(zip(counts, counts[1:]), zip(years, years[1:])):
        if start == 0 or end / start < 0:
            raise InvalidInputError(f"No growth rate between populations {start} and {end}")
        period_rates.append((end / start) ** (1.0 / (end_year - start_year)) - 1.0)

    average_annual_rate = sum(period_rates) / len(period_rates)
    projected_population = counts[-1] * (1.0 + average_annual_rate) ** (target - years[-1])

    return {
        "projected_population": projected_population,
        "average_annual_rate": average_annual_rate,
        "period_rates": period_rates,
    }
