# -*- coding: utf-8 -*-
"""Samples values along a line from an external elevation source and summarizes them.

A profile places ``sample_count + 1`` equally spaced positions on a line, converts them to lon/lat, asks the elevation
source for every requested dataset once with the whole batch, and returns one ProfileSeries per dataset.
The elevation source is anything implementing ElevationSource; this module never talks to a remote service itself.

Values the source reports as missing (None, NaN or the nodata sentinel) are shown as 0 in the profile points but left
out of the statistics.
"""

import abc
import asyncio
import logging
import math

import numpy as np
import pandas as pd
from shapely.errors import ShapelyError
from shapely.geometry import LineString, shape

from ..core.classification import jenks_breaks
from ..core.errors import ExternalSamplingError, InvalidInputError
from ..core.geometry import DEFAULT_PLANAR_CRS, cumulative_distances, to_geographic

log = logging.getLogger(__name__)

DEFAULT_NODATA = -9999
PROFILE_CLASSES = 3


class ElevationSource(abc.ABC):
    """A service returning raster values for geographic positions."""

    @abc.abstractmethod
    async def sample(self, points, dataset_id, band):
        """Sample one dataset band at a batch of positions.

        Parameters:
        -----------
        points : list of dict
            Positions as ``{"lon": float, "lat": float}``
        dataset_id : str
            Dataset to sample
        band : str or None
            Band of the dataset

        Returns:
        --------
        values : list of float or None
            One value per position, in the same order; None marks missing data
        """


class DatasetRef:
    """A dataset band to sample along a profile."""

    def __init__(self, dataset_id, band=None, name=None):
        """Initialize a dataset reference.

        Parameters:
        -----------
        dataset_id : str
            Identifier understood by the elevation source
        band : str, optional
            Band to sample
        name : str, optional
            Display name. If None, the dataset id is used.
        """
        self.dataset_id = dataset_id
        self.band = band
        self.name = name if name else dataset_id

    def __repr__(self):
        return f"DatasetRef({self.dataset_id!r}, band={self.band!r})"


class ProfileSeries:
    """Values of one dataset along a profile line, with their statistics."""

    def __init__(self, dataset_id, points, stats, name=None):
        self.dataset_id = dataset_id
        self.name = name if name else dataset_id
        self.points = points
        self.stats = stats

    @property
    def values(self):
        """Profile values in sample order, missing data shown as 0."""
        return self.points["value"].to_numpy()

    def __len__(self):
        return len(self.points)

    def __str__(self):
        return f"ProfileSeries '{self.name}' (points: {len(self)}, valid: {self.stats['count']})"


def series_statistics(values):
    """Summarize the valid values of a profile.

    Parameters:
    -----------
    values : array-like of float
        Valid (non-sentinel) values

    Returns:
    --------
    stats : dict
        min, max, mean, population standard deviation (``std_dev``), the two natural breaks of a 3-class Jenks
        classification (``class_breaks``, empty with fewer than 3 values) and ``count``. Every statistic is None
        when there are no values.
    """
    data = np.asarray(values, dtype=float)

    if data.size == 0:
        return {"min": None, "max": None, "mean": None, "std_dev": None, "class_breaks": [], "count": 0}

    mean = float(data.mean())
    return {
        "min": float(data.min()),
        "max": float(data.max()),
        "mean": mean,
        "std_dev": float(math.sqrt(np.mean((data - mean) ** 2))),
        "class_breaks": jenks_breaks(data, PROFILE_CLASSES) if data.size >= PROFILE_CLASSES else [],
        "count": int(data.size),
    }


def _is_missing(value, nodata):
    if value is None:
        return True
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ExternalSamplingError(f"Elevation source returned a non-numeric value {value!r}") from e
    return not math.isfinite(number) or (nodata is not None and number == nodata)


def _as_line(line):
    if isinstance(line, dict):
        try:
            line = shape(line.get("geometry", line))
        except (AttributeError, KeyError, TypeError, ValueError, ShapelyError) as e:
            raise InvalidInputError("Profile line is not a valid GeoJSON geometry") from e

    if not isinstance(line, LineString) or line.is_empty or line.length == 0:
        raise InvalidInputError("Profile needs a non-empty LineString")
    return line


async def _sample_dataset(source, points, dataset):
    try:
        values = await source.sample(points, dataset.dataset_id, dataset.band)
    except ExternalSamplingError:
        raise
    except Exception as e:
        raise ExternalSamplingError(f"Sampling dataset '{dataset.dataset_id}' failed: {e}") from e

    values = list(values) if values is not None else []
    if len(values) != len(points):
        raise ExternalSamplingError(
            f"Elevation source returned {len(values)} values for {len(points)} points of dataset '{dataset.dataset_id}'"
        )
    return values


def _build_series(dataset, values, positions, lonlat, distances, nodata):
    missing = [_is_missing(value, nodata) for value in values]
    shown = [0.0 if is_missing else float(value) for value, is_missing in zip(values, missing, strict=True)]
    valid = [value for value, is_missing in zip(shown, missing, strict=True) if not is_missing]

    if any(missing):
        log.debug("Dataset %s: %d of %d samples have no data", dataset.dataset_id, sum(missing), len(values))

    points = pd.DataFrame(
        {
            "distance": distances,
            "value": shown,
            "lon": lonlat[:, 0],
            "lat": lonlat[:, 1],
            "x": positions[:, 0],
            "y": positions[:, 1],
        }
    )
    return ProfileSeries(dataset.dataset_id, points, series_statistics(valid), name=dataset.name)


async def build_profile(line, sample_count, datasets, source, crs=DEFAULT_PLANAR_CRS, nodata=DEFAULT_NODATA, timeout=None):
    """Sample datasets along a line.

    Parameters:
    -----------
    line : shapely.geometry.LineString or dict
        Profile line, or a GeoJSON geometry / feature holding one
    sample_count : int
        Number of equal steps; the line is sampled at ``sample_count + 1`` positions including both ends
    datasets : list of DatasetRef
        Datasets to sample
    source : ElevationSource
        Source queried once per dataset with the whole batch of positions
    crs : str or pyproj.CRS
        Reference system of the line coordinates
    nodata : float, optional
        Sentinel value meaning "no data"
    timeout : float, optional
        Seconds allowed for all sampling requests together

    Returns:
    --------
    series : list of ProfileSeries
        One series per dataset, in the order of ``datasets``

    Raises:
    -------
    ExternalSamplingError
        When the source fails, times out or returns a batch of the wrong length. No partial profile is returned.
    """
    line = _as_line(line)
    if isinstance(sample_count, bool) or not isinstance(sample_count, (int, np.integer)) or sample_count < 1:
        raise InvalidInputError(f"Sample count must be a positive integer, got {sample_count!r}")

    datasets = list(datasets or [])
    if not datasets:
        raise InvalidInputError("Profile needs at least one dataset")

    fractions = np.linspace(0.0, 1.0, int(sample_count) + 1)
    positions = np.array([line.interpolate(fraction, normalized=True).coords[0][:2] for fraction in fractions])
    lonlat = to_geographic(positions, crs)
    distances = cumulative_distances(lonlat)
    points = [{"lon": float(lon), "lat": float(lat)} for lon, lat in lonlat]

    tasks = [asyncio.ensure_future(_sample_dataset(source, points, dataset)) for dataset in datasets]
    try:
        requests = asyncio.gather(*tasks)
        batches = await (requests if timeout is None else asyncio.wait_for(requests, timeout))
    except asyncio.TimeoutError as e:
        raise ExternalSamplingError(f"Elevation sampling did not finish within {timeout} s") from e
    finally:
        # one dataset failed, timed out or the caller cancelled: drop the requests still in flight
        for task in tasks:
            if not task.done():
                task.cancel()

    log.info("Profile of %.1f m sampled at %d positions for %d datasets", distances[-1], len(points), len(datasets))

    return [
        _build_series(dataset, values, positions, lonlat, distances, nodata)
        for dataset, values in zip(datasets, batches, strict=True)
    ]
