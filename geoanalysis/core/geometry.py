# -*- coding: utf-8 -*-
"""Geometry primitives shared by the analysis operations.

Covers unit conversion, transforms between the geographic (lon/lat) frame and planar frames, geodesic length, area
and distance on the WGS84 ellipsoid, and projection of a layer into a metric CRS so that distances can be expressed
in meters whatever frame the features arrive in.
"""

import logging
import math
from functools import lru_cache

import numpy as np
import shapely
from pyproj import CRS, Geod, Transformer

from .errors import InvalidInputError

log = logging.getLogger(__name__)

GEOGRAPHIC_CRS = "EPSG:4326"
DEFAULT_PLANAR_CRS = "EPSG:3857"
EARTH_RADIUS_KM = 6371.0088
# widest area of use, in degrees of longitude, for a projected CRS to count as regional
LOCAL_EXTENT_DEGREES = 30.0

UNIT_FACTORS = {
    "meters": 1.0,
    "kilometers": 1000.0,
    "miles": 1609.344,
}

GEOD = Geod(ellps="WGS84")


def to_meters(distance, units="meters", allowed=None):
    """Convert a distance expressed in ``units`` to meters.

    Parameters:
    -----------
    distance : float
        Distance to convert
    units : str
        One of "meters", "kilometers", "miles"
    allowed : iterable of str, optional
        Restrict the accepted units

    Returns:
    --------
    meters : float
        Distance in meters
    """
    allowed = tuple(allowed) if allowed else tuple(UNIT_FACTORS)
    if units not in allowed:
        raise InvalidInputError(f"Unsupported units '{units}', expected one of {', '.join(allowed)}")

    return require_number(distance, "distance") * UNIT_FACTORS[units]


def require_number(value, name):
    """Return ``value`` as a float, raising InvalidInputError if it is not a finite number."""
    if isinstance(value, bool):
        raise InvalidInputError(f"{name} must be a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"{name} must be a number, got {value!r}") from e

    if not math.isfinite(number):
        raise InvalidInputError(f"{name} must be finite, got {value!r}")
    return number


def is_geographic(crs):
    """True when ``crs`` is a geographic (lon/lat) reference system."""
    if crs is None:
        return False
    return CRS.from_user_input(crs).is_geographic


@lru_cache(maxsize=32)
def _transformer(source, target):
    return Transformer.from_crs(source, target, always_xy=True)


def get_transformer(source_crs, target_crs):
    """Return a cached lon/lat-ordered transformer between two reference systems."""
    return _transformer(CRS.from_user_input(source_crs).to_wkt(), CRS.from_user_input(target_crs).to_wkt())


def to_geographic(coords, crs=DEFAULT_PLANAR_CRS):
    """Transform planar ``(x, y)`` pairs to geographic ``(lon, lat)`` pairs.

    Parameters:
    -----------
    coords : array-like, shape (n, 2)
        Coordinates in ``crs``
    crs : str or pyproj.CRS
        Reference system of ``coords``

    Returns:
    --------
    lonlat : numpy.ndarray, shape (n, 2)
        Geographic coordinates
    """
    coords = np.asarray(coords, dtype=float).reshape(-1, 2)
    if is_geographic(crs):
        return coords.copy()

    lon, lat = get_transformer(crs, GEOGRAPHIC_CRS).transform(coords[:, 0], coords[:, 1])
    return np.column_stack([lon, lat])


def to_planar(coords, crs=DEFAULT_PLANAR_CRS):
    """Transform geographic ``(lon, lat)`` pairs to planar pairs in ``crs``."""
    coords = np.asarray(coords, dtype=float).reshape(-1, 2)
    if is_geographic(crs):
        return coords.copy()

    x, y = get_transformer(GEOGRAPHIC_CRS, crs).transform(coords[:, 0], coords[:, 1])
    return np.column_stack([x, y])


def geodesic_distance(lonlat_a, lonlat_b):
    """Geodesic distance in meters between two (lon, lat) positions."""
    _, _, distance = GEOD.inv(lonlat_a[0], lonlat_a[1], lonlat_b[0], lonlat_b[1])
    return float(distance)


def cumulative_distances(lonlat):
    """Cumulative geodesic distance in meters from the first of a sequence of (lon, lat) positions."""
    lonlat = np.asarray(lonlat, dtype=float).reshape(-1, 2)
    if len(lonlat) < 2:
        return np.zeros(len(lonlat))

    _, _, steps = GEOD.inv(lonlat[:-1, 0], lonlat[:-1, 1], lonlat[1:, 0], lonlat[1:, 1])
    return np.concatenate([[0.0], np.cumsum(steps)])


@lru_cache(maxsize=32)
def _metric_scale(wkt):
    crs = CRS.from_wkt(wkt)
    if not crs.is_projected:
        return False
    if any(axis.unit_name not in ("metre", "meter") for axis in crs.axis_info):
        return False

    area = crs.area_of_use
    if area is None:
        return True
    width = area.east - area.west if area.east >= area.west else area.east - area.west + 360.0
    return width <= LOCAL_EXTENT_DEGREES


def has_metric_scale(crs):
    """True when planar distances in ``crs`` are ground meters.

    That holds for projected systems in meters built for a region (UTM zones, national grids), and for features
    without a CRS, which are taken to be planar meters. World projections such as Web Mercator stretch distances away
    from their standard lines, and geographic or non-metric systems do not measure meters at all.
    """
    if crs is None:
        return True
    return _metric_scale(CRS.from_user_input(crs).to_wkt())


def _geographic_geometry(geometry, crs):
    return shapely.transform(geometry, lambda coords: to_geographic(coords, crs))


def measure_length(geometry, crs=None):
    """Length of a geometry in meters (planar in a metric CRS, geodesic on the WGS84 ellipsoid otherwise)."""
    if has_metric_scale(crs):
        return float(geometry.length)
    return float(GEOD.geometry_length(_geographic_geometry(geometry, crs)))


def measure_area(geometry, crs=None):
    """Area of a geometry in square meters (planar in a metric CRS, geodesic on the WGS84 ellipsoid otherwise)."""
    if has_metric_scale(crs):
        return float(geometry.area)
    area, _ = GEOD.geometry_area_perimeter(_geographic_geometry(geometry, crs))
    return abs(float(area))


def metric_crs(objects):
    """Pick the CRS in which meters can be measured directly for a feature table.

    Tables already in a regional metric CRS keep it. Geographic tables, Web Mercator and other world or non-metric
    projections are mapped to the UTM zone of their features. Tables without a CRS are treated as planar meters.
    """
    if objects.crs is None:
        log.debug("No CRS set, treating coordinates as planar meters")
        return None

    if has_metric_scale(objects.crs):
        return objects.crs

    utm = objects.estimate_utm_crs()
    log.debug("Projecting features from %s to %s for metric operations", objects.crs.name, utm.name)
    return utm


def to_metric(objects):
    """Return ``objects`` projected to the CRS picked by metric_crs."""
    target = metric_crs(objects)
    if target is None or target == objects.crs:
        return objects
    return objects.to_crs(target)


def from_metric(objects, crs):
    """Project a feature table produced by to_metric back to ``crs``."""
    if crs is None or objects.crs is None or objects.crs == crs:
        return objects
    return objects.to_crs(crs)


def distinct_points(geometries):
    """Collect the distinct vertices of a sequence of geometries.

    Returns:
    --------
    points : numpy.ndarray, shape (n, 2)
        Unique vertices in first-seen order
    """
    geometries = [geom for geom in geometries if geom is not None and not geom.is_empty]
    if not geometries:
        return np.empty((0, 2))

    coords = shapely.get_coordinates(geometries)
    _, first_seen = np.unique(coords, axis=0, return_index=True)
    return coords[np.sort(first_seen)]


def same_dimension_parts(geometry, dimension):
    """Keep the parts of ``geometry`` whose topological dimension is ``dimension``.

    Intersections and differences may return lower-dimensional slivers (a shared edge, a touching corner) alongside
    the area of interest. Those are dropped. Returns None when nothing of the requested dimension is left.
    """
    if geometry is None or geometry.is_empty:
        return None

    # twice, so collections holding multi-part geometries are flattened too
    parts = shapely.get_parts(shapely.get_parts(geometry))
    kept = [part for part in parts if shapely.get_dimensions(part) == dimension and not part.is_empty]
    if dimension == 2:
        kept = [part for part in kept if part.area > 0]
    elif dimension == 1:
        kept = [part for part in kept if part.length > 0]

    if not kept:
        return None
    if len(kept) == 1:
        return kept[0]
    if dimension == 2:
        return shapely.union_all(kept)
    if dimension == 1:
        return shapely.multilinestrings(kept)
    return shapely.multipoints(kept)
