# -*- coding: utf-8 -*-
"""Implements hull generation over the vertices of a set of features.

The convex hull is the smallest convex polygon holding every vertex. The concave hull follows the point cloud more
closely: the vertices are triangulated and every triangle with an edge longer than the concavity (in kilometers) is
discarded before the rest are merged, so a lower concavity gives a tighter, possibly fragmented, outline.
suggest_concavity derives a sensible starting concavity from the spacing of the points themselves.

Lengths are planar when the layer's CRS measures ground meters and geodesic otherwise, so Web Mercator and
geographic layers are measured on the ground.
"""

import logging

import numpy as np
import shapely
from shapely.geometry import MultiPoint, Polygon
from shapely.ops import unary_union
from sklearn.neighbors import BallTree

from ..core.errors import InsufficientDataError, InsufficientPointsError, InvalidInputError
from ..core.geometry import (
    EARTH_RADIUS_KM,
    GEOD,
    distinct_points,
    has_metric_scale,
    require_number,
    same_dimension_parts,
    to_geographic,
)
from ..core.layer import ID_COLUMN, Layer, build_objects, new_feature_id, require_objects, split_selection

log = logging.getLogger(__name__)


def _selected_points(source_layer, selection):
    objects = require_objects(source_layer)
    selected, _ = split_selection(objects, selection)
    return distinct_points(selected.geometry), objects.crs


def _edge_lengths_km(triangles, crs):
    """Edge lengths of each triangle in kilometers, shape (n, 3)."""
    corners = shapely.get_coordinates(shapely.get_exterior_ring(triangles)).reshape(-1, 4, 2)[:, :3]
    following = np.roll(corners, -1, axis=1)

    if has_metric_scale(crs):
        return np.linalg.norm(following - corners, axis=2) / 1000.0

    start = to_geographic(corners.reshape(-1, 2), crs)
    end = to_geographic(following.reshape(-1, 2), crs)
    _, _, meters = GEOD.inv(start[:, 0], start[:, 1], end[:, 0], end[:, 1])
    return np.asarray(meters).reshape(-1, 3) / 1000.0


def convex_hull(source_layer, selection=None, layer_manager=None, layer_name=None):
    """Compute the convex hull of the vertices of a layer.

    Parameters:
    -----------
    source_layer : Layer
        Layer with the features to enclose
    selection : iterable of str, optional
        Ids of the features to use. If empty or None, every feature is used.
    layer_manager : LayerManager, optional
        Layer manager to add the result layer to
    layer_name : str, optional
        Name for the result layer

    Returns:
    --------
    result_layer : Layer
        Layer with a single Polygon feature carrying a ``point_count`` property
    """
    points, crs = _selected_points(source_layer, selection)
    if len(points) < 3:
        raise InsufficientPointsError(f"A convex hull needs at least 3 distinct points, got {len(points)}")

    hull = MultiPoint(points).convex_hull
    if not isinstance(hull, Polygon):
        raise InsufficientPointsError("All points are collinear, no convex hull polygon exists")

    if not layer_name:
        layer_name = f"{source_layer.name}_convex_hull"

    result_layer = Layer(name=layer_name, parent=source_layer, type="hull")
    result_layer.crs = source_layer.crs
    result_layer.objects = build_objects(
        [{ID_COLUMN: new_feature_id(), "point_count": len(points), "geometry": hull}], crs=crs, columns=["point_count"]
    )
    result_layer.metadata = {"operation": "convex_hull", "point_count": len(points)}

    if layer_manager:
        layer_manager.add_layer(result_layer)

    return result_layer


def concave_hull(source_layer, concavity, selection=None, layer_manager=None, layer_name=None):
    """Compute a concave hull whose boundary edges are at most ``concavity`` kilometers long.

    Parameters:
    -----------
    source_layer : Layer
        Layer with the features to enclose
    concavity : float
        Maximum edge length in kilometers. Lower values hug the points more tightly.
    selection : iterable of str, optional
        Ids of the features to use. If empty or None, every feature is used.
    layer_manager : LayerManager, optional
        Layer manager to add the result layer to
    layer_name : str, optional
        Name for the result layer

    Returns:
    --------
    result_layer : Layer or None
        Layer with a single (Multi)Polygon feature, or None when no triangle survives at this concavity. Callers
        should suggest a larger concavity in that case.
    """
    max_edge_km = require_number(concavity, "concavity")
    if max_edge_km <= 0:
        raise InvalidInputError(f"Concavity must be positive, got {concavity}")

    points, crs = _selected_points(source_layer, selection)
    if len(points) < 3:
        raise InsufficientPointsError(f"A concave hull needs at least 3 distinct points, got {len(points)}")

    triangles = shapely.get_parts(shapely.delaunay_triangles(MultiPoint(points)))
    kept = []
    if len(triangles):
        kept = list(triangles[_edge_lengths_km(triangles, crs).max(axis=1) <= max_edge_km])

    hull = same_dimension_parts(unary_union(kept), 2) if kept else None
    if hull is None:
        log.info("No concave hull at concavity %s km (%d triangles, none short enough)", concavity, len(triangles))
        return None

    if not layer_name:
        layer_name = f"{source_layer.name}_concave_hull"

    result_layer = Layer(name=layer_name, parent=source_layer, type="hull")
    result_layer.crs = source_layer.crs
    result_layer.objects = build_objects(
        [{ID_COLUMN: new_feature_id(), "concavity": max_edge_km, "geometry": hull}], crs=crs, columns=["concavity"]
    )
    result_layer.metadata = {
        "operation": "concave_hull",
        "concavity": max_edge_km,
        "point_count": len(points),
        "triangles": len(triangles),
        "triangles_kept": len(kept),
    }

    if layer_manager:
        layer_manager.add_layer(result_layer)

    return result_layer


def suggest_concavity(source_layer, selection=None):
    """Suggest a concavity from the nearest-neighbor spacing of the points.

    Parameters:
    -----------
    source_layer : Layer
        Layer with the features whose vertices are analyzed
    selection : iterable of str, optional
        Ids of the features to use. If empty or None, every feature is used.

    Returns:
    --------
    suggestion : dict
        ``mean_distance`` and ``std_dev`` of the nearest-neighbor distances in kilometers, and
        ``suggested_concavity`` = mean_distance + std_dev
    """
    points, crs = _selected_points(source_layer, selection)
    if len(points) < 2:
        raise InsufficientDataError(f"Nearest-neighbor spacing needs at least 2 distinct points, got {len(points)}")

    if has_metric_scale(crs):
        distances, _ = BallTree(points, metric="euclidean").query(points, k=2)
        nearest = distances[:, 1] / 1000.0
    else:
        latlon = np.radians(to_geographic(points, crs)[:, ::-1])
        distances, _ = BallTree(latlon, metric="haversine").query(latlon, k=2)
        nearest = distances[:, 1] * EARTH_RADIUS_KM

    mean_distance = float(np.mean(nearest))
    std_dev = float(np.std(nearest))

    return {
        "suggested_concavity": mean_distance + std_dev,
        "mean_distance": mean_distance,
        "std_dev": std_dev,
    }
