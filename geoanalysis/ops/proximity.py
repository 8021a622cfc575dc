# -*- coding: utf-8 -*-
"""Implements distance-based operations: buffers and cross-sections.

Distances are given in meters, kilometers or miles and are measured on the ground. Features whose CRS does not measure
ground meters (geographic frames, Web Mercator) are projected to their local UTM zone for the computation and projected
back afterwards, so results are always returned in the input layer's CRS.
"""

import logging
import math

import geopandas as gpd
from shapely.geometry import LineString

from ..core.errors import EmptyResultError, InvalidInputError
from ..core.geometry import UNIT_FACTORS, from_metric, to_meters, to_metric
from ..core.layer import ID_COLUMN, Layer, build_objects, new_feature_id, require_objects, split_selection

log = logging.getLogger(__name__)

CROSS_SECTION_UNITS = ("meters", "kilometers")


def buffer(source_layer, distance, units="meters", selection=None, resolution=16, layer_manager=None, layer_name=None):
    """Compute the area within a given distance of each feature.

    Parameters:
    -----------
    source_layer : Layer
        Layer with the features to buffer
    distance : float
        Buffer radius, must be positive
    units : str
        Units of ``distance``: "meters", "kilometers" or "miles"
    selection : iterable of str, optional
        Ids of the features to buffer. If empty or None, every feature is buffered.
    resolution : int
        Number of segments used to approximate a quarter circle
    layer_manager : LayerManager, optional
        Layer manager to add the result layer to
    layer_name : str, optional
        Name for the result layer

    Returns:
    --------
    result_layer : Layer
        Layer with one polygon per buffered feature. Buffers carry no properties.
    """
    meters = to_meters(distance, units)
    if meters <= 0:
        raise InvalidInputError(f"Buffer distance must be positive, got {distance}")

    objects = require_objects(source_layer)
    selected, _ = split_selection(objects, selection)
    selected = selected[~(selected.geometry.isna() | selected.geometry.is_empty)]
    if selected.empty:
        raise InvalidInputError(f"Layer '{source_layer.name}' has no features to buffer")

    buffered = to_metric(selected).geometry.buffer(meters, resolution=resolution)
    buffered = from_metric(buffered, objects.crs)

    rows = [{ID_COLUMN: new_feature_id(), "geometry": geom} for geom in buffered if geom is not None and not geom.is_empty]

    if not layer_name:
        layer_name = f"{source_layer.name}_buffer_{distance}{units}"

    result_layer = Layer(name=layer_name, parent=source_layer, type="proximity")
    result_layer.crs = source_layer.crs
    result_layer.objects = build_objects(rows, crs=objects.crs, columns=[])
    result_layer.metadata = {
        "operation": "buffer",
        "distance": distance,
        "units": units,
        "distance_m": meters,
        "features": len(rows),
    }

    if layer_manager:
        layer_manager.add_layer(result_layer)

    return result_layer


def _transects(line, step, span):
    """Yield (offset, transect) pairs along a line in metric coordinates.

    Stations sit at every whole multiple of ``step`` from the start, so the last station is the endpoint only when the
    line length is an exact multiple of ``step``. A line shorter than ``step`` has no stations.
    """
    total = line.length
    count = int(math.floor(total / step * (1 + 1e-9)))
    if count < 1:
        return

    eps = min(1.0, step / 100.0)
    half = span / 2.0

    for i in range(count + 1):
        offset = min(i * step, total)
        before = line.interpolate(max(offset - eps, 0.0))
        after = line.interpolate(min(offset + eps, total))

        dx = after.x - before.x
        dy = after.y - before.y
        norm = math.hypot(dx, dy)
        if norm == 0:
            log.debug("No tangent at offset %.3f, station skipped", offset)
            continue

        # tangent rotated by +90 degrees, transects run from the right of the line to its left
        nx, ny = -dy / norm, dx / norm
        center = line.interpolate(offset)
        yield offset, LineString(
            [
                (center.x - nx * half, center.y - ny * half),
                (center.x + nx * half, center.y + ny * half),
            ]
        )


def cross_sections(lines_layer, distance, length, units="meters", layer_manager=None, layer_name=None):
    """Generate perpendicular transects at fixed intervals along lines.

    Parameters:
    -----------
    lines_layer : Layer
        Layer with LineString features. Other geometry types are ignored.
    distance : float
        Interval between stations, measured along the line from its start
    length : float
        Total length of every transect, centered on its station
    units : str
        Units of ``distance`` and ``length``: "meters" or "kilometers"
    layer_manager : LayerManager, optional
        Layer manager to add the result layer to
    layer_name : str, optional
        Name for the result layer

    Returns:
    --------
    result_layer : Layer
        Layer of LineString transects ordered by source line then station, with properties ``source_id``,
        ``station`` (0-based index) and ``distance`` (offset of the station, in ``units``)
    """
    step = to_meters(distance, units, allowed=CROSS_SECTION_UNITS)
    span = to_meters(length, units, allowed=CROSS_SECTION_UNITS)
    if step <= 0 or span <= 0:
        raise InvalidInputError("Cross-section distance and length must be positive")

    objects = require_objects(lines_layer)
    lines = objects[(objects.geometry.geom_type == "LineString") & ~objects.geometry.is_empty]
    if lines.empty:
        raise InvalidInputError(f"Layer '{lines_layer.name}' has no line features")
    if len(lines) < len(objects):
        log.warning("Cross-sections ignore %d non-line features", len(objects) - len(lines))

    metric = to_metric(lines)
    factor = UNIT_FACTORS[units]

    rows = []
    for source_id, line in zip(lines[ID_COLUMN], metric.geometry, strict=True):
        stations = list(_transects(line, step, span))
        if not stations:
            log.warning("Line %s is shorter than one interval (%.2f m < %.2f m)", source_id, line.length, step)

        for station, (offset, transect) in enumerate(stations):
            rows.append(
                {
                    ID_COLUMN: new_feature_id(),
                    "source_id": source_id,
                    "station": station,
                    "distance": offset / factor,
                    "geometry": transect,
                }
            )

    if not rows:
        raise EmptyResultError(f"No cross-section stations fit on the lines of '{lines_layer.name}' at {distance} {units}")

    transects = from_metric(gpd.GeoSeries([row["geometry"] for row in rows], crs=metric.crs), objects.crs)
    for row, geometry in zip(rows, transects, strict=True):
        row["geometry"] = geometry

    if not layer_name:
        layer_name = f"{lines_layer.name}_cross_sections"

    result_layer = Layer(name=layer_name, parent=lines_layer, type="proximity")
    result_layer.crs = lines_layer.crs
    result_layer.objects = build_objects(rows, crs=objects.crs, columns=["source_id", "station", "distance"])
    result_layer.metadata = {
        "operation": "cross_sections",
        "distance": distance,
        "length": length,
        "units": units,
        "transects": len(rows),
    }

    if layer_manager:
        layer_manager.add_layer(result_layer)

    return result_layer
