# -*- coding: utf-8 -*-
"""Basic statistics for layer attributes in geoanalysis.

All functions take the layer as first argument so they can be attached with ``layer.attach_function``.
"""

import logging
import math

import numpy as np
import pandas as pd
from shapely.errors import GEOSException

from ..core.classification import NATURAL_BREAKS, class_breaks
from ..core.errors import InvalidInputError
from ..core.geometry import measure_area
from ..core.layer import ID_COLUMN, require_objects, split_selection

log = logging.getLogger(__name__)


def _numeric_values(objects, field):
    if field not in objects.columns:
        raise InvalidInputError(f"Field '{field}' not found in layer objects")

    values = pd.to_numeric(objects[field], errors="coerce").astype(float)
    return values[np.isfinite(values)]


def _as_float(value):
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def attach_field_stats(layer, field, selection=None):
    """Calculate basic statistics for a numeric field.

    Parameters:
    -----------
    layer : Layer
        Layer to calculate statistics for
    field : str
        Field to calculate statistics for. Non-numeric and non-finite values are ignored.
    selection : iterable of str, optional
        Ids of the features to use. If empty or None, every feature is used.

    Returns:
    --------
    stats : dict
        sum, mean, median, count, min and max, or an empty dict when the field holds no numeric value
    """
    objects = require_objects(layer)
    selected, _ = split_selection(objects, selection)
    values = _numeric_values(selected, field)

    if values.empty:
        return {}

    return {
        "sum": float(values.sum()),
        "mean": float(values.mean()),
        "median": float(values.median()),
        "count": int(values.count()),
        "min": float(values.min()),
        "max": float(values.max()),
    }


def attach_weighted_average(layer, field, area):
    """Calculate the area-weighted sum and average of a field inside an analysis area.

    Each feature contributes its value multiplied by the area of its intersection with ``area``.

    Parameters:
    -----------
    layer : Layer
        Layer with the features to weigh, usually polygons
    field : str
        Numeric field to weigh
    area : shapely.geometry.Polygon or MultiPolygon
        Analysis area, in the layer's CRS

    Returns:
    --------
    result : dict
        ``weighted_sum``, ``weighted_average`` (weighted_sum / intersection_area, 0 when nothing overlaps) and
        ``intersection_area`` in square meters, geodesic unless the layer is in a regional metric CRS
    """
    objects = require_objects(layer)
    if field not in objects.columns:
        raise InvalidInputError(f"Field '{field}' not found in layer objects")
    if area is None or area.is_empty:
        raise InvalidInputError("Analysis area is empty")

    weighted_sum = 0.0
    total_area = 0.0

    for _, feature in objects.iterrows():
        value = _as_float(feature[field])
        if feature.geometry is None or value is None:
            continue

        try:
            intersection_area = measure_area(feature.geometry.intersection(area), objects.crs)
        except (GEOSException, ValueError) as e:
            log.warning("Skipping feature %s in weighted average: %s", feature[ID_COLUMN], e)
            continue

        if intersection_area > 0:
            weighted_sum += float(value) * intersection_area
            total_area += intersection_area

    return {
        "weighted_sum": weighted_sum,
        "weighted_average": weighted_sum / total_area if total_area > 0 else 0.0,
        "intersection_area": total_area,
    }


def attach_class_breaks(layer, field, classes=5, method=NATURAL_BREAKS):
    """Calculate graduated class bounds for a numeric field.

    Parameters:
    -----------
    layer : Layer
        Layer to classify
    field : str
        Numeric field to classify
    classes : int
        Number of classes
    method : str
        "natural-breaks" or "quantiles"

    Returns:
    --------
    result : dict
        ``field``, ``method``, ``classes`` and ``breaks``, the upper bound of each class
    """
    values = _numeric_values(require_objects(layer), field)

    return {
        "field": field,
        "method": method,
        "classes": classes,
        "breaks": class_breaks(values.to_numpy(), classes, method=method),
    }
