# -*- coding: utf-8 -*-
"""Helpers , Aren't they useful ?"""

import json
import os

from shapely.geometry import Point, box

from ..core.geometry import DEFAULT_PLANAR_CRS
from ..core.layer import ID_COLUMN, Layer, build_objects


def create_sample_grid(rows=5, cols=5, spacing=1000.0, origin=(0.0, 0.0), crs=DEFAULT_PLANAR_CRS, name="sample_grid"):
    """Create a regular grid of point features for testing.

    Parameters:
    -----------
    rows, cols : int
        Grid dimensions
    spacing : float
        Distance between neighboring points, in CRS units
    origin : tuple of float
        Lower-left point of the grid
    crs : str
        Coordinate reference system
    name : str
        Layer name

    Returns:
    --------
    layer : Layer
        Point layer with ``row`` and ``col`` properties; feature ids are ``"p{row}_{col}"``
    """
    x0, y0 = origin
    features = [
        {ID_COLUMN: f"p{r}_{c}", "row": r, "col": c, "geometry": Point(x0 + c * spacing, y0 + r * spacing)}
        for r in range(rows)
        for c in range(cols)
    ]

    layer = Layer(name=name, type="vector")
    layer.crs = crs
    layer.objects = build_objects(features, crs=crs, columns=["row", "col"])
    return layer


def create_sample_parcels(size=100.0, count=3, origin=(0.0, 0.0), crs=DEFAULT_PLANAR_CRS, name="sample_parcels"):
    """Create a row of adjacent square parcels with a ``value`` property (10, 20, 30, ...).

    Feature ids are ``"parcel_0"``, ``"parcel_1"`` and so on, from west to east.
    """
    x0, y0 = origin
    features = [
        {
            ID_COLUMN: f"parcel_{i}",
            "value": 10 * (i + 1),
            "geometry": box(x0 + i * size, y0, x0 + (i + 1) * size, y0 + size),
        }
        for i in range(count)
    ]

    layer = Layer(name=name, type="vector")
    layer.crs = crs
    layer.objects = build_objects(features, crs=crs, columns=["value"])
    return layer


def calculate_statistics_summary(layer_manager, output_file=None):
    """Calculate summary statistics for all layers in a layer manager.

    Parameters:
    -----------
    layer_manager : LayerManager
        Layer manager containing layers
    output_file : str, optional
        Path to save the summary to (as JSON)

    Returns:
    --------
    summary : dict
        Dictionary with summary statistics
    """
    summary = {}

    for layer_name in layer_manager.get_layer_names():
        layer = layer_manager.get_layer(layer_name)

        layer_summary = {
            "type": layer.type,
            "created_at": str(layer.created_at),
            "parent": layer.parent.name if layer.parent else None,
            "operation": layer.metadata.get("operation"),
        }

        if layer.objects is not None:
            layer_summary["feature_count"] = len(layer.objects)
            layer_summary["geometry_types"] = sorted(layer.objects.geometry.geom_type.dropna().unique().tolist())
            layer_summary["bounds"] = [float(v) for v in layer.objects.total_bounds] if len(layer.objects) else None

        if layer.attached_functions:
            layer_summary["functions"] = list(layer.attached_functions.keys())

        summary[layer_name] = layer_summary

    if output_file:
        directory = os.path.dirname(output_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(output_file, "w") as f:
            json.dump(summary, f, indent=2)

    return summary
