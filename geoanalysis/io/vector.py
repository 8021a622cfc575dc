# -*- coding: utf-8 -*-
"""Manages vector data I/O: GeoJSON dictionaries for interoperability with feature sources, and files.

GeoJSON features keep their ``id`` (a fresh one is assigned when missing) and their properties become columns of the
layer's GeoDataFrame.
"""

import math
import os

import geopandas as gpd
from shapely.errors import ShapelyError
from shapely.geometry import mapping, shape

from ..core.errors import InvalidInputError
from ..core.geometry import GEOGRAPHIC_CRS
from ..core.layer import ID_COLUMN, Layer, build_objects, new_feature_id, property_columns, require_objects


def _json_value(value):
    """Convert pandas/numpy scalars to plain JSON values, missing values to None."""
    if value is None:
        return None
    if hasattr(value, "item"):
        value = value.item()
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def read_geojson(data, name=None, crs=GEOGRAPHIC_CRS):
    """Build a layer from a GeoJSON FeatureCollection, Feature or list of features.

    Parameters:
    -----------
    data : dict or list
        GeoJSON object
    name : str, optional
        Name of the layer
    crs : str or pyproj.CRS
        Reference system of the coordinates. GeoJSON is lon/lat by definition, but features already projected to a
        planar frame can be read by passing that frame here.

    Returns:
    --------
    layer : Layer
        Layer holding the features
    """
    if isinstance(data, dict) and data.get("type") == "FeatureCollection":
        features = data.get("features") or []
    elif isinstance(data, dict) and data.get("type") == "Feature":
        features = [data]
    elif isinstance(data, (list, tuple)):
        features = data
    else:
        raise InvalidInputError("Expected a GeoJSON FeatureCollection, Feature or list of features")

    rows = []
    seen = set()
    for feature in features:
        if not isinstance(feature, dict):
            raise InvalidInputError(f"Expected a GeoJSON Feature, got {type(feature).__name__}")

        try:
            geometry = shape(feature["geometry"]) if feature.get("geometry") else None
        except (AttributeError, KeyError, TypeError, ValueError, ShapelyError) as e:
            raise InvalidInputError(f"Invalid geometry in feature {feature.get('id')!r}") from e

        feature_id = feature.get("id")
        feature_id = str(feature_id) if feature_id is not None else new_feature_id()
        if feature_id in seen:
            raise InvalidInputError(f"Duplicate feature id '{feature_id}'")
        seen.add(feature_id)

        row = dict(feature.get("properties") or {})
        row.pop(ID_COLUMN, None)
        row[ID_COLUMN] = feature_id
        row["geometry"] = geometry
        rows.append(row)

    layer = Layer(name=name, type="vector")
    layer.crs = crs
    layer.objects = build_objects(rows, crs=crs)
    return layer


def layer_to_geojson(layer):
    """Export a layer as a GeoJSON FeatureCollection dictionary.

    Parameters:
    -----------
    layer : Layer
        Layer to export

    Returns:
    --------
    collection : dict
        FeatureCollection with one Feature per row, missing values written as null
    """
    objects = require_objects(layer)
    columns = property_columns(objects)

    features = []
    for _, row in objects.iterrows():
        features.append(
            {
                "type": "Feature",
                "id": row[ID_COLUMN],
                "geometry": mapping(row.geometry) if row.geometry is not None else None,
                "properties": {col: _json_value(row[col]) for col in columns},
            }
        )

    return {"type": "FeatureCollection", "features": features}


def read_vector(vector_path, name=None):
    """Read a vector file into a layer.

    Parameters:
    -----------
    vector_path : str
        Path to the vector file
    name : str, optional
        Name of the layer. If None, the file name is used.

    Returns:
    --------
    layer : Layer
        Layer with the file's features; an ``id`` column is added when the file has none
    """
    gdf = gpd.read_file(vector_path)

    if ID_COLUMN not in gdf.columns:
        gdf.insert(0, ID_COLUMN, [new_feature_id() for _ in range(len(gdf))])
    gdf[ID_COLUMN] = gdf[ID_COLUMN].astype(str)

    layer = Layer(name=name if name else os.path.splitext(os.path.basename(vector_path))[0], type="vector")
    layer.crs = gdf.crs
    layer.objects = gdf
    return layer


def write_vector(gdf, output_path):
    """Write a GeoDataFrame to a vector file.

    Parameters:
    -----------
    gdf : geopandas.GeoDataFrame
        GeoDataFrame to write
    output_path : str
        Path to the output vector file
    """
    directory = os.path.dirname(output_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    file_extension = os.path.splitext(output_path)[1].lower()

    if file_extension == ".shp":
        gdf.to_file(output_path)
    elif file_extension == ".geojson":
        gdf.to_file(output_path, driver="GeoJSON")
    else:
        raise ValueError(f"Unsupported vector format: {file_extension}")


def layer_to_vector(layer, output_path):
    """Save a layer's objects to a vector file.

    Parameters:
    -----------
    layer : Layer
        Layer to save
    output_path : str
        Path to the output vector file
    """
    if layer.objects is None:
        raise ValueError("Layer has no vector objects")

    write_vector(layer.objects, output_path)
