# -*- coding: utf-8 -*-
"""Implements overlay operations that combine the features of two or more layers.

Clip keeps the part of each input feature that lies inside a mask, erase keeps the part outside of it, union stacks
several layers into one with a common attribute schema and dissolve merges polygons by removing their shared
boundaries.
Clip and erase work feature by feature: a feature whose geometry cannot be overlaid (a self-intersecting ring, for
instance) is logged and skipped, and the counts end up in the result layer metadata so callers can report how many
features made it through.
"""

import logging

import pandas as pd
import shapely
from shapely.errors import GEOSException
from shapely.ops import unary_union

from ..core.errors import InvalidInputError
from ..core.geometry import require_number, same_dimension_parts
from ..core.layer import ID_COLUMN, Layer, build_objects, new_feature_id, property_columns, require_objects, split_selection

log = logging.getLogger(__name__)

POLYGON_TYPES = ("Polygon", "MultiPolygon")


def _mask_region(mask_layer, crs):
    """Unify the polygons of a mask layer into one region expressed in ``crs``."""
    mask = require_objects(mask_layer)
    if crs is not None and mask.crs is not None and mask.crs != crs:
        mask = mask.to_crs(crs)

    polygons = [geom for geom in mask.geometry if geom is not None and not geom.is_empty and geom.geom_type in POLYGON_TYPES]
    if not polygons:
        raise InvalidInputError(f"Mask layer '{mask_layer.name}' has no polygon features")

    return unary_union(polygons)


def _overlay_feature(geometry, region, how):
    """Intersect with or subtract ``region`` from one geometry, keeping only parts of the input's dimension."""
    if how == "intersection":
        result = geometry.intersection(region)
    else:
        result = geometry.difference(region)

    return same_dimension_parts(result, shapely.get_dimensions(geometry))


def _run_overlay(source_layer, region, how, selection=None):
    objects = require_objects(source_layer)
    columns = property_columns(objects)
    selected, _ = split_selection(objects, selection)
    selected_ids = set(selected[ID_COLUMN])

    rows = []
    counts = {"total": len(selected), "processed": 0, "skipped": 0, "dropped": 0}

    for _, feature in objects.iterrows():
        geometry = feature.geometry

        if feature[ID_COLUMN] not in selected_ids:
            result = geometry
        elif geometry is None or geometry.is_empty:
            counts["processed"] += 1
            counts["dropped"] += 1
            continue
        else:
            try:
                result = _overlay_feature(geometry, region, how)
            except (GEOSException, ValueError) as e:
                log.warning("Skipping feature %s during %s: %s", feature[ID_COLUMN], how, e)
                counts["skipped"] += 1
                continue

            counts["processed"] += 1
            if result is None:
                counts["dropped"] += 1
                continue

        row = {col: feature[col] for col in columns}
        row[ID_COLUMN] = new_feature_id()
        row["geometry"] = result
        rows.append(row)

    return build_objects(rows, crs=objects.crs, columns=columns), counts


def clip(source_layer, mask_layer, layer_manager=None, layer_name=None):
    """Clip the features of a layer to the area covered by a polygon mask layer.

    Parameters:
    -----------
    source_layer : Layer
        Layer with the features to clip
    mask_layer : Layer
        Layer whose polygons, unified, define the area to keep
    layer_manager : LayerManager, optional
        Layer manager to add the result layer to
    layer_name : str, optional
        Name for the result layer

    Returns:
    --------
    result_layer : Layer
        Layer with the clipped features. Properties are copied from the input features, mask properties are
        discarded. Features with an empty or degenerate intersection are dropped.
    """
    if not layer_name:
        layer_name = f"{source_layer.name}_clipped"

    region = _mask_region(mask_layer, require_objects(source_layer).crs)
    objects, counts = _run_overlay(source_layer, region, "intersection")

    result_layer = Layer(name=layer_name, parent=source_layer, type="overlay")
    result_layer.crs = source_layer.crs
    result_layer.objects = objects
    result_layer.metadata = {"operation": "clip", "mask_layer": mask_layer.name, **counts}

    log.info("Clip processed %d of %d features (%d skipped)", counts["processed"], counts["total"], counts["skipped"])

    if layer_manager:
        layer_manager.add_layer(result_layer)

    return result_layer


def erase(source_layer, mask_layer, selection=None, layer_manager=None, layer_name=None):
    """Remove the area covered by a polygon mask layer from the features of a layer.

    Parameters:
    -----------
    source_layer : Layer
        Layer with the features to erase from
    mask_layer : Layer
        Layer whose polygons, unified, define the area to remove
    selection : iterable of str, optional
        Ids of the features to process. If empty or None, every feature is processed. Unselected features are copied
        to the result unchanged.
    layer_manager : LayerManager, optional
        Layer manager to add the result layer to
    layer_name : str, optional
        Name for the result layer

    Returns:
    --------
    result_layer : Layer
        Layer with the remaining features; features erased completely are dropped
    """
    if not layer_name:
        layer_name = f"{source_layer.name}_erased"

    region = _mask_region(mask_layer, require_objects(source_layer).crs)
    objects, counts = _run_overlay(source_layer, region, "difference", selection=selection)

    result_layer = Layer(name=layer_name, parent=source_layer, type="overlay")
    result_layer.crs = source_layer.crs
    result_layer.objects = objects
    result_layer.metadata = {"operation": "erase", "mask_layer": mask_layer.name, **counts}

    log.info("Erase processed %d of %d features (%d skipped)", counts["processed"], counts["total"], counts["skipped"])

    if layer_manager:
        layer_manager.add_layer(result_layer)

    return result_layer


def union(layers, layer_manager=None, layer_name=None):
    """Concatenate the features of several layers under one attribute schema.

    Every property key found on any input feature becomes a column of the result; features lacking a key get an
    explicit None. Geometries are not merged, use dissolve for that.

    Parameters:
    -----------
    layers : list of Layer
        Layers to combine. The result uses the CRS of the first one.
    layer_manager : LayerManager, optional
        Layer manager to add the result layer to
    layer_name : str, optional
        Name for the result layer

    Returns:
    --------
    result_layer : Layer
        Layer with every input feature under a fresh id
    """
    layers = list(layers or [])
    if not layers:
        raise InvalidInputError("Union needs at least one layer")

    tables = [require_objects(layer) for layer in layers]
    crs = tables[0].crs

    columns = []
    for objects in tables:
        for col in property_columns(objects):
            if col not in columns:
                columns.append(col)

    rows = []
    for objects in tables:
        if crs is not None and objects.crs is not None and objects.crs != crs:
            objects = objects.to_crs(crs)

        for _, feature in objects.iterrows():
            row = {col: feature[col] if col in objects.columns else None for col in columns}
            row[ID_COLUMN] = new_feature_id()
            row["geometry"] = feature.geometry
            rows.append(row)

    objects = build_objects(rows, crs=crs, columns=columns)
    # keep the original values and explicit nulls rather than pandas' NaN-filled numeric columns
    for col in columns:
        objects[col] = pd.Series([row[col] for row in rows], index=objects.index, dtype=object)

    if not layer_name:
        layer_name = "_".join(layer.name for layer in layers) + "_union"

    result_layer = Layer(name=layer_name, parent=layers[0], type="overlay")
    result_layer.crs = layers[0].crs
    result_layer.objects = objects
    result_layer.metadata = {
        "operation": "union",
        "source_layers": [layer.name for layer in layers],
        "fields": columns,
    }

    if layer_manager:
        layer_manager.add_layer(result_layer)

    return result_layer


def dissolve(source_layer, field=None, layer_manager=None, layer_name=None):
    """Merge the polygons of a layer, removing the boundaries they share.

    Parameters:
    -----------
    source_layer : Layer
        Layer with the polygons to dissolve. Non-polygon features are ignored.
    field : str, optional
        Dissolve separately for every distinct value of this property. The value is kept on the result features;
        every other property is dropped.
    layer_manager : LayerManager, optional
        Layer manager to add the result layer to
    layer_name : str, optional
        Name for the result layer

    Returns:
    --------
    result_layer : Layer
        Layer with one feature per disjoint polygon of the merged geometry
    """
    objects = require_objects(source_layer)

    if field is not None and field not in objects.columns:
        raise InvalidInputError(f"Field '{field}' not found in layer objects")

    polygons = objects[objects.geometry.geom_type.isin(POLYGON_TYPES)]
    if polygons.empty:
        raise InvalidInputError(f"Layer '{source_layer.name}' has no polygon features to dissolve")

    ignored = len(objects) - len(polygons)
    if ignored:
        log.warning("Dissolve ignores %d non-polygon features", ignored)

    if field is None:
        groups = [(None, polygons)]
    else:
        groups = polygons.groupby(field, sort=False, dropna=False)

    rows = []
    for value, group in groups:
        geometries = [geom if geom.is_valid else shapely.make_valid(geom) for geom in group.geometry]
        merged = same_dimension_parts(unary_union(geometries), 2)
        if merged is None:
            continue

        for part in shapely.get_parts(merged):
            row = {ID_COLUMN: new_feature_id(), "geometry": part}
            if field is not None:
                row[field] = value
            rows.append(row)

    if not layer_name:
        layer_name = f"{source_layer.name}_dissolved"

    result_layer = Layer(name=layer_name, parent=source_layer, type="overlay")
    result_layer.crs = source_layer.crs
    result_layer.objects = build_objects(rows, crs=objects.crs, columns=[field] if field is not None else [])
    result_layer.metadata = {
        "operation": "dissolve",
        "field": field,
        "input_features": len(polygons),
        "output_features": len(rows),
    }

    if layer_manager:
        layer_manager.add_layer(result_layer)

    return result_layer


def clip_by_extent(source_layer, bounds, layer_manager=None, layer_name=None):
    """Clip the features of a layer to a rectangular extent.

    Parameters:
    -----------
    source_layer : Layer
        Layer with the features to clip
    bounds : tuple of float
        Extent as (minx, miny, maxx, maxy) in the layer's CRS
    layer_manager : LayerManager, optional
        Layer manager to add the result layer to
    layer_name : str, optional
        Name for the result layer

    Returns:
    --------
    result_layer : Layer
        Layer with the clipped features and their original properties
    """
    try:
        minx, miny, maxx, maxy = (require_number(value, "bounds") for value in bounds)
    except (TypeError, ValueError) as e:
        raise InvalidInputError("Bounds must be four numbers (minx, miny, maxx, maxy)") from e

    if minx >= maxx or miny >= maxy:
        raise InvalidInputError(f"Empty extent {tuple(bounds)}")

    objects = require_objects(source_layer)
    columns = property_columns(objects)

    rows = []
    skipped = 0
    for _, feature in objects.iterrows():
        geometry = feature.geometry
        if geometry is None or geometry.is_empty:
            continue

        try:
            clipped = same_dimension_parts(shapely.clip_by_rect(geometry, minx, miny, maxx, maxy), shapely.get_dimensions(geometry))
        except (GEOSException, ValueError) as e:
            log.warning("Skipping feature %s during extent clip: %s", feature[ID_COLUMN], e)
            skipped += 1
            continue

        if clipped is None:
            continue

        row = {col: feature[col] for col in columns}
        row[ID_COLUMN] = new_feature_id()
        row["geometry"] = clipped
        rows.append(row)

    if not layer_name:
        layer_name = f"{source_layer.name}_extent"

    result_layer = Layer(name=layer_name, parent=source_layer, type="overlay")
    result_layer.crs = source_layer.crs
    result_layer.objects = build_objects(rows, crs=objects.crs, columns=columns)
    result_layer.metadata = {
        "operation": "clip_by_extent",
        "bounds": (minx, miny, maxx, maxy),
        "total": len(objects),
        "skipped": skipped,
    }

    if layer_manager:
        layer_manager.add_layer(result_layer)

    return result_layer
