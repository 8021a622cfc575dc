# -*- coding: utf-8 -*-
"""Tests for layers, GeoJSON and file I/O, and attribute statistics."""

import json
import os

import pytest
from shapely.geometry import Point, box, mapping

from geoanalysis import (
    InvalidInputError,
    Layer,
    LayerManager,
    attach_class_breaks,
    attach_field_stats,
    attach_weighted_average,
    calculate_statistics_summary,
    clip,
    layer_to_geojson,
    layer_to_vector,
    read_geojson,
    read_vector,
)
from geoanalysis.core.geometry import to_planar
from geoanalysis.core.layer import split_selection

COLLECTION = {
    "type": "FeatureCollection",
    "features": [
        {"type": "Feature", "id": "a", "geometry": mapping(Point(-58.38, -34.60)), "properties": {"name": "Centro", "pop": 1200}},
        {"type": "Feature", "id": 7, "geometry": mapping(Point(-58.40, -34.62)), "properties": {"name": "Sur"}},
        {"type": "Feature", "geometry": mapping(Point(-58.36, -34.58)), "properties": {"pop": 800}},
    ],
}


def test_read_geojson():
    layer = read_geojson(COLLECTION, name="barrios")

    assert layer.name == "barrios"
    assert layer.type == "vector"
    assert layer.crs == "EPSG:4326"
    assert len(layer) == 3
    assert list(layer.objects["id"][:2]) == ["a", "7"]
    assert layer.objects["id"].iloc[2]
    assert set(layer.objects.columns) == {"id", "name", "pop", "geometry"}


def test_read_single_feature():
    layer = read_geojson(COLLECTION["features"][0])

    assert len(layer) == 1
    assert layer.get_feature("a")["name"] == "Centro"


def test_duplicate_ids_are_rejected():
    features = [COLLECTION["features"][0], COLLECTION["features"][0]]

    with pytest.raises(InvalidInputError):
        read_geojson(features)


@pytest.mark.parametrize(
    "data",
    [
        {"type": "Point", "coordinates": [0, 0]},
        "features",
        [{"type": "Feature", "geometry": {"type": "Blob", "coordinates": []}, "properties": {}}],
        [42],
        {"type": "FeatureCollection", "features": [None]},
    ],
)
def test_invalid_geojson(data):
    with pytest.raises(InvalidInputError):
        read_geojson(data)


def test_geojson_export_writes_nulls():
    layer = read_geojson(COLLECTION)

    collection = layer_to_geojson(layer)

    assert collection["type"] == "FeatureCollection"
    first, second, third = collection["features"]
    assert first["id"] == "a"
    assert first["properties"] == {"name": "Centro", "pop": 1200}
    assert second["properties"]["pop"] is None
    assert third["properties"]["name"] is None
    assert first["geometry"]["type"] == "Point"
    json.dumps(collection)


def test_vector_file_round_trip(parcels, tmp_path):
    path = os.path.join(tmp_path, "nested", "parcels.geojson")

    layer_to_vector(parcels, path)
    layer = read_vector(path)

    assert os.path.exists(path)
    assert layer.name == "parcels"
    assert len(layer) == 3
    assert sorted(layer.objects["value"]) == [10, 20, 30]
    assert "id" in layer.objects.columns


def test_unsupported_vector_format(parcels, tmp_path):
    with pytest.raises(ValueError):
        layer_to_vector(parcels, os.path.join(tmp_path, "parcels.csv"))


def test_layer_copy_and_lookup(parcels):
    duplicate = parcels.copy()

    assert duplicate.name == "sample_parcels_copy"
    assert len(duplicate) == len(parcels)
    assert duplicate.objects is not parcels.objects
    assert parcels.get_feature("parcel_1")["value"] == 20

    with pytest.raises(ValueError):
        parcels.get_feature("missing")


def test_layer_manager(parcels, mask):
    manager = LayerManager()
    manager.add_layer(parcels)
    clipped = clip(parcels, mask, layer_manager=manager, layer_name="clipped")

    assert manager.get_layer_names() == ["sample_parcels", "clipped"]
    assert manager.active_layer is clipped
    assert manager.get_layer(clipped.id) is clipped

    manager.remove_layer("clipped")
    assert manager.active_layer is parcels

    with pytest.raises(ValueError):
        manager.get_layer("clipped")


def test_empty_layer_is_rejected(mask):
    with pytest.raises(InvalidInputError):
        clip(Layer(name="empty"), mask)


def test_field_stats(parcels):
    parcels.attach_function(attach_field_stats, name="value_stats", field="value")

    stats = parcels.get_function_result("value_stats")
    assert stats == {"sum": 60.0, "mean": 20.0, "median": 20.0, "count": 3, "min": 10.0, "max": 30.0}


def test_field_stats_ignore_non_numeric_values():
    layer = read_geojson(
        [
            {"type": "Feature", "id": "a", "geometry": mapping(Point(0, 0)), "properties": {"v": 1}},
            {"type": "Feature", "id": "b", "geometry": mapping(Point(1, 0)), "properties": {"v": "n/a"}},
            {"type": "Feature", "id": "c", "geometry": mapping(Point(2, 0)), "properties": {"v": 5}},
        ]
    )

    stats = attach_field_stats(layer, "v")

    assert stats["count"] == 2
    assert stats["mean"] == 3.0


def test_field_stats_of_selection(parcels):
    assert attach_field_stats(parcels, "value", selection=["parcel_2"])["sum"] == 30.0


def test_single_id_selection(parcels):
    selected, rest = split_selection(parcels.objects, "parcel_2")

    assert list(selected["id"]) == ["parcel_2"]
    assert len(rest) == 2
    assert attach_field_stats(parcels, "value", selection="parcel_2")["sum"] == 30.0


def test_field_stats_without_numbers(parcels):
    objects = parcels.objects.copy()
    objects["label"] = ["x", "y", "z"]
    parcels.objects = objects

    assert attach_field_stats(parcels, "label") == {}

    with pytest.raises(InvalidInputError):
        attach_field_stats(parcels, "missing")


def test_weighted_average(parcels):
    result = attach_weighted_average(parcels, "value", box(50, 0, 250, 100))

    assert result["intersection_area"] == pytest.approx(20000.0)
    assert result["weighted_sum"] == pytest.approx(400000.0)
    assert result["weighted_average"] == pytest.approx(20.0)


def test_weighted_average_without_overlap(parcels):
    result = attach_weighted_average(parcels, "value", box(1000, 1000, 1100, 1100))

    assert result["weighted_average"] == 0.0
    assert result["intersection_area"] == 0.0


def test_weighted_average_in_geographic_coordinates():
    cell = box(-58.40, -34.62, -58.39, -34.61)
    layer = read_geojson([{"type": "Feature", "id": "c", "geometry": mapping(cell), "properties": {"density": 4.0}}])

    result = attach_weighted_average(layer, "density", cell)

    # a 0.01 degree cell at this latitude is roughly 0.92 km by 1.11 km
    assert result["intersection_area"] == pytest.approx(1.02e6, rel=0.02)
    assert result["weighted_average"] == pytest.approx(4.0)


def test_weighted_average_in_web_mercator(make_layer):
    (minx, miny), (maxx, maxy) = to_planar([(-58.40, -34.62), (-58.39, -34.61)], "EPSG:3857")
    cell = box(minx, miny, maxx, maxy)
    layer = make_layer([("c", cell, {"density": 4.0})], crs="EPSG:3857")

    result = attach_weighted_average(layer, "density", cell)

    # the same ground cell as in lon/lat, not the 1.5e6 square map units it covers
    assert result["intersection_area"] == pytest.approx(1.02e6, rel=0.02)
    assert result["weighted_average"] == pytest.approx(4.0)


def test_class_breaks_attached(parcels):
    parcels.attach_function(attach_class_breaks, name="breaks", field="value", classes=2)

    result = parcels.get_function_result("breaks")
    assert result["method"] == "natural-breaks"
    assert result["breaks"] == [10.0, 30.0]


def test_statistics_summary(parcels, mask, tmp_path):
    manager = LayerManager()
    manager.add_layer(parcels)
    clip(parcels, mask, layer_manager=manager, layer_name="clipped")
    parcels.attach_function(attach_field_stats, name="value_stats", field="value")
    output_file = os.path.join(tmp_path, "summary.json")

    summary = calculate_statistics_summary(manager, output_file=output_file)

    assert summary["clipped"]["operation"] == "clip"
    assert summary["clipped"]["parent"] == "sample_parcels"
    assert summary["clipped"]["feature_count"] == 3
    assert summary["sample_parcels"]["geometry_types"] == ["Polygon"]
    assert summary["sample_parcels"]["functions"] == ["value_stats"]
    with open(output_file) as f:
        assert json.load(f) == summary
