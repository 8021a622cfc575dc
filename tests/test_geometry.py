# -*- coding: utf-8 -*-
"""Tests for unit conversion, transforms and ground measures."""

import math

import pytest
from shapely.geometry import LineString, Point, box

from geoanalysis import InvalidInputError
from geoanalysis.core.geometry import (
    geodesic_distance,
    has_metric_scale,
    measure_area,
    measure_length,
    metric_crs,
    to_geographic,
    to_meters,
    to_planar,
)

BUENOS_AIRES = (-58.38, -34.60)
# one degree of latitude at the equator on the WGS84 ellipsoid
DEGREE_OF_LATITUDE = 110574.4


def test_to_meters():
    assert to_meters(2, "kilometers") == 2000.0
    assert to_meters(1, "miles") == pytest.approx(1609.344)

    with pytest.raises(InvalidInputError):
        to_meters(1, "miles", allowed=("meters", "kilometers"))


def test_planar_round_trip():
    lonlat = [BUENOS_AIRES, (-58.36, -34.58)]

    planar = to_planar(lonlat, "EPSG:3857")
    back = to_geographic(planar, "EPSG:3857")

    assert planar[0][0] == pytest.approx(6378137.0 * math.radians(BUENOS_AIRES[0]))
    assert back.tolist() == pytest.approx([list(p) for p in lonlat], abs=1e-9)


def test_geographic_frames_are_left_alone():
    assert to_planar([BUENOS_AIRES], "EPSG:4326").tolist() == [list(BUENOS_AIRES)]


def test_geodesic_distance_of_one_degree_of_latitude():
    assert geodesic_distance((0.0, 0.0), (0.0, 1.0)) == pytest.approx(DEGREE_OF_LATITUDE, rel=1e-5)
    assert geodesic_distance(BUENOS_AIRES, BUENOS_AIRES) == 0.0


def test_measure_length():
    meridian = LineString([(0.0, 0.0), (0.0, 1.0)])

    assert measure_length(meridian, "EPSG:4326") == pytest.approx(DEGREE_OF_LATITUDE, rel=1e-5)
    assert measure_length(LineString([(0, 0), (300, 400)]), "EPSG:32631") == 500.0
    assert measure_length(LineString([(0, 0), (300, 400)])) == 500.0


def test_web_mercator_length_is_measured_on_the_ground():
    line = LineString(to_planar([BUENOS_AIRES, (BUENOS_AIRES[0] + 0.01, BUENOS_AIRES[1])], "EPSG:3857"))

    # 0.01 degrees of longitude cover 1113 map units but only about 917 m at this latitude
    assert line.length == pytest.approx(1113.2, rel=1e-3)
    assert measure_length(line, "EPSG:3857") == pytest.approx(917.3, rel=1e-3)


def test_measure_area():
    assert measure_area(box(0, 0, 100, 50), "EPSG:32631") == 5000.0

    disk = Point(0, 0).buffer(1000, resolution=64)
    assert measure_area(disk, "EPSG:3857") == pytest.approx(math.pi * 1000**2, rel=0.01)


@pytest.mark.parametrize(
    "crs, expected",
    [
        (None, True),
        ("EPSG:32631", True),
        ("EPSG:32721", True),
        ("EPSG:3857", False),
        ("EPSG:4326", False),
        ("EPSG:2263", False),
    ],
)
def test_has_metric_scale(crs, expected):
    assert has_metric_scale(crs) is expected


def test_metric_crs(make_layer):
    (x, y) = to_planar([BUENOS_AIRES], "EPSG:3857")[0]

    assert metric_crs(make_layer([("a", Point(x, y), {})], crs="EPSG:3857").objects).to_epsg() == 32721
    assert metric_crs(make_layer([("a", Point(*BUENOS_AIRES), {})], crs="EPSG:4326").objects).to_epsg() == 32721
    assert metric_crs(make_layer([("a", Point(0, 0), {})]).objects).to_epsg() == 32631
