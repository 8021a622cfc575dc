# -*- coding: utf-8 -*-
"""Shared fixtures for the geoanalysis test suite."""

import pytest
from shapely.geometry import box

from geoanalysis import Layer, create_sample_parcels
from geoanalysis.core.layer import build_objects

# UTM zone 31N: planar coordinates are ground meters, so geometry sizes can be checked exactly
PLANAR_CRS = "EPSG:32631"


@pytest.fixture
def make_layer():
    """Factory building a layer from (id, geometry, properties) tuples."""

    def _make_layer(features, name="layer", crs=PLANAR_CRS):
        rows = [{"id": feature_id, **properties, "geometry": geometry} for feature_id, geometry, properties in features]
        layer = Layer(name=name, type="vector")
        layer.crs = crs
        layer.objects = build_objects(rows, crs=crs)
        return layer

    return _make_layer


@pytest.fixture
def parcels():
    """Three adjacent 100 x 100 squares from x=0 to x=300, values 10, 20 and 30."""
    return create_sample_parcels(size=100.0, count=3, crs=PLANAR_CRS)


@pytest.fixture
def mask(make_layer):
    """A polygon covering the lower half of the parcels between x=50 and x=250."""
    return make_layer([("m1", box(50, -50, 250, 50), {"zone": "A"})], name="mask")
