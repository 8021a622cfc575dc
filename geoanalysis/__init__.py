# -*- coding: utf-8 -*-
# geoanalysis/__init__.py

"""
GeoAnalysis: a vector spatial-analysis engine for map layers
============================================================

GeoAnalysis runs deterministic geometric and statistical algorithms over in-memory collections
of 2D vector features and over values sampled along a path.

Key features:
- Natural breaks and quantile classification
- Overlay operations (clip, erase, union, dissolve)
- Proximity operations (buffer, cross-sections)
- Convex and concave hulls with concavity suggestion
- Elevation profiles, correlation and trendlines
- Population growth projection
"""

__version__ = "0.1.0"

from .core.classification import class_breaks, jenks_breaks, quantile_breaks
from .core.errors import (
    EmptyResultError,
    ExternalSamplingError,
    GeoAnalysisError,
    InsufficientDataError,
    InsufficientPointsError,
    InvalidInputError,
)
from .core.layer import Layer, LayerManager

from .io.vector import layer_to_geojson, layer_to_vector, read_geojson, read_vector, write_vector

from .ops.hull import concave_hull, convex_hull, suggest_concavity
from .ops.overlay import clip, clip_by_extent, dissolve, erase, union
from .ops.proximity import buffer, cross_sections

from .stats.basic import attach_class_breaks, attach_field_stats, attach_weighted_average
from .stats.correlation import correlate
from .stats.demographic import project_population
from .stats.profile import DatasetRef, ElevationSource, ProfileSeries, build_profile, series_statistics

from .utils.helpers import calculate_statistics_summary, create_sample_grid, create_sample_parcels
