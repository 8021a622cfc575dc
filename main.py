# -*- coding: utf-8 -*-
"""Testing Working Document!

Just a workspace document to test the functionality of the library.
"""

import asyncio
import logging
import os

from shapely.geometry import LineString, box

from geoanalysis import (
    DatasetRef,
    ElevationSource,
    LayerManager,
    attach_class_breaks,
    attach_field_stats,
    attach_weighted_average,
    buffer,
    build_profile,
    calculate_statistics_summary,
    clip,
    concave_hull,
    convex_hull,
    correlate,
    create_sample_grid,
    create_sample_parcels,
    cross_sections,
    dissolve,
    erase,
    layer_to_vector,
    project_population,
    read_geojson,
    read_vector,
    suggest_concavity,
)


class SyntheticSource(ElevationSource):
    """Stands in for an elevation service: a gentle slope with a gap in the middle."""

    async def sample(self, points, dataset_id, band):
        values = [100.0 + 5.0 * i for i in range(len(points))]
        if dataset_id == "dem":
            values[len(values) // 2] = None
            return values
        return [v * 0.1 for v in values]


def run_example(vector_path=None):
    """Run Example."""
    output_dir = "output"
    os.makedirs(output_dir, exist_ok=True)

    manager = LayerManager()

    if vector_path and os.path.exists(vector_path):
        print(f"Reading vector data from {vector_path}...")
        parcels = read_vector(vector_path)
    else:
        print("No vector file given, using sample parcels...")
        parcels = create_sample_parcels(size=100.0, count=5)
    manager.add_layer(parcels)
    print(parcels)

    zone = read_geojson(
        {
            "type": "FeatureCollection",
            "features": [
                {
                    "type": "Feature",
                    "id": "zone",
                    "geometry": box(*parcels.objects.total_bounds).centroid.buffer(120).__geo_interface__,
                    "properties": {"kind": "analysis"},
                }
            ],
        },
        name="Analysis_Zone",
        crs=parcels.crs,
    )
    manager.add_layer(zone)

    print("\nRunning overlays...")

    inside = clip(parcels, zone, layer_manager=manager, layer_name="Inside_Zone")
    outside = erase(parcels, zone, layer_manager=manager, layer_name="Outside_Zone")
    merged = dissolve(parcels, layer_manager=manager, layer_name="Merged_Parcels")
    print(inside)
    print(outside)
    print(merged)

    print("\nCalculating statistics...")

    parcels.attach_function(attach_field_stats, name="value_stats", field="value")
    parcels.attach_function(attach_class_breaks, name="value_breaks", field="value", classes=3)
    parcels.attach_function(
        attach_weighted_average,
        name="zone_average",
        field="value",
        area=zone.objects.geometry.iloc[0],
    )

    stats = parcels.get_function_result("value_stats")
    print(f"  value: mean {stats['mean']:.2f}, min {stats['min']:.2f}, max {stats['max']:.2f}")
    print(f"  natural breaks: {parcels.get_function_result('value_breaks')['breaks']}")
    print(f"  area-weighted average in zone: {parcels.get_function_result('zone_average')['weighted_average']:.2f}")

    print("\nRunning proximity operations...")

    minx, miny, maxx, maxy = parcels.objects.total_bounds
    road = read_geojson(
        [
            {
                "type": "Feature",
                "id": "road",
                "geometry": LineString([(minx, maxy + 50), (maxx, maxy + 50)]).__geo_interface__,
                "properties": {"name": "Ruta"},
            }
        ],
        name="Road",
        crs=parcels.crs,
    )
    buffer(road, 30, layer_manager=manager, layer_name="Road_Buffer")
    sections = cross_sections(road, 100, 80, layer_manager=manager, layer_name="Road_Sections")
    print(sections)

    print("\nBuilding hulls...")

    grid = create_sample_grid(rows=6, cols=6, spacing=400.0)
    convex_hull(grid, layer_manager=manager, layer_name="Grid_Convex_Hull")
    suggestion = suggest_concavity(grid)
    print(f"  suggested concavity: {suggestion['suggested_concavity']:.3f} km")
    concave = concave_hull(grid, suggestion["suggested_concavity"] * 1.5, layer_manager=manager, layer_name="Grid_Concave_Hull")
    if concave is None:
        print("  no concave hull at this concavity, try a larger value")

    print("\nSampling a profile...")

    elevation, slope = asyncio.run(
        build_profile(
            LineString([(minx, miny), (maxx, maxy)]),
            20,
            [DatasetRef("dem", name="Elevation"), DatasetRef("slope", name="Slope")],
            SyntheticSource(),
            crs=parcels.crs,
        )
    )
    print(elevation)
    print(f"  elevation range: {elevation.stats['min']:.1f} - {elevation.stats['max']:.1f}")
    trend = correlate(elevation, slope)
    print(f"  r = {trend['coefficient']:.3f}, y = {trend['slope']:.3f} x + {trend['intercept']:.3f}")

    print("\nProjecting population...")

    projection = project_population(12000, 13500, 15800, 2030)
    print(f"  2030: {projection['projected_population']:.0f} ({projection['average_annual_rate'] * 100:.2f}% per year)")

    print("\nExporting results...")

    layer_to_vector(inside, os.path.join(output_dir, "inside_zone.geojson"))
    layer_to_vector(outside, os.path.join(output_dir, "outside_zone.geojson"))
    layer_to_vector(sections, os.path.join(output_dir, "road_sections.geojson"))
    calculate_statistics_summary(manager, os.path.join(output_dir, "summary.json"))

    print(f"\nResults saved to {output_dir}")
    print("Available layers:")
    for i, layer_name in enumerate(manager.get_layer_names()):
        print(f"  {i + 1}. {layer_name}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    run_example()
