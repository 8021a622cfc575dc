# -*- coding: utf-8 -*-
"""Defines the Layer class and related functionality for organizing vector features.

A layer is the unit every analysis operation consumes and produces: an ordered collection of features held in a
GeoDataFrame (one ``id`` column, one ``geometry`` column and one column per property), the coordinate reference system
of those features and free-form metadata describing how the layer was derived.
This module provides the Layer and LayerManager classes plus the small helpers shared by the operations: fresh feature
ids and the selection-or-all split.
"""

import uuid

import geopandas as gpd
import pandas as pd

from .errors import InvalidInputError

ID_COLUMN = "id"


def new_feature_id():
    """Return a fresh, unique feature id."""
    return uuid.uuid4().hex


def empty_objects(crs=None, columns=None):
    """Create an empty feature table with the reserved columns.

    Parameters:
    -----------
    crs : str or pyproj.CRS, optional
        Coordinate reference system of the table
    columns : list of str, optional
        Extra property columns

    Returns:
    --------
    objects : geopandas.GeoDataFrame
        Empty GeoDataFrame with ``id``, the extra columns and ``geometry``
    """
    data = {col: pd.Series(dtype=object) for col in [ID_COLUMN] + list(columns or [])}
    return gpd.GeoDataFrame(data, geometry=gpd.GeoSeries([], crs=crs))


def build_objects(rows, crs=None, columns=None):
    """Build a feature table from row dictionaries.

    Parameters:
    -----------
    rows : list of dict
        One dict per feature, holding ``id``, ``geometry`` and the properties
    crs : str or pyproj.CRS, optional
        Coordinate reference system of the geometries
    columns : list of str, optional
        Property columns, in output order. If None, the order in which they appear in ``rows`` is used.

    Returns:
    --------
    objects : geopandas.GeoDataFrame
        Feature table with ``id`` first and ``geometry`` last
    """
    if not rows:
        return empty_objects(crs, columns)

    objects = gpd.GeoDataFrame(rows, geometry="geometry", crs=crs)
    if columns is None:
        columns = [col for col in objects.columns if col not in (ID_COLUMN, "geometry")]
    for col in columns:
        if col not in objects.columns:
            objects[col] = None

    return objects[[ID_COLUMN] + list(columns) + ["geometry"]]


def require_objects(layer):
    """Return the feature table of ``layer``, raising InvalidInputError when the layer has none."""
    if layer is None or layer.objects is None:
        raise InvalidInputError("Layer has no vector objects")
    return layer.objects


def property_columns(objects):
    """List the property columns of a feature table, in order."""
    return [col for col in objects.columns if col not in (ID_COLUMN, objects.geometry.name)]


def split_selection(objects, selection=None):
    """Split a feature table into the features to process and the ones to leave alone.

    A non-empty selection restricts processing to the selected feature ids, otherwise the whole layer is processed.

    Parameters:
    -----------
    objects : geopandas.GeoDataFrame
        Feature table with an ``id`` column
    selection : iterable of str or str, optional
        Ids of the selected features. A single string is one id.

    Returns:
    --------
    selected : geopandas.GeoDataFrame
        Features to process
    rest : geopandas.GeoDataFrame
        Features outside the selection (empty when the whole layer is processed)
    """
    if isinstance(selection, str):
        selection = [selection]
    selection = set(selection or [])
    if not selection:
        return objects, objects.iloc[0:0]

    mask = objects[ID_COLUMN].isin(selection)
    return objects[mask], objects[~mask]


class Layer:
    """A Layer represents a set of features (input data or analysis results) with associated properties.

    Layers can be read from GeoJSON or files, or derived from overlay, proximity and hull operations.
    Each layer can have functions attached to calculate additional statistics.
    """

    def __init__(self, name=None, parent=None, type="generic"):
        """Initialize a Layer.

        Parameters:
        -----------
        name : str, optional
            Name of the layer. If None, a unique name will be generated.
        parent : Layer, optional
            Parent layer that this layer is derived from.
        type : str
            Type of layer: "vector", "overlay", "proximity", "hull" or "generic"
        """
        self.id = str(uuid.uuid4())
        self.name = name if name else f"Layer_{self.id[:8]}"
        self.parent = parent
        self.type = type
        self.created_at = pd.Timestamp.now()

        self.objects = None
        self.metadata = {}
        self.crs = None

        self.attached_functions = {}

    def attach_function(self, function, name=None, **kwargs):
        """Attach a function to this layer and execute it.

        Parameters:
        -----------
        function : callable
            Function to attach and execute
        name : str, optional
            Name for this function. If None, uses function.__name__
        **kwargs : dict
            Arguments to pass to the function

        Returns:
        --------
        self : Layer
            Returns self for chaining
        """
        func_name = name if name else function.__name__

        result = function(self, **kwargs)

        self.attached_functions[func_name] = {
            "function": function,
            "args": kwargs,
            "result": result,
        }

        return self

    def get_function_result(self, function_name):
        """Get the result of an attached function.

        Parameters:
        -----------
        function_name : str
            Name of the attached function

        Returns:
        --------
        result : any
            Result of the function
        """
        if function_name not in self.attached_functions:
            raise ValueError(f"Function '{function_name}' not attached to this layer")

        return self.attached_functions[function_name]["result"]

    def get_feature(self, feature_id):
        """Return the row of the feature with the given id."""
        if self.objects is None:
            raise ValueError(f"Feature '{feature_id}' not found")

        rows = self.objects[self.objects[ID_COLUMN] == feature_id]
        if rows.empty:
            raise ValueError(f"Feature '{feature_id}' not found")
        return rows.iloc[0]

    def copy(self):
        """Create a copy of this layer.

        Returns:
        --------
        layer_copy : Layer
            Copy of this layer
        """
        new_layer = Layer(name=f"{self.name}_copy", parent=self.parent, type=self.type)

        if self.objects is not None:
            new_layer.objects = self.objects.copy()

        new_layer.metadata = self.metadata.copy()
        new_layer.crs = self.crs

        return new_layer

    def __len__(self):
        """Number of features in the layer."""
        return 0 if self.objects is None else len(self.objects)

    def __str__(self):
        """String representation of the layer."""
        parent_name = self.parent.name if self.parent else "None"

        return f"Layer '{self.name}' (type: {self.type}, parent: {parent_name}, features: {len(self)})"


class LayerManager:
    """Manages a collection of layers and their relationships."""

    def __init__(self):
        """Initialize the layer manager."""
        self.layers = {}
        self.active_layer = None

    def add_layer(self, layer, set_active=True):
        """Add a layer to the manager.

        Parameters:
        -----------
        layer : Layer
            Layer to add
        set_active : bool
            Whether to set this layer as the active layer

        Returns:
        --------
        layer : Layer
            The added layer
        """
        self.layers[layer.id] = layer

        if set_active:
            self.active_layer = layer

        return layer

    def get_layer(self, layer_id_or_name):
        """Get a layer by ID or name.

        Parameters:
        -----------
        layer_id_or_name : str
            Layer ID or name

        Returns:
        --------
        layer : Layer
            The requested layer
        """
        if layer_id_or_name in self.layers:
            return self.layers[layer_id_or_name]

        for layer in self.layers.values():
            if layer.name == layer_id_or_name:
                return layer

        raise ValueError(f"Layer '{layer_id_or_name}' not found")

    def get_layer_names(self):
        """Get a list of all layer names.

        Returns:
        --------
        names : list
            List of layer names
        """
        return [layer.name for layer in self.layers.values()]

    def remove_layer(self, layer_id_or_name):
        """Remove a layer from the manager.

        Parameters:
        -----------
        layer_id_or_name : str
            Layer ID or name
        """
        layer = self.get_layer(layer_id_or_name)

        if layer.id in self.layers:
            del self.layers[layer.id]

        if self.active_layer and self.active_layer.id == layer.id:
            if self.layers:
                self.active_layer = list(self.layers.values())[-1]
            else:
                self.active_layer = None
