# -*- coding: utf-8 -*-
"""The core package encompasses the fundamental data structures and algorithms of geoanalysis.

It defines the building blocks used by every operation: layers of features, the error types, geometry and
coordinate helpers, and the natural breaks classification.
"""
