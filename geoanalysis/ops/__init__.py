# -*- coding: utf-8 -*-
"""The ops package provides the operations that derive a new layer from existing ones.

It includes overlay operations (clip, erase, union, dissolve), proximity operations (buffer, cross-sections) and
hull generation. Every operation leaves its inputs untouched and returns a fresh layer, optionally registered with a
LayerManager.
"""
