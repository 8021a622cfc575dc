# -*- coding: utf-8 -*-
"""The io package converts layers to and from GeoJSON and vector files.

It abstracts feature ids and coordinate reference system handling so operations only ever see Layer objects.
"""
