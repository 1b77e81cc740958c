#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Mask construction modules.

This package contains the packed bit grid, the no-data predicate and the
streaming builders that turn raster bands into valid-data masks.
"""
