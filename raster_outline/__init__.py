#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Raster Outline Package.

Streaming construction of valid-data masks from multi-band rasters, packed
bit grids with morphological erosion, and polygon ring geometry for the
outlines traced from those masks.
"""

__version__ = "0.1.0"
__author__ = "Elena Project Team"
__email__ = "user@example.com"
