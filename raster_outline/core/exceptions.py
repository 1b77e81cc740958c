#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Error types raised by the raster outline pipeline.

Configuration errors abort a mask build outright. Degenerate-input errors
are raised by operations whose result would otherwise be undefined, such as
the centroid of an empty grid or the area of a ring with fewer than three
points.
"""


class RasterOutlineError(Exception):
    """Base class for all errors raised by this package."""


class BandIndexError(RasterOutlineError, ValueError):
    """Raised when a requested band is outside ``[1, band_count]``.

    Attributes:
        band_idx -- the offending 1-based band index
        band_count -- number of bands in the raster source
    """

    def __init__(self, band_idx, band_count, message=None):
        self.band_idx = band_idx
        self.band_count = band_count
        if message is None:
            message = f"band {band_idx} out of range (raster has {band_count} bands)"
        self.message = message
        super().__init__(self.message)


class DegenerateInputError(RasterOutlineError, ValueError):
    """Raised when an operation is undefined for its input."""


class CoincidentSegmentsError(DegenerateInputError):
    """Raised when two segments are collinear and overlap."""
