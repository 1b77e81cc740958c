#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test suite for raster sources.
"""

import os
import tempfile
import unittest
import numpy as np
import rasterio
from rasterio.transform import Affine

from raster_outline.core.exceptions import BandIndexError
from raster_outline.core.io import ArrayRasterSource, RasterioRasterSource, open_raster
from raster_outline.mask.builder import get_bitgrid_for_dataset
from raster_outline.mask.ndv import NdvDef


def write_geotiff(path, data, nodata):
    """Write a (bands, rows, cols) array as a GeoTIFF."""
    with rasterio.open(
        path,
        'w',
        driver='GTiff',
        height=data.shape[1],
        width=data.shape[2],
        count=data.shape[0],
        dtype=data.dtype,
        crs='+proj=utm +zone=6 +datum=WGS84',
        transform=Affine(10.0, 0.0, 0.0, 0.0, -10.0, 0.0),
        nodata=nodata
    ) as dst:
        dst.write(data)


class TestArrayRasterSource(unittest.TestCase):
    """Test the numpy-backed source."""

    def test_single_band(self):
        source = ArrayRasterSource(np.arange(12, dtype=np.uint8).reshape(3, 4), block_size=(2, 2))
        self.assertEqual((source.width, source.height, source.band_count), (4, 3, 1))
        self.assertEqual(source.block_size(1), (2, 2))
        self.assertTrue(source.is_byte(1))
        self.assertIsNone(source.nodata(1))
        np.testing.assert_array_equal(source.read_tile(1, 2, 1, 2, 2), [[6, 7], [10, 11]])

    def test_float_tiles(self):
        data = np.ones((2, 3, 3), dtype=np.int16)
        source = ArrayRasterSource(data, nodata=[-1, 0])
        self.assertFalse(source.is_byte(2))
        self.assertEqual(source.nodata(2), 0)
        self.assertEqual(source.read_tile(2, 0, 0, 3, 3).dtype, np.float64)

    def test_tiles_are_copies(self):
        data = np.zeros((2, 2), dtype=np.uint8)
        source = ArrayRasterSource(data)
        tile = source.read_tile(1, 0, 0, 2, 2)
        tile[0, 0] = 9
        self.assertEqual(data[0, 0], 0)

    def test_bad_band(self):
        source = ArrayRasterSource(np.zeros((2, 2), dtype=np.uint8))
        with self.assertRaises(BandIndexError):
            source.block_size(2)
        with self.assertRaises(BandIndexError):
            source.is_byte(0)

    def test_bad_input(self):
        with self.assertRaises(ValueError):
            ArrayRasterSource(np.zeros(4))
        with self.assertRaises(ValueError):
            ArrayRasterSource(np.zeros((2, 2)), block_size=(0, 4))
        with self.assertRaises(ValueError):
            ArrayRasterSource(np.zeros((2, 2, 2)), nodata=[1, 2, 3])


class TestRasterioSource(unittest.TestCase):
    """Test reading GeoTIFFs through rasterio."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_byte_raster(self):
        rng = np.random.RandomState(11)
        data = rng.randint(0, 3, size=(2, 5, 7)).astype(np.uint8)
        path = os.path.join(self.tmpdir.name, "bytes.tif")
        write_geotiff(path, data, nodata=0)

        with open_raster(path) as source:
            self.assertIsInstance(source, RasterioRasterSource)
            self.assertEqual((source.width, source.height, source.band_count), (7, 5, 2))
            self.assertTrue(source.is_byte(1))
            self.assertEqual(source.nodata(1), 0)
            self.assertEqual(source.block_size(1)[0], 7)
            np.testing.assert_array_equal(source.read_tile(2, 1, 2, 3, 2), data[1, 2:4, 1:4])

            ndv = NdvDef.from_source(source, [1, 2])
            mask = get_bitgrid_for_dataset(source, [1, 2], ndv, progress=lambda p: None)

        np.testing.assert_array_equal(mask.to_array(), (data[0] != 0) | (data[1] != 0))

    def test_float_raster(self):
        data = np.array([[[-9999.0, 2.5], [np.nan, 4.0]]], dtype=np.float32)
        path = os.path.join(self.tmpdir.name, "floats.tif")
        write_geotiff(path, data, nodata=-9999.0)

        with open_raster(path) as source:
            self.assertFalse(source.is_byte(1))
            self.assertEqual(source.read_tile(1, 0, 0, 2, 2).dtype, np.float64)
            mask = get_bitgrid_for_dataset(
                source, [1], NdvDef.from_source(source, [1]), progress=lambda p: None
            )

        np.testing.assert_array_equal(mask.to_array(), [[False, True], [False, True]])

    def test_missing_file(self):
        with self.assertRaises(RuntimeError):
            open_raster(os.path.join(self.tmpdir.name, "missing.tif"))


if __name__ == '__main__':
    unittest.main()
