#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test suite for the packed bit grid.
"""

import tracemalloc
import unittest
import numpy as np

from raster_outline.core.exceptions import DegenerateInputError
from raster_outline.geometry.polygon import Vertex
from raster_outline.mask.bitgrid import BitGrid, RowWindow


class TestBitGridAccess(unittest.TestCase):
    """Test construction, get/set and span updates."""

    def test_fresh_grid_is_empty(self):
        grid = BitGrid(13, 7)
        for y in range(7):
            for x in range(13):
                self.assertFalse(grid.get(x, y))
        self.assertEqual(grid.count(), 0)

    def test_set_then_get(self):
        grid = BitGrid(5, 3)
        for y in range(3):
            for x in range(5):
                for value in (True, False, True):
                    grid.set(x, y, value)
                    self.assertEqual(grid.get(x, y), value)
        self.assertEqual(grid.count(), 15)

    def test_set_does_not_touch_neighbours(self):
        grid = BitGrid(9, 2)
        grid.set(7, 0, True)
        grid.set(0, 1, True)
        expected = np.zeros((2, 9), dtype=bool)
        expected[0, 7] = True
        expected[1, 0] = True
        np.testing.assert_array_equal(grid.to_array(), expected)

        grid.set(7, 0, False)
        expected[0, 7] = False
        np.testing.assert_array_equal(grid.to_array(), expected)

    def test_item_access(self):
        grid = BitGrid(3, 3)
        grid[2, 1] = True
        self.assertTrue(grid[2, 1])
        self.assertFalse(grid[1, 2])

    def test_zero(self):
        grid = BitGrid.from_array(np.ones((4, 6), dtype=bool))
        grid.zero()
        self.assertEqual(grid.count(), 0)

    def test_array_round_trip(self):
        rng = np.random.RandomState(42)
        arr = rng.rand(11, 17) > 0.5
        grid = BitGrid.from_array(arr)
        self.assertEqual((grid.w, grid.h), (17, 11))
        np.testing.assert_array_equal(grid.to_array(), arr)
        self.assertEqual(grid.count(), int(arr.sum()))

    def test_spans_across_byte_boundaries(self):
        grid = BitGrid(20, 3)
        grid.set_span(5, 1, np.ones(10, dtype=bool))
        np.testing.assert_array_equal(grid.get_row(1), [False] * 5 + [True] * 10 + [False] * 5)
        self.assertEqual(grid.count(), 10)

        grid.exclude_span(3, 1, np.array([False, False, True, True, False, True]))
        np.testing.assert_array_equal(grid.get_row(1, 3, 6), [False, False, False, False, True, False])

        grid.include_span(14, 1, np.array([False, True, True]))
        np.testing.assert_array_equal(grid.get_row(1, 12, 6), [True, True, True, True, True, False])

        # other rows untouched
        self.assertFalse(grid.get_row(0).any())
        self.assertFalse(grid.get_row(2).any())

    def test_invalid_size(self):
        with self.assertRaises(ValueError):
            BitGrid(-1, 4)

    def test_empty_grid(self):
        grid = BitGrid(0, 0)
        self.assertEqual(grid.count(), 0)
        grid.erode()
        self.assertEqual(grid.to_array().shape, (0, 0))


class TestErosion(unittest.TestCase):
    """Test the neighbour-pair erosion filter."""

    def assert_erodes_to(self, before, after):
        grid = BitGrid.from_array(np.array(before, dtype=bool))
        grid.erode()
        np.testing.assert_array_equal(grid.to_array(), np.array(after, dtype=bool))

    def test_full_4x4_keeps_every_pixel(self):
        # Each corner still has its right/lower-right/down neighbours,
        # which form consecutive pairs around the ring.
        full = [[1] * 4] * 4
        self.assert_erodes_to(full, full)

    def test_4x4_truth_table(self):
        before = [
            [1, 1, 0, 0],
            [1, 0, 0, 0],
            [0, 0, 1, 1],
            [0, 0, 1, 1],
        ]
        after = [
            [0, 1, 0, 0],
            [1, 0, 0, 0],
            [0, 0, 1, 1],
            [0, 0, 1, 1],
        ]
        self.assert_erodes_to(before, after)

    def test_uses_pre_erosion_values(self):
        # (0,0) is removed, but (1,0) and (0,1) still see it as set.
        self.assert_erodes_to(
            [[1, 1, 0], [1, 0, 0], [0, 0, 0]],
            [[0, 1, 0], [1, 0, 0], [0, 0, 0]],
        )

    def test_isolated_pixel_removed(self):
        before = np.zeros((5, 5), dtype=int)
        before[2, 2] = 1
        self.assert_erodes_to(before, np.zeros((5, 5), dtype=int))

    def test_thin_line_removed(self):
        before = np.zeros((3, 5), dtype=int)
        before[1, 1:4] = 1
        self.assert_erodes_to(before, np.zeros((3, 5), dtype=int))

    def test_diagonal_pair_removed(self):
        self.assert_erodes_to([[1, 0], [0, 1]], [[0, 0], [0, 0]])

    def test_block_survives(self):
        before = np.zeros((4, 4), dtype=int)
        before[1:3, 1:3] = 1
        self.assert_erodes_to(before, before)

    def test_single_row_and_column(self):
        self.assert_erodes_to([[1, 1, 1, 1]], [[0, 0, 0, 0]])
        self.assert_erodes_to([[1], [1], [1]], [[0], [0], [0]])

    def test_matches_full_neighbourhood_reference(self):
        rng = np.random.RandomState(7)
        arr = rng.rand(9, 12) > 0.4
        padded = np.pad(arr, 1, constant_values=False)
        ring = [(-1, -1), (-1, 0), (-1, 1), (0, 1), (1, 1), (1, 0), (1, -1), (0, -1)]
        expected = np.zeros_like(arr)
        for y in range(arr.shape[0]):
            for x in range(arr.shape[1]):
                if not arr[y, x]:
                    continue
                vals = [padded[y + 1 + dy, x + 1 + dx] for dy, dx in ring]
                expected[y, x] = any(vals[k] and vals[(k + 1) % 8] for k in range(8))

        grid = BitGrid.from_array(arr)
        grid.erode()
        np.testing.assert_array_equal(grid.to_array(), expected)


class TestRowWindow(unittest.TestCase):
    """Test the three-row sliding window."""

    def test_rotation(self):
        arr = np.array([[1, 0], [0, 1], [1, 1]], dtype=bool)
        window = RowWindow(BitGrid.from_array(arr))

        window.advance()
        np.testing.assert_array_equal(window.above, [False, False])
        np.testing.assert_array_equal(window.current, arr[0])
        np.testing.assert_array_equal(window.below, arr[1])

        window.advance()
        np.testing.assert_array_equal(window.above, arr[0])
        np.testing.assert_array_equal(window.current, arr[1])
        np.testing.assert_array_equal(window.below, arr[2])

        window.advance()
        np.testing.assert_array_equal(window.current, arr[2])
        np.testing.assert_array_equal(window.below, [False, False])

    def test_window_is_decoupled_from_writes(self):
        grid = BitGrid.from_array(np.ones((3, 3), dtype=bool))
        window = RowWindow(grid)
        window.advance()
        window.advance()
        grid.set_span(0, 1, np.zeros(3, dtype=bool))
        grid.set_span(0, 0, np.zeros(3, dtype=bool))
        self.assertTrue(window.current.all())
        self.assertTrue(window.above.all())


class TestCentroid(unittest.TestCase):
    """Test the set-pixel centroid."""

    def test_single_pixel(self):
        grid = BitGrid(5, 5)
        grid.set(2, 3, True)
        self.assertEqual(grid.centroid(), Vertex(2.0, 3.0))

    def test_mean_of_pixels(self):
        grid = BitGrid(4, 4)
        grid.set(0, 0, True)
        grid.set(3, 0, True)
        grid.set(0, 2, True)
        grid.set(3, 2, True)
        centroid = grid.centroid()
        self.assertAlmostEqual(centroid.x, 1.5)
        self.assertAlmostEqual(centroid.y, 1.0)

    def test_empty_grid_raises(self):
        with self.assertRaises(DegenerateInputError):
            BitGrid(3, 3).centroid()


class TestMemoryFootprint(unittest.TestCase):
    """Test that erosion, counting and centroid stay row-sized."""

    W = 4000
    H = 4000

    def setUp(self):
        self.grid = BitGrid(self.W, self.H)
        stripe = np.ones(self.W, dtype=bool)
        stripe[::7] = False
        for y in range(1000, 1010):
            self.grid.set_span(0, y, stripe)

    def peak_memory(self, func):
        tracemalloc.start()
        try:
            func()
            _, peak = tracemalloc.get_traced_memory()
        finally:
            tracemalloc.stop()
        return peak

    def test_erode_peak_is_linear_in_width(self):
        peak = self.peak_memory(self.grid.erode)
        self.assertLess(peak, 100 * self.W)

    def test_erode_debug_log_counts_without_unpacking(self):
        with self.assertLogs("raster_outline.mask.bitgrid", level="DEBUG") as logs:
            peak = self.peak_memory(self.grid.erode)
        self.assertLess(peak, 100 * self.W)
        self.assertTrue(any("pixels remain" in line for line in logs.output))

    def test_count_peak_is_bounded(self):
        expected = 10 * (self.W - len(range(0, self.W, 7)))
        result = []
        peak = self.peak_memory(lambda: result.append(self.grid.count()))
        self.assertEqual(result, [expected])
        self.assertLess(peak, 100 * self.W)

    def test_centroid_peak_is_linear_in_width(self):
        grid = BitGrid(self.W, self.H)
        grid.set(17, 3001, True)
        result = []
        peak = self.peak_memory(lambda: result.append(grid.centroid()))
        self.assertEqual(result, [Vertex(17.0, 3001.0)])
        self.assertLess(peak, 100 * self.W)

    def test_count_ignores_row_layout(self):
        rng = np.random.RandomState(5)
        for w, h in [(1, 1), (3, 3), (13, 7), (64, 5)]:
            arr = rng.rand(h, w) > 0.5
            self.assertEqual(BitGrid.from_array(arr).count(), int(arr.sum()))


if __name__ == '__main__':
    unittest.main()
