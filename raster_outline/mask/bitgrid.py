#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Packed boolean grid for raster masks.

This module provides the BitGrid used as the valid-data mask of an image,
including row-span updates for the streaming builders, morphological
erosion and the centroid of the set pixels.
"""
import logging
import sys
from typing import Optional
import numpy as np

from raster_outline.core.exceptions import DegenerateInputError
from raster_outline.core.logging_config import get_module_logger
from raster_outline.geometry.polygon import Vertex
from raster_outline.utils.utils import timer

# Initialize logger
logger = get_module_logger(__name__)

# Set-bit count of every byte value
_POPCOUNT = np.array([bin(i).count("1") for i in range(256)], dtype=np.uint8)

# Packed bytes popcounted per step by count()
_COUNT_CHUNK = 1 << 14


class BitGrid:
    """
    Dense ``w`` x ``h`` boolean grid stored eight pixels per byte.

    Pixel ``(x, y)`` lives at bit ``y * w + x`` in little bit order.
    ``get`` and ``set`` do not bounds-check: callers must guarantee
    ``0 <= x < w`` and ``0 <= y < h``. Coordinates outside that range
    silently address a different pixel or raise ``IndexError``.
    """

    def __init__(self, w: int, h: int):
        if w < 0 or h < 0:
            raise ValueError(f"Invalid grid size: {w} x {h}")
        if w * h > sys.maxsize:
            raise MemoryError(f"Cannot allocate a {w} x {h} grid")
        self.w = int(w)
        self.h = int(h)
        self._bits = np.zeros((self.w * self.h + 7) // 8, dtype=np.uint8)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> "BitGrid":
        """Build a grid from a 2D ``(h, w)`` array, nonzero meaning set."""
        arr = np.asarray(arr)
        if arr.ndim != 2:
            raise ValueError(f"Expected a 2D array, got shape {arr.shape}")
        grid = cls(arr.shape[1], arr.shape[0])
        grid._bits[:] = np.packbits(arr.astype(bool).ravel(), bitorder="little")
        return grid

    def __repr__(self) -> str:
        return f"BitGrid(w={self.w}, h={self.h})"

    def get(self, x: int, y: int) -> bool:
        i = y * self.w + x
        return bool(self._bits[i >> 3] & (1 << (i & 7)))

    def set(self, x: int, y: int, value: bool) -> None:
        i = y * self.w + x
        if value:
            self._bits[i >> 3] |= np.uint8(1 << (i & 7))
        else:
            self._bits[i >> 3] &= np.uint8(~(1 << (i & 7)) & 0xFF)

    def __getitem__(self, xy) -> bool:
        x, y = xy
        return self.get(x, y)

    def __setitem__(self, xy, value: bool) -> None:
        x, y = xy
        self.set(x, y, value)

    def zero(self) -> None:
        self._bits.fill(0)

    def count(self) -> int:
        """Number of set pixels, counted straight from the packed bytes."""
        # Padding bits past w * h are never set
        total = 0
        for start in range(0, self._bits.size, _COUNT_CHUNK):
            chunk = self._bits[start:start + _COUNT_CHUNK]
            total += int(_POPCOUNT[chunk].sum(dtype=np.int64))
        return total

    def to_array(self) -> np.ndarray:
        """Unpack to a boolean ``(h, w)`` array."""
        flat = np.unpackbits(self._bits, bitorder="little")[:self.w * self.h]
        return flat.reshape(self.h, self.w).astype(bool)

    def _span(self, x: int, y: int, n: int):
        start = y * self.w + x
        b0 = start >> 3
        b1 = (start + n + 7) >> 3
        bits = np.unpackbits(self._bits[b0:b1], bitorder="little")
        return b0, b1, bits, start - (b0 << 3)

    def get_row(self, y: int, x: int = 0, n: Optional[int] = None) -> np.ndarray:
        """Boolean copy of ``n`` pixels of row ``y`` starting at column ``x``."""
        if n is None:
            n = self.w - x
        if n <= 0:
            return np.zeros(0, dtype=bool)
        _, _, bits, off = self._span(x, y, n)
        return bits[off:off + n].astype(bool)

    def set_span(self, x: int, y: int, values: np.ndarray) -> None:
        """Overwrite ``len(values)`` pixels of row ``y`` starting at ``x``."""
        values = np.asarray(values, dtype=bool)
        n = values.size
        if n == 0:
            return
        b0, b1, bits, off = self._span(x, y, n)
        bits[off:off + n] = values
        self._bits[b0:b1] = np.packbits(bits, bitorder="little")

    def include_span(self, x: int, y: int, values: np.ndarray) -> None:
        """Set every pixel of the span where ``values`` is true."""
        values = np.asarray(values, dtype=bool)
        n = values.size
        if n == 0:
            return
        b0, b1, bits, off = self._span(x, y, n)
        bits[off:off + n] |= values
        self._bits[b0:b1] = np.packbits(bits, bitorder="little")

    def exclude_span(self, x: int, y: int, values: np.ndarray) -> None:
        """Clear every pixel of the span where ``values`` is true."""
        values = np.asarray(values, dtype=bool)
        n = values.size
        if n == 0:
            return
        b0, b1, bits, off = self._span(x, y, n)
        bits[off:off + n] &= ~values
        self._bits[b0:b1] = np.packbits(bits, bitorder="little")

    @timer
    def erode(self) -> None:
        """
        Remove weakly connected pixels in place.

        A set pixel survives only if two consecutive cells of its ring of
        eight neighbours are both set. Neighbours outside the grid count as
        unset. Every lookup sees the values from before the erosion.
        """
        if self.w == 0 or self.h == 0:
            return

        window = RowWindow(self)
        for y in range(self.h):
            window.advance()

            u, m, d = window.above, window.current, window.below
            ul, ur = _shift_right(u), _shift_left(u)
            ml, mr = _shift_right(m), _shift_left(m)
            ll, lr = _shift_right(d), _shift_left(d)

            keep = (
                (ul & u) | (u & ur) | (ur & mr) | (mr & lr) |
                (lr & d) | (d & ll) | (ll & ml) | (ml & ul)
            )
            self.set_span(0, y, m & keep)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Eroded %d x %d grid, %d pixels remain", self.w, self.h, self.count())

    def centroid(self) -> Vertex:
        """
        Mean coordinate of the set pixels.

        Raises
        ------
        DegenerateInputError
            If no pixel is set.
        """
        sum_x = sum_y = n = 0
        for y in range(self.h):
            xs = np.flatnonzero(self.get_row(y))
            if xs.size:
                sum_x += int(xs.sum())
                sum_y += y * xs.size
                n += xs.size
        if n == 0:
            raise DegenerateInputError("centroid of an empty grid is undefined")
        return Vertex(sum_x / n, sum_y / n)


class RowWindow:
    """
    Three-row sliding view over a BitGrid.

    Holds private copies of the rows above, at and below the current row.
    ``advance`` rotates the buffers and reads the next row below from the
    grid, so writes to rows already passed never reach the window.
    """

    def __init__(self, grid: BitGrid):
        self.grid = grid
        self.y = -1
        empty = np.zeros(grid.w, dtype=bool)
        self.above = empty
        self.current = empty.copy()
        self.below = grid.get_row(0) if grid.h > 0 else empty.copy()

    def advance(self) -> None:
        self.above, self.current = self.current, self.below
        self.y += 1
        if self.y + 1 < self.grid.h:
            self.below = self.grid.get_row(self.y + 1)
        else:
            self.below = np.zeros(self.grid.w, dtype=bool)


def _shift_right(row: np.ndarray) -> np.ndarray:
    # out[x] = row[x - 1]
    out = np.zeros_like(row)
    out[1:] = row[:-1]
    return out


def _shift_left(row: np.ndarray) -> np.ndarray:
    # out[x] = row[x + 1]
    out = np.zeros_like(row)
    out[:-1] = row[1:]
    return out
