#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Valid-data mask construction.

This module turns raster bands into BitGrid masks. Datasets are scanned
one native block at a time so that only a single tile buffer is live; the
output grid is the only full-image allocation.

Band combination rule for :func:`get_bitgrid_for_dataset`:

- the first band in the list seeds the mask with its valid pixels;
- without invert, each later band adds its valid pixels (union);
- with invert, each later band removes its no-data pixels (intersection).
"""
import logging
from typing import Iterator, Optional, Sequence, Tuple, Union
import numpy as np

from raster_outline.core.config import DEBUG_PLOT_CONFIG, MASK_CONFIG
from raster_outline.core.exceptions import BandIndexError
from raster_outline.core.io import RasterSource
from raster_outline.core.logging_config import get_module_logger
from raster_outline.mask.bitgrid import BitGrid
from raster_outline.mask.ndv import NdvDef
from raster_outline.utils.utils import ProgressCallback, resolve_progress, timer
from raster_outline.utils.visualization import DebugPlot, debug_color

# Initialize logger
logger = get_module_logger(__name__)

Tile = Tuple[int, int, int, int]


def iter_tiles(width: int, height: int, block_size: Tuple[int, int]) -> Iterator[Tile]:
    """
    Yield ``(x, y, w, h)`` windows covering the image in block order.

    Edge blocks are clipped to the image.
    """
    block_x, block_y = block_size
    if block_x < 1 or block_y < 1:
        raise ValueError(f"Invalid block size: {block_size}")
    for boff_y in range(0, height, block_y):
        bsize_y = min(block_y, height - boff_y)
        for boff_x in range(0, width, block_x):
            bsize_x = min(block_x, width - boff_x)
            yield boff_x, boff_y, bsize_x, bsize_y


def _read_checked(source: RasterSource, band: int, tile: Tile) -> np.ndarray:
    x, y, w, h = tile
    buf = np.asarray(source.read_tile(band, x, y, w, h))
    if buf.shape != (h, w):
        raise ValueError(
            f"Band {band} tile at ({x}, {y}) has shape {buf.shape}, expected {(h, w)}"
        )
    return buf


def _plot_row(debug_plot: DebugPlot, samples: np.ndarray, boff_x: int, y: int) -> None:
    # first column at or after boff_x that lies on the stride
    first = (-boff_x) % debug_plot.stride_x
    for i in range(first, samples.size, debug_plot.stride_x):
        debug_plot.plot_point(boff_x + i, y, *debug_color(samples[i]))


def _plot_excluded(debug_plot: DebugPlot, mask: BitGrid) -> None:
    color = DEBUG_PLOT_CONFIG["excluded_color"]
    for y in range(0, mask.h, debug_plot.stride_y):
        row = mask.get_row(y)
        for x in range(0, mask.w, debug_plot.stride_x):
            if not row[x]:
                debug_plot.plot_point(x, y, *color)


@timer
def get_bitgrid_for_dataset(
    source: RasterSource,
    bandlist: Sequence[int],
    ndv_def: NdvDef,
    debug_plot: Optional[DebugPlot] = None,
    progress: Optional[ProgressCallback] = None
) -> BitGrid:
    """
    Build the valid-data mask of a multi-band raster.

    Parameters
    ----------
    source : RasterSource
        Raster to scan.
    bandlist : sequence of int
        1-based band indices, applied in order.
    ndv_def : NdvDef
        No-data predicate; band positions passed to it are indices into
        ``bandlist``.
    debug_plot : DebugPlot, optional
        Receives sampled values of the first band and, at the end, the
        excluded pixels.
    progress : callable, optional
        Called with the completed fraction after each tile. Defaults to a
        tqdm bar when enabled in config.

    Returns
    -------
    BitGrid
        Mask with True for valid pixels.

    Raises
    ------
    BandIndexError
        If any band index is outside ``[1, band_count]``. Raised before
        any tile is read.
    """
    w, h = source.width, source.height
    band_count = source.band_count
    n_bands = len(bandlist)
    logger.debug(f"Input is {w} x {h} x {band_count}")

    for band_idx in bandlist:
        if band_idx < 1 or band_idx > band_count:
            raise BandIndexError(band_idx, band_count)
    ndv_def.check_band_count(n_bands)

    mask = BitGrid(w, h)
    mask.zero()

    logger.info(f"Reading {n_bands} bands of size {w} x {h}")
    progress = resolve_progress(progress, desc="Building mask")
    total = n_bands * w * h

    for band_pos, band_idx in enumerate(bandlist):
        block_size = source.block_size(band_idx)
        use_8bit = source.is_byte(band_idx)
        logger.debug(f"Band {band_idx}: block size = {block_size}, use_8bit={use_8bit}")

        plot_this_band = debug_plot is not None and band_pos == 0

        for tile in iter_tiles(w, h, block_size):
            boff_x, boff_y, bsize_x, bsize_y = tile
            block = _read_checked(source, band_idx, tile)

            for j in range(bsize_y):
                y = boff_y + j
                samples = block[j]
                row_ndv = ndv_def.classify(band_pos, samples)

                if plot_this_band and y % debug_plot.stride_y == 0:
                    _plot_row(debug_plot, samples, boff_x, y)

                if band_pos == 0:
                    mask.set_span(boff_x, y, ~row_ndv)
                elif ndv_def.invert:
                    mask.exclude_span(boff_x, y, row_ndv)
                else:
                    mask.include_span(boff_x, y, ~row_ndv)

            if progress is not None:
                done = band_pos * w * h + boff_y * w + (boff_x + bsize_x) * bsize_y
                progress(done / total)

    if debug_plot is not None:
        _plot_excluded(debug_plot, mask)

    if progress is not None and total == 0:
        progress(1.0)

    if logger.isEnabledFor(logging.INFO):
        logger.info("Mask has %d valid pixels out of %d", mask.count(), w * h)
    return mask


def get_bitgrid_for_8bit_raster(
    w: int,
    h: int,
    raster: Union[bytes, bytearray, np.ndarray],
    wanted: int
) -> BitGrid:
    """
    Mask the pixels of a decoded 8-bit image that equal ``wanted``.

    Parameters
    ----------
    w, h : int
        Image size.
    raster : bytes or np.ndarray
        ``w * h`` byte values in row-major order.
    wanted : int
        Byte value to select.

    Returns
    -------
    BitGrid
        True where the pixel equals ``wanted``.
    """
    if isinstance(raster, (bytes, bytearray, memoryview)):
        arr = np.frombuffer(raster, dtype=np.uint8)
    else:
        arr = np.asarray(raster, dtype=np.uint8)
    if arr.size != w * h:
        raise ValueError(f"Raster has {arr.size} values, expected {w * h}")
    return BitGrid.from_array(arr.reshape(h, w) == wanted)


@timer
def read_dataset_8bit(
    source: RasterSource,
    band_idx: int,
    debug_plot: Optional[DebugPlot] = None,
    progress: Optional[ProgressCallback] = None
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Read one band into a full 8-bit image.

    Non-byte bands are rounded and clamped to ``[0, 255]``.

    Parameters
    ----------
    source : RasterSource
        Raster to read.
    band_idx : int
        1-based band index.
    debug_plot : DebugPlot, optional
        Receives the sampled values.
    progress : callable, optional
        Called with the completed fraction after each tile.

    Returns
    -------
    tuple
        - ``(h, w)`` uint8 image
        - 256-element boolean array, True for each byte value present
    """
    w, h = source.width, source.height
    band_count = source.band_count
    if band_idx < 1 or band_idx > band_count:
        raise BandIndexError(band_idx, band_count)

    block_size = source.block_size(band_idx)
    is_byte = source.is_byte(band_idx)
    if not is_byte and MASK_CONFIG.get("warn_non_byte_8bit", True):
        logger.warning("Input is not of type Byte, there may be loss while downsampling")
    logger.debug(f"Band {band_idx}: block size = {block_size}")
    logger.info(f"Reading one band of size {w} x {h}")

    progress = resolve_progress(progress, desc="Reading band")
    out = np.zeros((h, w), dtype=np.uint8)
    usage = np.zeros(256, dtype=bool)

    for tile in iter_tiles(w, h, block_size):
        boff_x, boff_y, bsize_x, bsize_y = tile
        block = _read_checked(source, band_idx, tile)
        if not is_byte:
            block = np.clip(np.rint(np.nan_to_num(block)), 0, 255).astype(np.uint8)

        out[boff_y:boff_y + bsize_y, boff_x:boff_x + bsize_x] = block
        usage[np.unique(block)] = True

        if debug_plot is not None:
            for j in range(bsize_y):
                y = boff_y + j
                if y % debug_plot.stride_y == 0:
                    _plot_row(debug_plot, block[j], boff_x, y)

        if progress is not None:
            progress((boff_y * w + (boff_x + bsize_x) * bsize_y) / (w * h))

    if progress is not None and w * h == 0:
        progress(1.0)

    logger.debug(f"Found {int(usage.sum())} distinct byte values")
    return out, usage
