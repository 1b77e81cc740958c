#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Debug visualization for mask building.

This module provides the DebugPlot observer that the mask builders draw
into while scanning a raster: sampled source values during the first band
and the pixels excluded from the final mask.
"""
import os
from typing import Tuple
import numpy as np
import matplotlib.pyplot as plt

from raster_outline.core.config import DEBUG_PLOT_CONFIG
from raster_outline.core.logging_config import get_module_logger

# Initialize logger
logger = get_module_logger(__name__)


class DebugPlot:
    """
    RGB canvas sampling an image at a fixed stride.

    Parameters
    ----------
    width, height : int
        Size of the full-resolution image being plotted.
    stride_x, stride_y : int, optional
        Only pixels whose coordinates are multiples of the strides are
        drawn; each lands on one canvas cell.
    """

    def __init__(
        self,
        width: int,
        height: int,
        stride_x: int = DEBUG_PLOT_CONFIG["stride_x"],
        stride_y: int = DEBUG_PLOT_CONFIG["stride_y"]
    ):
        if stride_x < 1 or stride_y < 1:
            raise ValueError(f"Invalid stride: {stride_x}, {stride_y}")
        self.width = width
        self.height = height
        self.stride_x = stride_x
        self.stride_y = stride_y
        canvas_h = (height + stride_y - 1) // stride_y
        canvas_w = (width + stride_x - 1) // stride_x
        self.canvas = np.empty((canvas_h, canvas_w, 3), dtype=np.uint8)
        self.canvas[:, :] = DEBUG_PLOT_CONFIG["background"]

    def plot_point(self, x: int, y: int, r: int, g: int, b: int) -> None:
        self.canvas[y // self.stride_y, x // self.stride_x] = (r, g, b)

    def save(self, output_path: str) -> str:
        """
        Write the canvas as an image file.

        Parameters
        ----------
        output_path : str
            Destination path; the format follows the extension.

        Returns
        -------
        str
            The path written.
        """
        output_dir = os.path.dirname(output_path)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)
        plt.imsave(output_path, self.canvas)
        logger.info(f"Saved debug plot to {output_path}")
        return output_path


def debug_color(value: float) -> Tuple[int, int, int]:
    """
    Grey-green colour for a raw sample value.

    Parameters
    ----------
    value : float
        Sample value; NaN is drawn as zero.

    Returns
    -------
    tuple
        ``(r, g, b)`` with ``g == b`` in ``[min_level, max_level]``.
    """
    lo = DEBUG_PLOT_CONFIG["min_level"]
    hi = DEBUG_PLOT_CONFIG["max_level"]
    value = float(np.clip(np.nan_to_num(value), -1e9, 1e9))
    level = lo + int(int(value) / 3)
    level = min(max(level, lo), hi)
    return int(level * DEBUG_PLOT_CONFIG["red_scale"]), level, level
