#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Configuration settings for the raster outline pipeline.

This module centralizes all configuration parameters used across the mask
building and geometry modules, making it easier to modify settings in one place.
"""
from typing import Dict, Any, Tuple
from pathlib import Path

# General configuration
DEFAULT_BLOCK_SIZE: Tuple[int, int] = (256, 256)  # (x, y) tiling for in-memory sources

# Path configuration
PROJECT_ROOT: Path = Path(__file__).parent.absolute()
DEFAULT_OUTPUT_DIR: Path = PROJECT_ROOT / "output"

# Mask building configuration
MASK_CONFIG: Dict[str, Any] = {
    "show_progress": True,       # Draw a tqdm bar when no progress callback is given
    "warn_non_byte_8bit": True,  # Warn when an 8-bit read has to downsample
}

# Debug plot configuration
DEBUG_PLOT_CONFIG: Dict[str, Any] = {
    "stride_x": 4,
    "stride_y": 4,
    "background": (255, 255, 255),
    "excluded_color": (0, 0, 0),  # Marks pixels left out of the final mask
    "min_level": 50,
    "max_level": 254,
    "red_scale": 0.75,
}

# Logging configuration
LOGGING_CONFIG: Dict[str, Any] = {
    "level": "INFO",  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    "log_to_file": False,
    "log_file": DEFAULT_OUTPUT_DIR / "outline.log",
    "log_format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}
