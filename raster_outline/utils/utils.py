#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Utility functions for the raster outline pipeline.

This module provides common helpers used across the mask and geometry
modules: execution timing and progress reporting.
"""
import time
import functools
from typing import Callable, Optional
from tqdm import tqdm

from raster_outline.core.config import MASK_CONFIG
from raster_outline.core.logging_config import get_module_logger

# Initialize logger
logger = get_module_logger(__name__)

ProgressCallback = Callable[[float], None]


def timer(func: Callable) -> Callable:
    """
    Decorator to time function execution.

    Parameters
    ----------
    func : Callable
        Function to time.

    Returns
    -------
    Callable
        Wrapped function with timing.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.time()
        result = func(*args, **kwargs)
        elapsed = time.time() - start_time
        logger.debug(f"Function {func.__name__} took {elapsed:.2f} seconds to run")
        return result
    return wrapper


class TqdmProgress:
    """
    Progress callback drawing a tqdm bar from completion fractions.

    Calling the instance with a fraction in [0, 1] advances the bar to that
    point; fractions lower than the last one seen are ignored.
    """

    def __init__(self, desc: str = "Reading", resolution: int = 1000):
        self.resolution = resolution
        self._bar = tqdm(total=resolution, desc=desc, unit="", leave=False)
        self._done = 0

    def __call__(self, fraction: float) -> None:
        target = int(round(min(max(fraction, 0.0), 1.0) * self.resolution))
        if target > self._done:
            self._bar.update(target - self._done)
            self._done = target
        if self._done >= self.resolution:
            self.close()

    def close(self) -> None:
        self._bar.close()


def resolve_progress(progress: Optional[ProgressCallback], desc: str) -> Optional[ProgressCallback]:
    """Return ``progress`` or, if None, the default reporter from config."""
    if progress is not None:
        return progress
    if MASK_CONFIG.get("show_progress", True):
        return TqdmProgress(desc=desc)
    return None
