#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
No-data value definitions.

An NdvDef is a list of slabs. Each slab holds closed value intervals,
either a single interval shared by every band or one interval per band.
Without invert, a sample is no-data when any slab's interval for its band
contains it. With invert, the slabs describe valid ranges instead and a
sample is no-data when no slab contains it. NaN is always no-data.

Textual form, one string per slab::

    "255"              # 255 in every band
    "0..10"            # 0 through 10 in every band
    "155 52 52"        # per band: 155 in band 1, 52 in bands 2 and 3
    "24 173 79..81"
"""
from typing import Iterable, List, NamedTuple, Optional, Sequence
import numpy as np

from raster_outline.core.io import RasterSource
from raster_outline.core.logging_config import get_module_logger

# Initialize logger
logger = get_module_logger(__name__)


class NdvInterval(NamedTuple):
    lo: float
    hi: float

    def contains(self, samples: np.ndarray) -> np.ndarray:
        return (samples >= self.lo) & (samples <= self.hi)

    @classmethod
    def parse(cls, token: str) -> "NdvInterval":
        if ".." in token:
            lo_str, hi_str = token.split("..", 1)
            lo, hi = float(lo_str), float(hi_str)
        else:
            lo = hi = float(token)
        if lo > hi:
            raise ValueError(f"Empty no-data range: {token}")
        return cls(lo, hi)


# Matches nothing; used for bands that declare no no-data value.
EMPTY_INTERVAL = NdvInterval(np.inf, -np.inf)


class NdvSlab:
    """Intervals for one no-data definition across bands."""

    def __init__(self, ranges: Sequence[NdvInterval]):
        if not ranges:
            raise ValueError("A no-data slab needs at least one range")
        self.ranges = list(ranges)

    @classmethod
    def parse(cls, text: str) -> "NdvSlab":
        tokens = text.split()
        if not tokens:
            raise ValueError("Empty no-data definition")
        try:
            return cls([NdvInterval.parse(tok) for tok in tokens])
        except ValueError as e:
            raise ValueError(f"Could not parse no-data definition '{text}': {e}") from e

    def interval_for(self, band_pos: int) -> NdvInterval:
        if len(self.ranges) == 1:
            return self.ranges[0]
        if band_pos >= len(self.ranges):
            raise ValueError(
                f"No-data definition has {len(self.ranges)} bands, "
                f"band position {band_pos} requested"
            )
        return self.ranges[band_pos]

    def __repr__(self) -> str:
        return f"NdvSlab({self.ranges!r})"


class NdvDef:
    """
    Per-band no-data predicate with a global invert flag.

    Parameters
    ----------
    slabs : list of NdvSlab, optional
        No-data (or, with ``invert``, valid-data) definitions.
    invert : bool, optional
        Treat ``slabs`` as valid ranges rather than no-data ranges.
    """

    def __init__(self, slabs: Optional[Iterable[NdvSlab]] = None, invert: bool = False):
        self.slabs = list(slabs or [])
        self._invert = bool(invert)

    @classmethod
    def parse(cls, specs: Iterable[str], invert: bool = False) -> "NdvDef":
        return cls([NdvSlab.parse(s) for s in specs], invert=invert)

    @classmethod
    def from_source(cls, source: RasterSource, bands: Sequence[int]) -> "NdvDef":
        """
        Build a definition from the no-data values declared by a raster.

        Bands without a declared value never report no-data (except NaN).
        """
        values = [source.nodata(b) for b in bands]
        if all(v is None for v in values):
            logger.warning("Raster declares no no-data values; only NaN is excluded")
            return cls()
        ranges = [EMPTY_INTERVAL if v is None else NdvInterval(float(v), float(v)) for v in values]
        logger.info(f"Using no-data values from raster: {values}")
        return cls([NdvSlab(ranges)])

    @property
    def invert(self) -> bool:
        return self._invert

    def is_invert(self) -> bool:
        return self._invert

    def is_empty(self) -> bool:
        return not self.slabs

    def check_band_count(self, n_bands: int) -> None:
        """Raise ValueError if a per-band slab does not cover ``n_bands`` bands."""
        for slab in self.slabs:
            if len(slab.ranges) != 1 and len(slab.ranges) != n_bands:
                raise ValueError(
                    f"No-data definition {slab} has {len(slab.ranges)} bands "
                    f"but {n_bands} bands are being read"
                )

    def classify(self, band_pos: int, samples: np.ndarray) -> np.ndarray:
        """
        Flag the no-data samples of one row.

        Parameters
        ----------
        band_pos : int
            0-based position of the band in the list being read.
        samples : np.ndarray
            1D array of raw sample values.

        Returns
        -------
        np.ndarray
            Boolean array, True where the sample is no-data.
        """
        samples = np.asarray(samples)
        in_range = np.zeros(samples.shape, dtype=bool)
        for slab in self.slabs:
            in_range |= slab.interval_for(band_pos).contains(samples)

        ndv = ~in_range if self._invert else in_range
        if samples.dtype.kind == "f":
            ndv |= np.isnan(samples)
        return ndv

    def __repr__(self) -> str:
        return f"NdvDef(slabs={self.slabs!r}, invert={self._invert})"
