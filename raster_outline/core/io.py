#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Raster sources for the raster outline pipeline.

This module wraps the libraries that decode raster files behind one small
interface: image size, band count, per-band native block size and sample
representation, and a synchronous tile read. Byte bands are read as
``uint8``; every other sample type is read as ``float64``.
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple, Union
import numpy as np
import rasterio
from rasterio.windows import Window

from raster_outline.core.config import DEFAULT_BLOCK_SIZE
from raster_outline.core.exceptions import BandIndexError
from raster_outline.core.logging_config import get_module_logger

# Initialize logger
logger = get_module_logger(__name__)


class RasterSource(ABC):
    """
    Read-only access to a tiled multi-band raster.

    Band indices are 1-based, matching GDAL and rasterio.
    """

    @property
    @abstractmethod
    def width(self) -> int:
        ...

    @property
    @abstractmethod
    def height(self) -> int:
        ...

    @property
    @abstractmethod
    def band_count(self) -> int:
        ...

    @abstractmethod
    def block_size(self, band: int) -> Tuple[int, int]:
        """Native tile size of ``band`` as ``(block_x, block_y)``."""

    @abstractmethod
    def is_byte(self, band: int) -> bool:
        """True if ``band`` stores unsigned 8-bit samples."""

    @abstractmethod
    def nodata(self, band: int) -> Optional[float]:
        """Declared no-data value of ``band``, or None."""

    @abstractmethod
    def read_tile(self, band: int, x: int, y: int, w: int, h: int) -> np.ndarray:
        """
        Read a ``h`` x ``w`` window whose upper-left pixel is ``(x, y)``.

        Returns a ``uint8`` array for byte bands and ``float64`` otherwise.
        """

    def check_band(self, band: int) -> None:
        if band < 1 or band > self.band_count:
            raise BandIndexError(band, self.band_count)

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False


class ArrayRasterSource(RasterSource):
    """
    Raster source backed by an in-memory numpy array.

    Parameters
    ----------
    data : np.ndarray
        Either a 2D ``(height, width)`` array for a single band or a 3D
        ``(bands, height, width)`` stack.
    block_size : tuple, optional
        Tiling reported for every band as ``(block_x, block_y)``.
    nodata : float or list, optional
        No-data value for all bands, or one value per band.
    """

    def __init__(
        self,
        data: np.ndarray,
        block_size: Tuple[int, int] = DEFAULT_BLOCK_SIZE,
        nodata: Union[None, float, List[Optional[float]]] = None
    ):
        data = np.asarray(data)
        if data.ndim == 2:
            data = data[np.newaxis, :, :]
        if data.ndim != 3:
            raise ValueError(f"Expected a 2D or 3D array, got shape {data.shape}")
        if block_size[0] < 1 or block_size[1] < 1:
            raise ValueError(f"Invalid block size: {block_size}")

        self._data = data
        self._block_size = (int(block_size[0]), int(block_size[1]))
        if nodata is None or np.isscalar(nodata):
            self._nodata = [nodata] * data.shape[0]
        else:
            if len(nodata) != data.shape[0]:
                raise ValueError(f"Got {len(nodata)} nodata values for {data.shape[0]} bands")
            self._nodata = list(nodata)

    @property
    def width(self) -> int:
        return self._data.shape[2]

    @property
    def height(self) -> int:
        return self._data.shape[1]

    @property
    def band_count(self) -> int:
        return self._data.shape[0]

    def block_size(self, band: int) -> Tuple[int, int]:
        self.check_band(band)
        return self._block_size

    def is_byte(self, band: int) -> bool:
        self.check_band(band)
        return self._data.dtype == np.uint8

    def nodata(self, band: int) -> Optional[float]:
        self.check_band(band)
        return self._nodata[band - 1]

    def read_tile(self, band: int, x: int, y: int, w: int, h: int) -> np.ndarray:
        self.check_band(band)
        tile = self._data[band - 1, y:y + h, x:x + w]
        if self._data.dtype == np.uint8:
            return tile.copy()
        return tile.astype(np.float64)


class RasterioRasterSource(RasterSource):
    """
    Raster source reading windows through rasterio.

    Parameters
    ----------
    dataset : rasterio.io.DatasetReader
        An open dataset. It is closed by :meth:`close` only when this
        object opened it.
    """

    def __init__(self, dataset, owns_dataset: bool = False):
        self._ds = dataset
        self._owns_dataset = owns_dataset

    @classmethod
    def open(cls, path: str) -> "RasterioRasterSource":
        return cls(rasterio.open(path), owns_dataset=True)

    @property
    def width(self) -> int:
        return self._ds.width

    @property
    def height(self) -> int:
        return self._ds.height

    @property
    def band_count(self) -> int:
        return self._ds.count

    def block_size(self, band: int) -> Tuple[int, int]:
        self.check_band(band)
        rows, cols = self._ds.block_shapes[band - 1]
        return cols, rows

    def is_byte(self, band: int) -> bool:
        self.check_band(band)
        return np.dtype(self._ds.dtypes[band - 1]) == np.uint8

    def nodata(self, band: int) -> Optional[float]:
        self.check_band(band)
        return self._ds.nodatavals[band - 1]

    def read_tile(self, band: int, x: int, y: int, w: int, h: int) -> np.ndarray:
        window = Window(x, y, w, h)
        if self.is_byte(band):
            return self._ds.read(band, window=window)
        return self._ds.read(band, window=window, out_dtype="float64")

    def close(self) -> None:
        if self._owns_dataset:
            self._ds.close()


class GdalRasterSource(RasterSource):
    """
    Raster source reading windows through the GDAL Python bindings.

    Used as a fallback when rasterio cannot open a file.
    """

    def __init__(self, path: str):
        from osgeo import gdal

        self._gdal = gdal
        self._ds = gdal.Open(path)
        if self._ds is None:
            raise ValueError(f"Failed to open raster: {path}")

    @property
    def width(self) -> int:
        return self._ds.RasterXSize

    @property
    def height(self) -> int:
        return self._ds.RasterYSize

    @property
    def band_count(self) -> int:
        return self._ds.RasterCount

    def block_size(self, band: int) -> Tuple[int, int]:
        self.check_band(band)
        block_x, block_y = self._ds.GetRasterBand(band).GetBlockSize()
        return block_x, block_y

    def is_byte(self, band: int) -> bool:
        self.check_band(band)
        return self._ds.GetRasterBand(band).DataType == self._gdal.GDT_Byte

    def nodata(self, band: int) -> Optional[float]:
        self.check_band(band)
        return self._ds.GetRasterBand(band).GetNoDataValue()

    def read_tile(self, band: int, x: int, y: int, w: int, h: int) -> np.ndarray:
        arr = self._ds.GetRasterBand(band).ReadAsArray(x, y, w, h)
        if self.is_byte(band):
            return arr
        return arr.astype(np.float64)

    def close(self) -> None:
        self._ds = None


def open_raster(path: str) -> RasterSource:
    """
    Open a raster file for tiled reading.

    Parameters
    ----------
    path : str
        Path to any raster format supported by rasterio or GDAL.

    Returns
    -------
    RasterSource
        A rasterio-backed source, or a GDAL-backed one if rasterio fails.
    """
    logger.info(f"Opening raster {path}")

    try:
        source = RasterioRasterSource.open(path)
    except Exception as e:
        logger.warning(f"Rasterio loading failed: {str(e)}. Trying GDAL...")
        try:
            source = GdalRasterSource(path)
        except Exception as gdal_error:
            logger.error(f"GDAL loading failed: {str(gdal_error)}")
            raise RuntimeError(f"Failed to load raster: {path}") from gdal_error

    logger.info(f"Input is {source.width} x {source.height} x {source.band_count}")
    return source
