"""
Data loading for fine-resolution terrain grids.

Reads a DEM (and optionally a separate basin mask raster) with rasterio and
builds a FineGrid.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import numpy as np
import rasterio

from .errors import UnsupportedConfiguration
from .grid import FineGrid

logger = logging.getLogger(__name__)


def _valid_data(data: np.ndarray, nodata) -> np.ndarray:
    """Cells that are finite and not equal to the nodata value."""
    valid = np.isfinite(data)
    if nodata is not None and not np.isnan(nodata):
        valid &= data != nodata
    return valid


def load_fine_grid(
    dem_path: Union[str, Path], mask_path: Optional[Union[str, Path]] = None
) -> FineGrid:
    """
    Load a DEM raster into a FineGrid.

    Args:
        dem_path: Path to the elevation raster (any format readable by rasterio)
        mask_path: Optional basin mask raster on the same grid; nonzero cells
            are inside the basin. Without it every valid DEM cell is inside.

    Returns:
        FineGrid with elevation, mask, cell size, origin and CRS

    Raises:
        FileNotFoundError: If a raster does not exist
        UnsupportedConfiguration: If pixels are not square or the raster is rotated
        ValueError: If the mask raster does not match the DEM shape
    """
    dem_path = Path(dem_path)
    if not dem_path.exists():
        raise FileNotFoundError(f"DEM file not found: {dem_path}")

    with rasterio.open(dem_path) as src:
        dem = src.read(1).astype(np.float64)
        transform = src.transform
        crs = src.crs
        dem_nodata = src.nodata

    if transform.b != 0 or transform.d != 0:
        raise UnsupportedConfiguration(f"Rotated rasters are not supported: {dem_path}")
    if not np.isclose(abs(transform.a), abs(transform.e)):
        raise UnsupportedConfiguration(
            f"Cells must be square, got {abs(transform.a)} x {abs(transform.e)} in {dem_path}"
        )

    mask = _valid_data(dem, dem_nodata)

    if mask_path is not None:
        mask_path = Path(mask_path)
        if not mask_path.exists():
            raise FileNotFoundError(f"Mask file not found: {mask_path}")
        with rasterio.open(mask_path) as src:
            mask_data = src.read(1)
            mask_nodata = src.nodata
        if mask_data.shape != dem.shape:
            raise ValueError(
                f"Mask shape {mask_data.shape} does not match DEM shape {dem.shape}"
            )
        mask &= _valid_data(mask_data.astype(np.float64), mask_nodata) & (mask_data != 0)

    logger.info(f"Loaded {dem.shape[1]}x{dem.shape[0]} DEM from {dem_path} "
                f"({int(np.count_nonzero(mask)):,} basin cells, cell size {abs(transform.a)})")

    return FineGrid(
        elevation=dem,
        mask=mask,
        cell_size=float(abs(transform.a)),
        x_origin=float(transform.c),
        y_origin=float(transform.f),
        crs=crs,
    )
