"""
Raster export of finished topographic index grids.

Export is decoupled from the computation: every function here takes finished
grids and a destination path.
"""

import logging
from pathlib import Path
from typing import Union

import numpy as np
import rasterio
from rasterio import Affine
from rasterio.transform import from_origin

from .accumulator import TopoIndexResult
from .config import NODATA_VALUE
from .grid import FineGrid

logger = logging.getLogger(__name__)

EXPORT_LAYERS = ("topo_index", "log_inverse_tanbeta", "log_area")


def export_layer(result: TopoIndexResult, layer: str = "topo_index") -> np.ndarray:
    """
    Select a diagnostic layer from a finished computation.

    Args:
        result: Finished TopoIndexResult
        layer: One of "topo_index", "log_inverse_tanbeta" (ln(1 / tanbeta))
            or "log_area" (ln(area))

    Returns:
        Float grid, NaN outside the processed cells
    """
    if layer not in EXPORT_LAYERS:
        raise ValueError(f"Unknown export layer '{layer}', expected one of {EXPORT_LAYERS}")

    if layer == "topo_index":
        return result.topo_index

    processed = result.processed
    values = np.full(result.area.shape, np.nan, dtype=np.float64)
    if layer == "log_inverse_tanbeta":
        values[processed] = np.log(1.0 / result.tanbeta[processed])
    else:
        values[processed] = np.log(result.area[processed])
    return values


def write_ascii_grid(
    path: Union[str, Path],
    values: np.ndarray,
    mask: np.ndarray,
    x_origin: float,
    y_origin: float,
    cell_size: float,
) -> Path:
    """
    Write a grid in ESRI ASCII raster format.

    Rows are written top to bottom. Cells outside ``mask`` are written as
    ``0.`` which matches the NODATA_value header.

    Args:
        path: Output file path
        values: Grid of values, shape (nrows, ncols)
        mask: True for cells to write
        x_origin: X coordinate of the upper-left corner
        y_origin: Y coordinate of the upper-left corner
        cell_size: Cell size

    Returns:
        Path to written file
    """
    path = Path(path)
    nrows, ncols = values.shape
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as fo:
        fo.write(f"ncols {ncols:11d}\n")
        fo.write(f"nrows {nrows:11d}\n")
        fo.write(f"xllcorner {x_origin:.1f}\n")
        fo.write(f"yllcorner {y_origin - nrows * cell_size:.1f}\n")
        fo.write(f"cellsize {cell_size:.0f}\n")
        fo.write(f"NODATA_value {NODATA_VALUE:d}\n")

        for y in range(nrows):
            row = []
            for x in range(ncols):
                if mask[y, x]:
                    row.append(f"{values[y, x]:2.3f} ")
                else:
                    row.append("0. ")
            fo.write("".join(row) + "\n")

    logger.info(f"Wrote {nrows}x{ncols} ASCII grid to {path}")
    return path


def write_topo_index_ascii(
    result: TopoIndexResult,
    grid: FineGrid,
    path: Union[str, Path],
    layer: str = "log_inverse_tanbeta",
) -> Path:
    """
    Write one diagnostic layer of a finished computation as an ASCII grid.

    Args:
        result: Finished TopoIndexResult
        grid: Grid the result was computed on (origin, mask, cell size)
        path: Output file path
        layer: Layer name, see export_layer (default: ln(1 / tanbeta))

    Returns:
        Path to written file
    """
    values = export_layer(result, layer)
    return write_ascii_grid(
        path,
        values,
        grid.mask & result.processed,
        grid.x_origin,
        grid.y_origin,
        grid.cell_size,
    )


def grid_transform(grid: FineGrid) -> Affine:
    """Affine transform for a north-up grid with its upper-left corner at the origin."""
    return from_origin(grid.x_origin, grid.y_origin, grid.cell_size, grid.cell_size)


def write_geotiff(
    path: Union[str, Path], data: np.ndarray, transform: Affine, crs=None
) -> Path:
    """
    Write numpy array to GeoTIFF file.

    Parameters
    ----------
    path : str or Path
        Output file path
    data : np.ndarray
        Data array to write
    transform : Affine
        Affine transform
    crs : rasterio.crs.CRS or str, optional
        Coordinate reference system

    Returns
    -------
    Path
        Path to written file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    height, width = data.shape

    with rasterio.open(
        path,
        "w",
        driver="GTiff",
        height=height,
        width=width,
        count=1,
        dtype=data.dtype,
        crs=crs,
        transform=transform,
        nodata=np.nan if np.issubdtype(data.dtype, np.floating) else None,
        compress="lzw",
    ) as dst:
        dst.write(data, 1)

    logger.info(f"Wrote {height}x{width} GeoTIFF to {path}")
    return path


def write_topo_index_geotiff(
    result: TopoIndexResult, grid: FineGrid, path: Union[str, Path], crs=None
) -> Path:
    """Write the topographic index of a finished computation as a GeoTIFF."""
    if crs is None:
        crs = grid.crs
    return write_geotiff(path, result.topo_index.astype(np.float32), grid_transform(grid), crs)
