"""
Multiple flow direction area accumulation and topographic index.

Computes the TOPMODEL topographic index ln(a / tanB) (Beven & Kirkby 1979)
using the multiple flow direction apportioning of Wolock & McCabe (1995):

- Cells are visited once, from highest to lowest elevation.
- Each cell splits its accumulated area between all strictly lower neighbors
  in proportion to slope times contour length (0.4 * cell size for diagonal
  neighbors, 0.6 * cell size for orthogonal neighbors).
- tanB of a cell is the sum of slope * contour length over its downslope
  neighbors. Cells with no lower neighbor get a minimal gradient derived from
  the vertical resolution of the DEM.

Neighbors off the grid or outside the basin mask are treated as having the
same elevation as the cell, so area never leaves the basin.

References
----------
Beven K.J. and M.J. Kirkby, 1979, A physically based, variable contributing
area model of basin hydrology, Hydrol Sci Bull 24, 43-69.

Wolock, D.M. and G.J. McCabe, Jr., 1995, Comparison of single and multiple
flow direction algorithms for computing topographic parameters in TOPMODEL,
Water Resources Research, 31 (5), 1315-1324.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np
from numba import jit

from .config import TopoIndexConfig
from .errors import (
    AllocationFailure,
    DivisionDegeneracy,
    InvalidProcessingOrder,
    InvariantViolation,
    UnsupportedConfiguration,
)
from .grid import FineGrid, order_for_grid
from .stencil import (
    IS_DIAGONAL,
    NEIGHBOR_COUNT,
    NEIGHBOR_OFFSETS,
    contour_weights,
    flat_tanbeta,
    slope_distances,
    validate_stencil,
)

logger = logging.getLogger(__name__)

# Status codes returned by the sweep kernel
STATUS_OK = 0
STATUS_ROUTE_OUTSIDE_BASIN = 1
STATUS_ZERO_TANBETA = 2


@dataclass
class TopoIndexResult:
    """Accumulator grids and topographic index from one computation."""

    area: np.ndarray
    """Upslope area per unit contour draining through each cell."""

    tanbeta: np.ndarray
    """Slope-weighted contour length of each cell's downslope boundary."""

    contour_length: np.ndarray
    """Boundary length over which each cell drains to lower neighbors."""

    topo_index: np.ndarray
    """ln(area / tanbeta), NaN for cells that were not processed."""

    order: np.ndarray
    """Processing order used, (N, 2) array of (x, y)."""

    cell_size: float
    """Cell size of the grid."""

    @property
    def processed(self) -> np.ndarray:
        """Boolean grid of cells that appear in the processing order."""
        processed = np.zeros(self.area.shape, dtype=bool)
        processed[self.order[:, 1], self.order[:, 0]] = True
        return processed

    @property
    def sink_mask(self) -> np.ndarray:
        """Processed cells with no strictly lower neighbor (outlets, pits and flats)."""
        return self.processed & (self.contour_length == 0)


def _allocate_grid(shape: Tuple[int, int], name: str) -> np.ndarray:
    """Allocate a zero-filled float64 grid, raising AllocationFailure on exhaustion."""
    try:
        return np.zeros(shape, dtype=np.float64)
    except MemoryError as e:
        raise AllocationFailure(
            f"Could not allocate {name} grid of shape {shape}"
        ) from e


@jit(nopython=True, cache=True)
def _distribute_area_jit(
    elevation: np.ndarray,
    mask: np.ndarray,
    order: np.ndarray,
    offsets: np.ndarray,
    distances: np.ndarray,
    contours: np.ndarray,
    flat_value: float,
    area: np.ndarray,
    tanbeta: np.ndarray,
    contour_length: np.ndarray,
) -> Tuple[int, int]:
    """
    JIT-compiled descending-elevation sweep (numba accelerated).

    Modifies area, tanbeta and contour_length in-place.

    Parameters
    ----------
    elevation : np.ndarray
        Elevation grid indexed [y, x]
    mask : np.ndarray (bool)
        Basin mask
    order : np.ndarray
        (N, 2) array of (x, y), highest cell first
    offsets : np.ndarray
        (8, 2) stencil offsets as (dx, dy)
    distances : np.ndarray
        Center-to-center distance per stencil slot
    contours : np.ndarray
        Contour length per stencil slot
    flat_value : float
        tanbeta used for cells without a strictly lower neighbor
    area, tanbeta, contour_length : np.ndarray
        Accumulator grids (modified in-place)

    Returns
    -------
    tuple of (int, int)
        Status code and the order position that triggered it (-1 when OK)
    """
    rows, cols = elevation.shape

    neighbor_elev = np.empty(8, dtype=np.float64)
    delta_a = np.zeros(8, dtype=np.float64)

    for k in range(order.shape[0]):
        x = order[k, 0]
        y = order[k, 1]
        celev = elevation[y, x]

        # Off-grid and out-of-basin neighbors are flat, never downslope
        for n in range(8):
            xn = x + offsets[n, 0]
            yn = y + offsets[n, 1]
            if 0 <= xn < cols and 0 <= yn < rows and mask[yn, xn]:
                neighbor_elev[n] = elevation[yn, xn]
            else:
                neighbor_elev[n] = celev

        not_lower = 0
        for n in range(8):
            delta_a[n] = 0.0
            if neighbor_elev[n] < celev:
                slope = (celev - neighbor_elev[n]) / distances[n]
                contour_length[y, x] += contours[n]
                tanbeta[y, x] += slope * contours[n]
                delta_a[n] = area[y, x] * slope * contours[n]
            else:
                not_lower += 1

        if not_lower == 8:
            tanbeta[y, x] = flat_value
            continue

        if tanbeta[y, x] <= 0.0:
            return STATUS_ZERO_TANBETA, k

        # Route area downslope, scaled by the source cell's own tanbeta
        for n in range(8):
            if neighbor_elev[n] < celev:
                xn = x + offsets[n, 0]
                yn = y + offsets[n, 1]
                if not (0 <= xn < cols and 0 <= yn < rows and mask[yn, xn]):
                    return STATUS_ROUTE_OUTSIDE_BASIN, k
                area[yn, xn] += delta_a[n] / tanbeta[y, x]

    return STATUS_OK, -1


class GridAccumulator:
    """
    Owns the area, tanbeta and contour length grids for one computation.

    Attributes:
        grid: Fine terrain grid being processed
        config: Run settings
        area: Accumulated area grid (None until allocated)
        tanbeta: Accumulated slope grid (None until allocated)
        contour_length: Accumulated contour length grid (None until allocated)
    """

    def __init__(self, grid: FineGrid, config: Optional[TopoIndexConfig] = None):
        """
        Validate the configuration before any grid is touched.

        Args:
            grid: Fine terrain grid (elevation, mask, cell size)
            config: Run settings (default: TopoIndexConfig())

        Raises:
            UnsupportedConfiguration: If the stencil is not the 8-direction one
            InvariantViolation: If the stencil table is malformed
        """
        self.grid = grid
        self.config = config or TopoIndexConfig()

        if self.config.n_directions != NEIGHBOR_COUNT:
            raise UnsupportedConfiguration(
                f"Only the {NEIGHBOR_COUNT}-direction stencil is supported, "
                f"got n_directions={self.config.n_directions}"
            )
        validate_stencil(NEIGHBOR_OFFSETS, IS_DIAGONAL)

        self.area = None
        self.tanbeta = None
        self.contour_length = None

    def prepare_order(self, order) -> np.ndarray:
        """
        Convert and check a processing order.

        Args:
            order: Sequence of (x, y) pairs, highest elevation first

        Returns:
            C-contiguous int64 array of shape (N, 2)

        Raises:
            InvalidProcessingOrder: If the indices are not integers, a cell is
                off the grid, outside the basin or listed twice, or
                (strict_order only) the elevations are not descending
        """
        order = np.asarray(order)
        if order.size == 0:
            order = order.astype(np.int64).reshape(0, 2)
        if order.dtype.kind not in "iu":
            raise InvalidProcessingOrder(
                f"Processing order must hold integer (x, y) indices, got dtype {order.dtype}"
            )
        order = order.astype(np.int64)
        if order.ndim != 2 or order.shape[1] != 2:
            raise InvalidProcessingOrder(
                f"Processing order must be a sequence of (x, y) pairs, got shape {order.shape}"
            )
        order = np.ascontiguousarray(order)
        grid = self.grid
        xs, ys = order[:, 0], order[:, 1]

        off_grid = (xs < 0) | (xs >= grid.nx) | (ys < 0) | (ys >= grid.ny)
        if np.any(off_grid):
            k = int(np.argmax(off_grid))
            raise InvalidProcessingOrder(
                f"Processing order entry {k} ({xs[k]}, {ys[k]}) lies off the "
                f"{grid.nx}x{grid.ny} grid"
            )

        outside = ~grid.mask[ys, xs]
        if np.any(outside):
            k = int(np.argmax(outside))
            raise InvalidProcessingOrder(
                f"Processing order entry {k} ({xs[k]}, {ys[k]}) lies outside the basin mask"
            )

        flat_index = ys * grid.nx + xs
        if len(np.unique(flat_index)) != len(flat_index):
            raise InvalidProcessingOrder("Processing order lists at least one cell more than once")

        if len(order) != grid.n_cells:
            message = (f"Processing order covers {len(order):,} of "
                       f"{grid.n_cells:,} basin cells")
            if self.config.strict_order:
                raise InvalidProcessingOrder(message)
            logger.warning(message)

        rising = np.diff(grid.elevation[ys, xs]) > 0
        if np.any(rising):
            message = (f"Processing order is not descending in elevation "
                       f"({int(np.count_nonzero(rising)):,} rising steps, "
                       f"first at entry {int(np.argmax(rising)) + 1})")
            if self.config.strict_order:
                raise InvalidProcessingOrder(message)
            logger.warning(message)

        return order

    def allocate(self) -> None:
        """Allocate zero-filled accumulator grids matching the fine grid."""
        shape = self.grid.shape
        self.area = _allocate_grid(shape, "area")
        self.tanbeta = _allocate_grid(shape, "tanbeta")
        self.contour_length = _allocate_grid(shape, "contour_length")
        logger.debug(f"Allocated accumulator grids of shape {shape}")

    def initialize(self, order: np.ndarray) -> None:
        """Set the accumulated area of every ordered cell to its own footprint."""
        self.area[order[:, 1], order[:, 0]] = self.grid.cell_area

    def distribute(self, order: np.ndarray) -> None:
        """
        Run the descending-elevation sweep over ``order``.

        Raises:
            InvariantViolation: If area would be routed outside the basin or
                through a cell with zero tanbeta
        """
        cell_size = float(self.grid.cell_size)
        status, k = _distribute_area_jit(
            self.grid.elevation,
            self.grid.mask,
            order,
            NEIGHBOR_OFFSETS,
            slope_distances(cell_size),
            contour_weights(cell_size),
            flat_tanbeta(cell_size, self.config.vertical_resolution),
            self.area,
            self.tanbeta,
            self.contour_length,
        )

        if status == STATUS_ROUTE_OUTSIDE_BASIN:
            x, y = order[k]
            raise InvariantViolation(
                f"Cell ({x}, {y}) tried to route area outside the basin"
            )
        if status == STATUS_ZERO_TANBETA:
            x, y = order[k]
            raise InvariantViolation(
                f"Cell ({x}, {y}) has lower neighbors but zero tanbeta"
            )
        if status != STATUS_OK:
            raise InvariantViolation(f"Unknown sweep status {status}")

    def finalize(self, order: np.ndarray) -> np.ndarray:
        """
        Compute ln(area / tanbeta) for every ordered cell.

        Returns:
            Topographic index grid, NaN where no cell was processed

        Raises:
            DivisionDegeneracy: If any ordered cell has zero or non-finite tanbeta
        """
        xs, ys = order[:, 0], order[:, 1]
        tb = self.tanbeta[ys, xs]

        degenerate = ~np.isfinite(tb) | (tb <= 0)
        if np.any(degenerate):
            k = int(np.argmax(degenerate))
            raise DivisionDegeneracy(
                f"{int(np.count_nonzero(degenerate)):,} processed cells have tanbeta == 0 or non-finite, "
                f"first at ({xs[k]}, {ys[k]}); check vertical_resolution "
                f"(got {self.config.vertical_resolution})"
            )

        topo_index = np.full(self.grid.shape, np.nan, dtype=np.float64)
        topo_index[ys, xs] = np.log(self.area[ys, xs] / tb)
        return topo_index

    def run(self, order) -> TopoIndexResult:
        """
        Allocate, sweep and finalize.

        Args:
            order: Sequence of (x, y) pairs, highest elevation first

        Returns:
            TopoIndexResult with all accumulator grids and the index
        """
        order = self.prepare_order(order)
        self.allocate()
        self.initialize(order)
        self.distribute(order)
        topo_index = self.finalize(order)

        return TopoIndexResult(
            area=self.area,
            tanbeta=self.tanbeta,
            contour_length=self.contour_length,
            topo_index=topo_index,
            order=order,
            cell_size=float(self.grid.cell_size),
        )


def compute_topo_index(
    grid: FineGrid,
    order=None,
    config: Optional[TopoIndexConfig] = None,
) -> TopoIndexResult:
    """
    Compute the topographic index for every basin cell of ``grid``.

    The index is also written back into ``grid.topo_index``.

    Parameters
    ----------
    grid : FineGrid
        Elevation, basin mask and cell size
    order : array-like, optional
        (x, y) pairs in descending elevation. Defaults to
        ``order_for_grid(grid)``.
    config : TopoIndexConfig, optional
        Run settings

    Returns
    -------
    TopoIndexResult
        Accumulated area, tanbeta, contour length and topographic index

    Raises
    ------
    UnsupportedConfiguration
        Stencil other than 8 directions
    InvalidProcessingOrder
        Order references cells off the grid, outside the basin or twice
    AllocationFailure
        Accumulator grids could not be allocated
    InvariantViolation
        Sweep tried to route area where it cannot go
    DivisionDegeneracy
        A processed cell ended up with tanbeta == 0
    """
    accumulator = GridAccumulator(grid, config)
    if order is None:
        order = order_for_grid(grid)

    logger.info(f"Computing topographic index for {grid.n_cells:,} basin cells "
                f"on a {grid.nx}x{grid.ny} grid (cell size {grid.cell_size})")
    result = accumulator.run(order)
    grid.topo_index = result.topo_index

    if len(result.order):
        values = result.topo_index[result.order[:, 1], result.order[:, 0]]
        logger.info(f"Topographic index range: {values.min():.3f} to {values.max():.3f}")
    else:
        logger.warning("No basin cells to process; topographic index is empty")
    return result


def summarize(result: TopoIndexResult) -> Dict[str, float]:
    """
    Summary statistics for a finished computation.

    Returns:
        Dict with cell counts, total area and index statistics
    """
    processed = result.processed
    values = result.topo_index[processed]
    return {
        "n_cells": int(np.count_nonzero(processed)),
        "n_sinks": int(np.count_nonzero(result.sink_mask)),
        "total_area": float(result.area[processed].sum()),
        "sink_area": float(result.area[result.sink_mask].sum()),
        "topo_index_min": float(values.min()) if values.size else float("nan"),
        "topo_index_mean": float(values.mean()) if values.size else float("nan"),
        "topo_index_max": float(values.max()) if values.size else float("nan"),
    }
