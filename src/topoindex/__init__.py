"""
Topographic wetness index for soil moisture redistribution.

Core functionality:
- FineGrid for elevation, basin mask and grid geometry
- GridAccumulator / compute_topo_index for the multiple flow direction sweep
- ASCII grid and GeoTIFF export of finished grids
- Diagnostic plots of accumulated area, gradient and index
"""

from .config import TopoIndexConfig, configure_logging
from .errors import (
    TopoIndexError,
    AllocationFailure,
    UnsupportedConfiguration,
    InvariantViolation,
    DivisionDegeneracy,
    InvalidProcessingOrder,
)
from .grid import FineGrid, descending_elevation_order, order_for_grid
from .accumulator import GridAccumulator, TopoIndexResult, compute_topo_index, summarize
from .data_loading import load_fine_grid
from .export import (
    export_layer,
    write_ascii_grid,
    write_topo_index_ascii,
    write_geotiff,
    write_topo_index_geotiff,
)
from .diagnostics import plot_topo_index_diagnostics

__all__ = [
    "TopoIndexConfig",
    "configure_logging",
    "TopoIndexError",
    "AllocationFailure",
    "UnsupportedConfiguration",
    "InvariantViolation",
    "DivisionDegeneracy",
    "InvalidProcessingOrder",
    "FineGrid",
    "descending_elevation_order",
    "order_for_grid",
    "GridAccumulator",
    "TopoIndexResult",
    "compute_topo_index",
    "summarize",
    "load_fine_grid",
    "export_layer",
    "write_ascii_grid",
    "write_topo_index_ascii",
    "write_geotiff",
    "write_topo_index_geotiff",
    "plot_topo_index_diagnostics",
]
