"""
Compute the topographic wetness index for a DEM and write diagnostic outputs.

Writes:
- topo_index.tif        GeoTIFF of ln(a / tanB)
- logtanbeta.asc        ASCII grid of the selected layer (default ln(1 / tanB))
- topo_index.png        Diagnostic plots

Run with:
    python examples/compute_topo_index.py --dem data/dem.tif --mask data/basin.tif
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from topoindex import (
    TopoIndexConfig,
    TopoIndexError,
    compute_topo_index,
    configure_logging,
    load_fine_grid,
    plot_topo_index_diagnostics,
    summarize,
    write_topo_index_ascii,
    write_topo_index_geotiff,
)
from topoindex.export import EXPORT_LAYERS


def main():
    parser = argparse.ArgumentParser(description='Compute the topographic wetness index')
    parser.add_argument('--dem', type=str, required=True, help='Path to DEM file')
    parser.add_argument('--mask', type=str, default=None, help='Optional basin mask raster')
    parser.add_argument('--output-dir', type=str, default='examples/output/topo_index',
                        help='Directory for outputs')
    parser.add_argument('--vertical-resolution', type=float, default=1.0,
                        help='Vertical resolution of the DEM (flat-area gradient)')
    parser.add_argument('--ascii-layer', type=str, default='log_inverse_tanbeta',
                        choices=EXPORT_LAYERS, help='Layer written to the ASCII grid')
    parser.add_argument('--strict-order', action='store_true',
                        help='Fail instead of warn on a non-descending processing order')
    parser.add_argument('--no-plot', action='store_true', help='Skip diagnostic plots')
    parser.add_argument('--log-level', type=str, default='INFO')
    args = parser.parse_args()

    logger = configure_logging(args.log_level)
    output_dir = Path(args.output_dir)

    config = TopoIndexConfig(
        vertical_resolution=args.vertical_resolution,
        strict_order=args.strict_order,
    )

    try:
        grid = load_fine_grid(args.dem, args.mask)
        result = compute_topo_index(grid, config=config)
    except TopoIndexError as e:
        logger.error(f"Topographic index computation failed: {e}")
        return 1

    write_topo_index_geotiff(result, grid, output_dir / "topo_index.tif")
    write_topo_index_ascii(result, grid, output_dir / "logtanbeta.asc", layer=args.ascii_layer)
    if not args.no_plot:
        plot_topo_index_diagnostics(result, output_dir / "topo_index.png")

    for key, value in summarize(result).items():
        logger.info(f"  {key}: {value:,.3f}" if isinstance(value, float) else f"  {key}: {value:,}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
