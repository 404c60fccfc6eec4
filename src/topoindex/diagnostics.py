"""
Diagnostic plotting for topographic index computations.

Provides a multi-panel figure to inspect the accumulated area, the local
gradient term and the resulting index of a finished computation.
"""

import logging
from pathlib import Path
from typing import Union

import numpy as np

from .accumulator import TopoIndexResult, summarize
from .export import export_layer

logger = logging.getLogger(__name__)


def plot_topo_index_diagnostics(
    result: TopoIndexResult,
    output_path: Union[str, Path],
    title_prefix: str = "Topographic Index",
    cmap: str = "viridis",
    bins: int = 50,
) -> Path:
    """
    Generate diagnostic plots for a finished computation.

    Creates a multi-panel figure showing:
    - ln(area)
    - ln(1 / tanbeta)
    - Topographic index
    - Histogram of the topographic index with summary statistics

    Args:
        result: Finished TopoIndexResult
        output_path: Path to save the diagnostic plot
        title_prefix: Prefix for plot titles
        cmap: Colormap for the grid panels
        bins: Number of histogram bins

    Returns:
        Path to saved diagnostic plot
    """
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    log_area = np.ma.masked_invalid(export_layer(result, "log_area"))
    log_inv_tanbeta = np.ma.masked_invalid(export_layer(result, "log_inverse_tanbeta"))
    topo_index = np.ma.masked_invalid(result.topo_index)
    stats = summarize(result)

    fig, axes = plt.subplots(2, 2, figsize=(14, 12))
    try:
        fig.suptitle(f"{title_prefix} Diagnostics", fontsize=14, fontweight="bold")

        panels = [
            (axes[0, 0], log_area, "ln(a)", "ln(area)"),
            (axes[0, 1], log_inv_tanbeta, "ln(1 / tanβ)", "ln(1 / tanβ)"),
            (axes[1, 0], topo_index, "Topographic Index ln(a / tanβ)", "Index"),
        ]
        for ax, data, title, label in panels:
            im = ax.imshow(data, cmap=cmap)
            ax.set_title(title)
            ax.set_xlabel("Column")
            ax.set_ylabel("Row")
            plt.colorbar(im, ax=ax, label=label)

        ax4 = axes[1, 1]
        values = topo_index.compressed()
        if values.size:
            ax4.hist(values, bins=bins, color="steelblue", edgecolor="white")
        ax4.set_title("Index Distribution")
        ax4.set_xlabel("ln(a / tanβ)")
        ax4.set_ylabel("Cells")

        stats_text = (
            f"Cells: {stats['n_cells']:,}\n"
            f"Sinks: {stats['n_sinks']:,}\n"
            f"Min:   {stats['topo_index_min']:.3f}\n"
            f"Mean:  {stats['topo_index_mean']:.3f}\n"
            f"Max:   {stats['topo_index_max']:.3f}"
        )
        ax4.text(
            0.98,
            0.98,
            stats_text,
            transform=ax4.transAxes,
            fontsize=9,
            verticalalignment="top",
            horizontalalignment="right",
            fontfamily="monospace",
            bbox={"boxstyle": "round", "facecolor": "wheat", "alpha": 0.8},
        )

        plt.tight_layout()

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=150, bbox_inches="tight")
    finally:
        plt.close(fig)

    logger.info(f"Saved topographic index diagnostics to {output_path}")
    return output_path
