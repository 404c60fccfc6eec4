"""Tests for topographic index diagnostic plots."""

import numpy as np
import pytest

from topoindex.accumulator import compute_topo_index
from topoindex.diagnostics import plot_topo_index_diagnostics


class TestPlotTopoIndexDiagnostics:
    def test_creates_png(self, valley_grid, tmp_path):
        result = compute_topo_index(valley_grid)

        output = plot_topo_index_diagnostics(result, tmp_path / "plots" / "topo_index.png")

        assert output.exists()
        assert output.stat().st_size > 0

    def test_handles_masked_grid(self, cone_grid, tmp_path):
        result = compute_topo_index(cone_grid)

        output = plot_topo_index_diagnostics(
            result, tmp_path / "cone.png", title_prefix="Cone", bins=10
        )

        assert output.exists()
        assert np.isnan(result.topo_index[0, 0])

    def test_figure_closed_when_save_fails(self, step_grid, tmp_path, monkeypatch):
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
        from matplotlib.figure import Figure

        result = compute_topo_index(step_grid)
        plt.close("all")

        def failing_savefig(self, *args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr(Figure, "savefig", failing_savefig)

        with pytest.raises(OSError, match="disk full"):
            plot_topo_index_diagnostics(result, tmp_path / "step.png")

        assert plt.get_fignums() == []
