"""Tests for configuration defaults and logging setup."""

import logging

import pytest

from topoindex.config import (
    DEFAULT_VERTICAL_RESOLUTION,
    DIAGONAL_CONTOUR_FRACTION,
    ORTHOGONAL_CONTOUR_FRACTION,
    TopoIndexConfig,
    configure_logging,
)
from topoindex.errors import UnsupportedConfiguration


class TestTopoIndexConfig:
    def test_defaults(self):
        config = TopoIndexConfig()

        assert config.vertical_resolution == DEFAULT_VERTICAL_RESOLUTION == 1.0
        assert config.n_directions == 8
        assert config.strict_order is False

    def test_contour_fractions(self):
        assert DIAGONAL_CONTOUR_FRACTION == 0.4
        assert ORTHOGONAL_CONTOUR_FRACTION == 0.6

    @pytest.mark.parametrize("n_directions", [4, 6, 16])
    def test_only_eight_directions(self, n_directions):
        with pytest.raises(UnsupportedConfiguration):
            TopoIndexConfig(n_directions=n_directions)

    def test_unsupported_configuration_is_value_error(self):
        with pytest.raises(ValueError):
            TopoIndexConfig(n_directions=4)


class TestConfigureLogging:
    def test_sets_level_and_single_handler(self):
        logger = configure_logging("DEBUG")
        configure_logging("WARNING")

        handlers = [h for h in logger.handlers if getattr(h, "_topoindex_handler", False)]
        assert logger.name == "topoindex"
        assert logger.level == logging.WARNING
        assert len(handlers) == 1
        assert handlers[0].level == logging.WARNING
