"""Configuration module for the topoindex package.

Centralizes numeric constants and run settings for the topographic index sweep.
"""
import logging
import math
from dataclasses import dataclass

from .errors import UnsupportedConfiguration

# Vertical resolution of the DEM (elevation units), used by the flat-area fallback
DEFAULT_VERTICAL_RESOLUTION = 1.0

# Only the 8-direction stencil is implemented
SUPPORTED_NEIGHBOR_COUNT = 8

# Share of the cell size assigned as contour length to each drainage direction
DIAGONAL_CONTOUR_FRACTION = 0.4
ORTHOGONAL_CONTOUR_FRACTION = 0.6

# Value written for out-of-basin cells in ASCII grid exports
NODATA_VALUE = 0

# Default settings
DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


@dataclass
class TopoIndexConfig:
    """Settings for a single topographic index computation."""

    vertical_resolution: float = DEFAULT_VERTICAL_RESOLUTION
    """Vertical precision of the DEM, sets the minimal gradient of flat cells."""

    n_directions: int = SUPPORTED_NEIGHBOR_COUNT
    """Number of neighbors in the drainage stencil (only 8 is supported)."""

    strict_order: bool = False
    """Raise instead of warn when the processing order is not descending in elevation."""

    def __post_init__(self):
        if self.n_directions != SUPPORTED_NEIGHBOR_COUNT:
            raise UnsupportedConfiguration(
                f"Only the {SUPPORTED_NEIGHBOR_COUNT}-direction stencil is supported, "
                f"got n_directions={self.n_directions}"
            )
        if not math.isfinite(self.vertical_resolution) or self.vertical_resolution < 0:
            raise ValueError(
                f"vertical_resolution must be finite and non-negative, got {self.vertical_resolution}"
            )


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> logging.Logger:
    """
    Attach a console handler to the package logger.

    Args:
        level: Logging level name (default: DEFAULT_LOG_LEVEL)

    Returns:
        The configured ``topoindex`` logger
    """
    logger = logging.getLogger("topoindex")
    logger.setLevel(level)

    # Avoid stacking handlers when called more than once
    if not any(getattr(h, "_topoindex_handler", False) for h in logger.handlers):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        console_handler._topoindex_handler = True
        logger.addHandler(console_handler)

    for handler in logger.handlers:
        handler.setLevel(level)

    return logger
