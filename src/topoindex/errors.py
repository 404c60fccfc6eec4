"""
Exception types raised by the topographic index computation.

Every error aborts the whole computation; no partially accumulated grids are
ever returned to the caller.
"""


class TopoIndexError(Exception):
    """Base class for all topographic index failures."""

    pass


class AllocationFailure(TopoIndexError, MemoryError):
    """Raised when an accumulator grid cannot be allocated."""

    pass


class UnsupportedConfiguration(TopoIndexError, ValueError):
    """Raised for a stencil or grid geometry the sweep cannot handle."""

    pass


class InvariantViolation(TopoIndexError, RuntimeError):
    """Raised when the distribution sweep breaks one of its own invariants."""

    pass


class DivisionDegeneracy(TopoIndexError, ArithmeticError):
    """Raised when a processed cell finishes with tanbeta == 0."""

    pass


class InvalidProcessingOrder(TopoIndexError, ValueError):
    """Raised when the processing order references cells it must not."""

    pass
