"""
Model Error Types
=================

Named error conditions raised by the evaporation line model. All of them are
``ValueError`` subclasses so callers that already guard configuration input
with ``except ValueError`` keep working.
"""


class EvaporationModelError(ValueError):
    """Base class for all evaporation model errors."""


class InvalidParameterError(EvaporationModelError):
    """Input outside its physical or mathematical domain."""


class DegenerateGeometryError(EvaporationModelError):
    """Slope or intersection undefined (parallel lines, zero denominator)."""


class DegenerateRegressionError(EvaporationModelError):
    """Not enough distinct points to fit a line."""
