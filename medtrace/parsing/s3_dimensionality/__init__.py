"""Stage 3: Dimensionality."""

from .stage import DimensionalityStage

__all__ = ["DimensionalityStage"]
