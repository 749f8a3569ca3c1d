"""Stage 4: Validation."""

from .stage import ValidationStage, ValidationResult

__all__ = ["ValidationStage", "ValidationResult"]
