"""Stage 1: Classification."""

from .classifier import ContentClassifier, ClassificationResult

__all__ = ["ContentClassifier", "ClassificationResult"]
