"""Stage 2: Extraction."""

from .stage import ExtractionStage, ExtractionResult
from .extractors import AbstractExtractor, ExtractorFactory

__all__ = ["ExtractionStage", "ExtractionResult", "AbstractExtractor", "ExtractorFactory"]
