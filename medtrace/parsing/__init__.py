"""
Домен Parsing: скан -> ParsedRecord.

Stage 1 Classification, Stage 2 Extraction, Stage 3 Dimensionality,
Stage 4 Validation. Все этапы синхронные и без состояния.
"""

from .pipeline import ScanPipeline, PipelineResult
from .s1_classification import ContentClassifier, ClassificationResult
from .s2_extraction import ExtractionStage, ExtractionResult, AbstractExtractor, ExtractorFactory
from .s3_dimensionality import DimensionalityStage
from .s4_validation import ValidationStage, ValidationResult

__all__ = [
    "ScanPipeline",
    "PipelineResult",
    "ContentClassifier",
    "ClassificationResult",
    "ExtractionStage",
    "ExtractionResult",
    "AbstractExtractor",
    "ExtractorFactory",
    "DimensionalityStage",
    "ValidationStage",
    "ValidationResult",
]
