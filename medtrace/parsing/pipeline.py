"""
Scan Pipeline - оркестратор 4 этапов парсинга скана.

Координирует выполнение этапов в строгом порядке:
1. Classification → 2. Extraction → 3. Dimensionality → 4. Validation

Возвращает ParsedRecord. Пайплайн синхронный и тотальный: ошибки парсинга
становятся данными (статус записи), а не исключениями.
"""

import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Union

from loguru import logger

from config.settings import MAX_NESTING_DEPTH
from contracts.geo_dto import GeoPoint
from contracts.scan_dto import ParsedRecord, PayloadType, RawScan, ValidationStatus
from ..domain.exceptions import PayloadParseError

from .s1_classification import ContentClassifier, ClassificationResult
from .s2_extraction import ExtractionStage, ExtractionResult, ExtractorFactory
from .s3_dimensionality import DimensionalityStage
from .s4_validation import ValidationStage, ValidationResult


@dataclass
class PipelineResult:
    """
    Полный результат пайплайна со всеми промежуточными данными.

    Используется для отладки и анализа.
    """
    record: ParsedRecord

    classification: Optional[ClassificationResult] = None
    extraction: Optional[ExtractionResult] = None
    validation: Optional[ValidationResult] = None

    processing_time_ms: float = 0.0
    stages_completed: int = 0

    def to_dict(self) -> dict:
        return {
            "record": self.record.model_dump(mode="json"),
            "classification": self.classification.to_dict() if self.classification else None,
            "extraction": self.extraction.to_dict() if self.extraction else None,
            "validation": self.validation.to_dict() if self.validation else None,
            "processing_time_ms": self.processing_time_ms,
            "stages_completed": self.stages_completed,
        }


class ScanPipeline:
    """
    Оркестратор пайплайна парсинга скана.

    Пример:
        pipeline = ScanPipeline()
        record = pipeline.parse("https://example.com/a?b=1")
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None, max_nesting: int = MAX_NESTING_DEPTH):
        """
        Args:
            clock: Часы для производных полей срока годности (для тестов)
            max_nesting: Предел вложенности полей; глубже запись corrupted
        """
        self.max_nesting = max_nesting
        self.classifier = ContentClassifier()
        self.extraction = ExtractionStage(ExtractorFactory(clock=clock))
        self.dimensionality = DimensionalityStage()
        self.validation = ValidationStage()

        logger.debug("[Pipeline] Инициализирован")

    def process(
        self,
        scan: Union[RawScan, str],
        scan_location: Optional[GeoPoint] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> PipelineResult:
        """
        Обрабатывает один скан через все этапы.

        Args:
            scan: RawScan или декодированная строка
            scan_location: Координата скана (если удалось получить)
            metadata: Дополнительные данные (устройство, сессия)

        Returns:
            PipelineResult с ParsedRecord и промежуточными результатами
        """
        start_time = time.perf_counter()
        if not isinstance(scan, RawScan):
            scan = RawScan(raw="" if scan is None else str(scan))

        stages_completed = 0
        classification = extraction = validation = None
        try:
            classification = self.classifier.process(scan.raw)
            stages_completed = 1

            extraction = self.extraction.process(
                scan.raw, classification.payload_type, classification.decoded
            )
            stages_completed = 2

            dimensions = self.dimensionality.process(extraction.fields, classification.payload_type)
            nesting = self.dimensionality.nesting(extraction.fields)
            if nesting > self.max_nesting:
                raise PayloadParseError(
                    message=f"Вложенность полей {nesting} превышает предел {self.max_nesting}",
                    component="ScanPipeline",
                )
            stages_completed = 3

            validation = self.validation.process(extraction.fields, classification.payload_type)
            stages_completed = 4

            record = ParsedRecord(
                raw_data=scan.raw,
                payload_type=classification.payload_type,
                fields=extraction.fields,
                dimensions=dimensions,
                validation_status=validation.status,
                scan_timestamp=scan.captured_at,
                scan_location=scan_location,
                metadata=dict(metadata or {}),
            )
        except Exception as e:
            logger.error(f"[Pipeline] Сбой на этапе {stages_completed + 1}: {e}")
            record = ParsedRecord(
                raw_data=scan.raw,
                payload_type=classification.payload_type if classification else PayloadType.GENERIC_TEXT,
                fields={"error": str(e) or type(e).__name__},
                dimensions=1,
                validation_status=ValidationStatus.CORRUPTED,
                scan_timestamp=scan.captured_at,
                scan_location=scan_location,
                metadata=dict(metadata or {}),
            )

        processing_time = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"[Pipeline] {record.payload_type.value} → {record.validation_status.value} "
            f"(dims={record.dimensions}, {processing_time:.1f}ms)"
        )

        return PipelineResult(
            record=record,
            classification=classification,
            extraction=extraction,
            validation=validation,
            processing_time_ms=processing_time,
            stages_completed=stages_completed,
        )

    def parse(self, raw: Union[RawScan, str], scan_location: Optional[GeoPoint] = None) -> ParsedRecord:
        """Только финальная запись."""
        return self.process(raw, scan_location=scan_location).record
