"""
Stage 2: Extraction

ЦКП: Нормализованный словарь полей для любого (raw, тип).

Input: raw строка, PayloadType (+ декодированный JSON со Stage 1)
Output: ExtractionResult (fields; при сбое fields содержит error)

Граница стадии: наружу исключения не выходят. Любая ошибка экстрактора
превращается в {raw, error} и дальше даёт статус corrupted.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from loguru import logger

from contracts.scan_dto import PayloadType
from .extractors.factory import ExtractorFactory


@dataclass
class ExtractionResult:
    """
    Результат Stage 2: Extraction.

    ЦКП: Поля записи.
    """
    fields: Dict[str, Any] = field(default_factory=dict)
    extractor: str = ""

    @property
    def failed(self) -> bool:
        return "error" in self.fields

    def to_dict(self) -> dict:
        return {
            "extractor": self.extractor,
            "failed": self.failed,
            "field_count": len(self.fields),
        }


class ExtractionStage:
    """Stage 2: Structured Extractor."""

    def __init__(self, factory: Optional[ExtractorFactory] = None):
        """
        Args:
            factory: Таблица тип -> экстрактор (по умолчанию ExtractorFactory())
        """
        self.factory = factory or ExtractorFactory()

    def process(
        self,
        raw: str,
        payload_type: PayloadType,
        decoded: Optional[Any] = None,
    ) -> ExtractionResult:
        """
        Извлекает поля.

        Args:
            raw: Исходная строка
            payload_type: Тип со Stage 1
            decoded: Декодированный JSON (если есть)

        Returns:
            ExtractionResult
        """
        extractor = self.factory.get(payload_type)
        try:
            fields = extractor.extract(raw, decoded)
        except Exception as e:
            logger.warning(f"[Stage 2 - {extractor.name}] Ошибка извлечения: {e}")
            fields = {"raw": raw, "error": str(e) or type(e).__name__}

        if not isinstance(fields, dict):
            fields = {"raw": raw, "error": f"{extractor.name} вернул {type(fields).__name__}"}

        if "error" in fields:
            logger.debug(f"[Stage 2 - {extractor.name}] error={fields['error']}")

        return ExtractionResult(fields=fields, extractor=extractor.name)

    def extract(self, raw: str, payload_type: PayloadType) -> Dict[str, Any]:
        """Контракт (raw, тип) -> поля | {error}."""
        return self.process(raw, payload_type).fields
