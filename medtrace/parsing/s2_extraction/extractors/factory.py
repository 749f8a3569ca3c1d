"""
Extractor Factory - таблица тип -> экстрактор.

Набор поддерживаемых типов открыт для расширения через register().
"""

from datetime import datetime
from typing import Callable, Dict, Optional

from loguru import logger

from contracts.scan_dto import PayloadType
from .base import AbstractExtractor
from .card import LineRecordExtractor
from .contact import EmailExtractor, PhoneExtractor
from .default import JsonPassthroughExtractor, TextExtractor
from .geo import GeoExtractor
from .layered import LayeredExtractor
from .locator import LocatorExtractor
from .network import NetworkCredentialExtractor
from .tracking import TrackingExtractor


class ExtractorFactory:
    """
    Фабрика для выбора экстрактора по типу содержимого.

    Пример:
        factory = ExtractorFactory()
        extractor = factory.get(PayloadType.LOCATOR)
        fields = extractor.extract(raw)
    """

    # Маппинг типов на экстракторы (по умолчанию)
    STRATEGY_MAP: Dict[PayloadType, AbstractExtractor] = {
        PayloadType.STRUCTURED_JSON: JsonPassthroughExtractor(),
        PayloadType.LAYERED_PAYLOAD: LayeredExtractor(),
        PayloadType.DOMAIN_TRACKING: TrackingExtractor(),
        PayloadType.LOCATOR: LocatorExtractor(),
        PayloadType.CONTACT_EMAIL: EmailExtractor(),
        PayloadType.TELEPHONE: PhoneExtractor(),
        PayloadType.NETWORK_CREDENTIAL: NetworkCredentialExtractor(),
        PayloadType.CONTACT_CARD: LineRecordExtractor("VCardExtractor"),
        PayloadType.CALENDAR_EVENT: LineRecordExtractor("VEventExtractor"),
        PayloadType.GEOCOORDINATE: GeoExtractor(),
    }

    DEFAULT_EXTRACTOR: AbstractExtractor = TextExtractor()

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        """
        Args:
            clock: Часы для TrackingExtractor (None = системное UTC время)
        """
        # Копия, чтобы register() не менял таблицу других экземпляров
        self._strategies: Dict[PayloadType, AbstractExtractor] = dict(self.STRATEGY_MAP)
        if clock is not None:
            self._strategies[PayloadType.DOMAIN_TRACKING] = TrackingExtractor(clock=clock)

    def get(self, payload_type: PayloadType) -> AbstractExtractor:
        """
        Получить экстрактор для типа.

        Args:
            payload_type: Тип содержимого

        Returns:
            AbstractExtractor (TextExtractor для типов без своей грамматики)
        """
        extractor = self._strategies.get(payload_type)
        if extractor is None:
            logger.debug(f"[ExtractorFactory] {payload_type.value} → используем Default")
            return self.DEFAULT_EXTRACTOR
        return extractor

    def register(self, payload_type: PayloadType, extractor: AbstractExtractor) -> None:
        """
        Зарегистрировать экстрактор в runtime.

        Args:
            payload_type: Тип содержимого
            extractor: Экземпляр AbstractExtractor
        """
        self._strategies[payload_type] = extractor
        logger.info(f"[ExtractorFactory] Зарегистрирован экстрактор: {payload_type.value} → {extractor.name}")
