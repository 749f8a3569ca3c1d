"""
Фабрика для создания компонентов MedTrace.

Предоставляет единые методы для сборки пайплайна парсинга,
гео-компонентов, журнала custody и синхронизации.
"""

from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from loguru import logger

from ..custody.export import CustodyExporter
from ..custody.hashing import Sha256ContentHash
from ..custody.ledger import CustodyLedger
from ..custody.service import AlertCallback, CustodyService
from ..domain.interfaces import ICustodyStore, IHashFunction, ILocationProvider, IRecordStore, ITelemetryClient
from ..geo.diversion import DiversionDetector
from ..geo.location_service import ErrorCallback, LocationService
from ..geo.region_registry import RegionRegistry
from ..geo.resolver import GeolocationResolver
from ..infrastructure.file_manager import ProvenanceFileManager
from ..infrastructure.record_store import InMemoryRecordStore, JsonFileRecordStore
from ..parsing.pipeline import ScanPipeline
from ..sync.orchestrator import SyncOrchestrator
from ..sync.telemetry_client import HttpTelemetryClient


class ProvenanceComponentFactory:
    """
    Фабрика компонентов MedTrace.

    Отвечает за:
    - Пайплайн парсинга сканов
    - Реестр регионов, резолвер и детектор отклонений
    - Хранилище, журнал custody, сервис транзакций и экспорт
    - Клиент телеметрии и оркестратор синхронизации
    """

    @staticmethod
    def create_pipeline(clock: Optional[Callable[[], datetime]] = None) -> ScanPipeline:
        logger.debug("[Factory] Создание пайплайна парсинга")
        return ScanPipeline(clock=clock)

    @staticmethod
    def create_registry(path: Optional[Path] = None) -> RegionRegistry:
        """
        Args:
            path: YAML реестра (по умолчанию config/regions.yaml)
        """
        return RegionRegistry.from_yaml(path)

    @staticmethod
    def create_resolver(registry: Optional[RegionRegistry] = None) -> GeolocationResolver:
        return GeolocationResolver(registry or RegionRegistry.from_yaml())

    @staticmethod
    def create_diversion_detector(registry: Optional[RegionRegistry] = None) -> DiversionDetector:
        return DiversionDetector(registry or RegionRegistry.from_yaml())

    @staticmethod
    def create_store(path: Optional[Path] = None) -> InMemoryRecordStore:
        """
        Args:
            path: JSON файл хранилища; None - хранилище в памяти
        """
        if path is None:
            logger.debug("[Factory] Хранилище в памяти")
            return InMemoryRecordStore()
        logger.debug(f"[Factory] Файловое хранилище: {path}")
        return JsonFileRecordStore(Path(path), ProvenanceFileManager())

    @staticmethod
    def create_ledger(store: ICustodyStore, hash_function: Optional[IHashFunction] = None) -> CustodyLedger:
        return CustodyLedger(store, hash_function or Sha256ContentHash())

    @staticmethod
    def create_custody_service(
        ledger: CustodyLedger,
        registry: Optional[RegionRegistry] = None,
        on_alert: Optional[AlertCallback] = None,
    ) -> CustodyService:
        """
        Создает сервис транзакций доставки.

        Args:
            ledger: Журнал custody
            registry: Реестр регионов (по умолчанию из config/regions.yaml)
            on_alert: Получатель DiversionAlert

        Returns:
            CustodyService
        """
        registry = registry or RegionRegistry.from_yaml()
        return CustodyService(
            ledger,
            GeolocationResolver(registry),
            DiversionDetector(registry),
            on_alert=on_alert,
        )

    @staticmethod
    def create_exporter(ledger: CustodyLedger) -> CustodyExporter:
        return CustodyExporter(ledger, ProvenanceFileManager())

    @staticmethod
    def create_location_service(
        provider: ILocationProvider,
        on_error: Optional[ErrorCallback] = None,
    ) -> LocationService:
        return LocationService(provider, on_error=on_error)

    @staticmethod
    def create_telemetry_client() -> HttpTelemetryClient:
        logger.debug("[Factory] Создание клиента телеметрии")
        return HttpTelemetryClient()

    @staticmethod
    def create_sync_orchestrator(
        client: Optional[ITelemetryClient] = None,
        store: Optional[IRecordStore] = None,
    ) -> SyncOrchestrator:
        return SyncOrchestrator(client or HttpTelemetryClient(), store=store)
